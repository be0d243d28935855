"""JSX fragments for individual controls.

Every function here is pure: same action in, same text out. Callers pass
an indent so fragments nest cleanly inside the page template.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any, Dict, List, Optional, Sequence

from ..structure import Dropdown, ProcessedAction, ProcessedParameter

DEFAULT_MIN = 0
DEFAULT_MAX = 100

# substring of the action name → unit suffix shown next to slider values
UNIT_SUFFIXES = (
    ("volume", "%"),
    ("brightness", "%"),
    ("light", "%"),
    ("temperature", "°"),
    ("temp", "°"),
    ("timer", "min"),
    ("time", "min"),
)

_WORD_RE = re.compile(r"[-_\s]+")


def slider_step(minimum: float, maximum: float) -> int:
    """1 for ranges up to 10, 5 up to 100, else 10."""
    span = maximum - minimum
    if span <= 10:
        return 1
    if span <= 100:
        return 5
    return 10


def unit_suffix(action_name: str) -> str:
    name = action_name.lower()
    for key, suffix in UNIT_SUFFIXES:
        if key in name:
            return suffix
    return ""


def camel(name: str) -> str:
    """``set_volume`` → ``setVolume``."""
    parts = [p for p in _WORD_RE.split(name) if p]
    if not parts:
        return "value"
    head, rest = parts[0], parts[1:]
    return head[:1].lower() + head[1:] + "".join(p[:1].upper() + p[1:] for p in rest)


def js_string(value: str) -> str:
    """Single-quoted JS string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def jsx_text(value: str) -> str:
    """Escape text placed between JSX tags."""
    return html.escape(value, quote=False).replace("{", "&#123;").replace("}", "&#125;")


def jsx_attr(value: str) -> str:
    return html.escape(value, quote=True)


def js_object(params: Optional[Dict[str, Any]]) -> str:
    """Render a small params dict as a JS object literal, keys sorted."""
    if not params:
        return "{}"
    body = ", ".join(f"{key}: {json.dumps(params[key])}" for key in sorted(params))
    return "{ " + body + " }"


# ---------------------------------------------------------------------------
# Action calls
# ---------------------------------------------------------------------------

def action_call(
    action_name: str,
    params_expr: Optional[str] = None,
    target: Optional[str] = None,
) -> str:
    """``handleAction('name', params, 'target')`` with trailing args omitted."""
    args = [js_string(action_name)]
    if params_expr is not None or target:
        args.append(params_expr or "undefined")
    if target:
        args.append(js_string(target))
    return f"handleAction({', '.join(args)})"


def slider_state_name(action: ProcessedAction) -> str:
    return camel(action.action_name) + "Value"


def slider_bounds(param: ProcessedParameter):
    minimum = param.min if param.min is not None else DEFAULT_MIN
    maximum = param.max if param.max is not None else DEFAULT_MAX
    default = param.default if param.default is not None else minimum
    return _num(minimum), _num(maximum), _num(default)


def _num(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def slider_state_vars(actions: Sequence[ProcessedAction], indent: str = "  ") -> List[str]:
    """``useState`` declarations for every range-bearing action, one per name."""
    lines: List[str] = []
    seen = set()
    for action in actions:
        param = action.range_parameter()
        if param is None:
            continue
        var = slider_state_name(action)
        if var in seen:
            continue
        seen.add(var)
        setter = "set" + var[:1].upper() + var[1:]
        _, _, default = slider_bounds(param)
        lines.append(f"{indent}const [{var}, {setter}] = useState<number>({default});")
    return lines


# ---------------------------------------------------------------------------
# Controls
# ---------------------------------------------------------------------------

def render_icon(action: ProcessedAction, indent: str) -> str:
    icon = action.icon
    return (
        f'{indent}<Icon library="{jsx_attr(icon.icon_library)}" name="{jsx_attr(icon.icon_name)}"'
        f' fallback="{jsx_attr(icon.fallback_icon)}" size="md" />'
    )


def render_button(
    action: ProcessedAction,
    indent: str,
    params: Optional[Dict[str, Any]] = None,
    target: Optional[str] = None,
    label: Optional[str] = None,
) -> str:
    style = action.ui_hints.get("buttonStyle", "secondary")
    call = action_call(action.action_name, js_object(params) if params else None, target)
    inner = indent + "  "
    return "\n".join([
        f"{indent}<Button",
        f'{inner}variant="{jsx_attr(style)}"',
        f"{inner}onClick={{() => {call}}}",
        f'{inner}title="{jsx_attr(action.description)}"',
        f'{inner}className="flex items-center gap-2"',
        f"{indent}>",
        render_icon(action, inner),
        f"{inner}{jsx_text(label or action.display_name)}",
        f"{indent}</Button>",
    ])


def render_slider(
    action: ProcessedAction,
    param: ProcessedParameter,
    indent: str,
    target: Optional[str] = None,
    extra_params: Optional[Dict[str, Any]] = None,
    orientation: str = "horizontal",
) -> str:
    minimum, maximum, default = slider_bounds(param)
    step = slider_step(minimum, maximum)
    unit = unit_suffix(action.action_name)
    var = slider_state_name(action)
    setter = "set" + var[:1].upper() + var[1:]
    payload = {param.name: None}
    payload.update(extra_params or {})
    body = ", ".join(
        f"{key}: value" if key == param.name else f"{key}: {json.dumps(payload[key])}"
        for key in sorted(payload)
    )
    call = action_call(action.action_name, "{ " + body + " }", target)
    inner = indent + "  "
    return "\n".join([
        f'{indent}<div className="slider-control space-y-2">',
        f'{inner}<label className="flex items-center justify-between text-sm font-medium">',
        f"{inner}  <span>{jsx_text(action.display_name)}</span>",
        f'{inner}  <span className="text-xs text-gray-500">{{{var}}}{jsx_text(unit)}</span>',
        f"{inner}</label>",
        f"{inner}<SliderControl",
        f"{inner}  min={{{minimum}}}",
        f"{inner}  max={{{maximum}}}",
        f"{inner}  step={{{step}}}",
        f"{inner}  defaultValue={{{default}}}",
        f"{inner}  value={{{var}}}",
        f'{inner}  orientation="{orientation}"',
        f"{inner}  onValueChange={{(value: number) => {{",
        f"{inner}    {setter}(value);",
        f"{inner}    {call};",
        f"{inner}  }}}}",
        f"{inner}/>",
        f"{indent}</div>",
    ])


def render_action(action: ProcessedAction, indent: str, target: Optional[str] = None) -> str:
    """Range-bearing actions become sliders, everything else a button."""
    param = action.range_parameter()
    if param is not None:
        return render_slider(action, param, indent, target)
    return render_button(action, indent, target=target)


def render_dropdown(
    dropdown: Dropdown,
    indent: str,
    set_param: str = "value",
) -> str:
    inner = indent + "  "
    lines = [
        f"{indent}<DeviceDropdown",
        f'{inner}type="{dropdown.type}"',
        f'{inner}populationMethod="{dropdown.population_method}"',
    ]
    if dropdown.population_method == "api":
        if dropdown.api_action:
            lines.append(f"{inner}onLoad={{() => {action_call(dropdown.api_action)}}}")
        if dropdown.set_action:
            call = action_call(dropdown.set_action, f"{{ {set_param}: id }}")
            lines.append(f"{inner}onSelect={{(id: string) => {call}}}")
    else:
        options = ", ".join(
            f"{{ id: {js_string(o.id)}, label: {js_string(o.display_name)} }}"
            for o in dropdown.options
        )
        lines.append(f"{inner}options={{[{options}]}}")
        lines.append(f"{inner}onSelect={{(id: string) => handleAction(id)}}")
    lines.append(f"{indent}/>")
    return "\n".join(lines)
