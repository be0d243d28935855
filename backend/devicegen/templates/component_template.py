"""Page component template.

``generate_component`` is a pure function of the RemoteDeviceStructure:
no timestamps, no dict-order dependence, so the manifest checksum only
changes when the device itself changes.

Zones are rendered in the order they appear in ``remote_zones``. A zone
that is empty (or disabled) still renders its section container with no
controls inside; show/hide zones never reach this point when empty.
"""

from __future__ import annotations

import re
from typing import List, Optional

from ..structure import (
    ActionHandler,
    ProcessedAction,
    RemoteDeviceStructure,
    RemoteZone,
    ZoneContent,
    ZoneId,
    zone_actions,
)
from .controls import (
    action_call,
    js_string,
    jsx_attr,
    jsx_text,
    render_action,
    render_button,
    render_dropdown,
    render_slider,
    slider_state_vars,
)

SCENARIO_LOCATION = "scenario"

_ID_SPLIT_RE = re.compile(r"[^0-9A-Za-z]+")

COMPONENT_TEMPLATE = """\
// Auto-generated from device config - Remote Control Layout - DO NOT EDIT
// Device: {device_name_comment} ({device_class})
import React, {{ useState }} from 'react';
import {{ useLogStore }} from '../../stores/useLogStore';
import {{ {api_hooks} }} from '../../hooks/useApi';
import {{ useSettingsStore }} from '../../stores/useSettingsStore';
import {{ Button }} from '../../components/ui/button';
import {{ Icon }} from '../../components/icons';
{component_imports}
function {component}() {{
  const {{ addLog }} = useLogStore();
  const executeAction = useExecuteDeviceAction();
{scenario_mutations}  const {{ statePanelOpen }} = useSettingsStore();
{state_vars}
  const handleAction = (action: string, payload?: any, targetDeviceId?: string) => {{
    const params = payload === undefined || payload === null ? {{}} : payload;
    const deviceId = targetDeviceId || {device_id};
{scenario_branch}    executeAction.mutate({{ deviceId, action: {{ action, params }} }});
    addLog({{
      level: 'info',
      message: `Action: ${{action}} -> ${{deviceId}}`,
      details: params,
    }});
  }};

  return (
    <div className={{`${{statePanelOpen ? 'p-4 space-y-4' : 'p-6 space-y-6'}}`}}>
      <div className="text-center">
        <h1 className="text-2xl font-bold">{device_name}</h1>
        <p className="text-gray-600">Device Class: {device_class}</p>
      </div>
      <div className="remote-control-layout grid grid-cols-1 gap-4">
{zones}
      </div>
    </div>
  );
}}

export default {component};
"""

SCENARIO_MUTATIONS = """\
  const startScenario = useStartScenario();
  const shutdownScenario = useShutdownScenario();
"""

SCENARIO_BRANCH = """\
    if (action === 'power_on') {{
      startScenario.mutate({device_id});
      addLog({{ level: 'info', message: `Starting scenario: ${{{device_id}}}`, details: params }});
      return;
    }}
    if (action === 'power_off') {{
      shutdownScenario.mutate({{ scenarioId: {device_id}, graceful: true }});
      addLog({{ level: 'info', message: `Shutting down scenario: ${{{device_id}}}`, details: params }});
      return;
    }}
"""

ZONE_OPEN = (
    '{indent}<section className="remote-zone" data-zone="{zone_id}"'
    ' data-empty="{empty}" data-enabled="{enabled}">'
)


def component_name(device_id: str) -> str:
    """``living_room-tv`` → ``LivingRoomTvPage``, ``2nd_floor`` → ``Device2ndFloorPage``."""
    parts = [p for p in _ID_SPLIT_RE.split(device_id) if p]
    name = "".join(p[:1].upper() + p[1:].lower() for p in parts)
    if not name or name[0].isdigit():
        name = "Device" + name
    return name + "Page"


class _Renderer:
    """Per-call render context (device id, scenario flag)."""

    def __init__(self, structure: RemoteDeviceStructure):
        self.structure = structure
        self.handlers = {h.action_name: h for h in structure.action_handlers}

    def target(self, action: ProcessedAction) -> Optional[str]:
        # only scenario commands point at another device
        if not self.structure.is_scenario:
            return None
        if not action.location or action.location == SCENARIO_LOCATION:
            return None
        return action.location

    def action(self, action: ProcessedAction, indent: str) -> str:
        return render_action(action, indent, self.target(action))

    def button(self, action: ProcessedAction, indent: str, **kwargs) -> str:
        return render_button(action, indent, target=self.target(action), **kwargs)

    def set_param(self, set_action: Optional[str]) -> str:
        handler: Optional[ActionHandler] = self.handlers.get(set_action or "")
        if handler and handler.parameters:
            return handler.parameters[0].name
        return "value"

    # -- zones ---------------------------------------------------------------

    def zone(self, zone: RemoteZone, indent: str) -> str:
        inner = indent + "  "
        lines = [
            ZONE_OPEN.format(
                indent=indent,
                zone_id=zone.zone_id.value,
                empty=str(zone.is_empty).lower(),
                enabled=str(zone.enabled).lower(),
            ),
            f'{inner}<h2 className="text-lg font-semibold">{jsx_text(zone.zone_name)}</h2>',
        ]
        if zone.enabled and not zone.is_empty:
            lines.append(self.content(zone.zone_id, zone.content, inner))
        lines.append(f"{indent}</section>")
        return "\n".join(lines)

    def content(self, zone_id: ZoneId, c: ZoneContent, indent: str) -> str:
        if zone_id == ZoneId.POWER:
            return self.power(c, indent)
        if zone_id == ZoneId.MEDIA_STACK:
            return self.media_stack(c, indent)
        if zone_id == ZoneId.VOLUME:
            return self.volume(c, indent)
        if zone_id == ZoneId.APPS:
            return self.grid([render_dropdown(c.apps_dropdown, indent + "  ",
                                              self.set_param(c.apps_dropdown.set_action))], indent)
        if zone_id == ZoneId.MENU:
            return self.navigation(c, indent)
        if zone_id == ZoneId.POINTER:
            return self.pointer(c, indent)
        return self.grid([self.action(a, indent + "  ") for a in c.screen_actions or []], indent)

    def grid(self, items: List[str], indent: str, columns: int = 2) -> str:
        return "\n".join(
            [f'{indent}<div className="grid grid-cols-{columns} gap-2">']
            + items
            + [f"{indent}</div>"]
        )

    def power(self, c: ZoneContent, indent: str) -> str:
        items = []
        for button in c.power_buttons or []:
            items.append(f'{indent}  <div className="power-{button.position}">')
            items.append(self.button(button.action, indent + "    ", params=button.params or None))
            items.append(f"{indent}  </div>")
        return self.grid(items, indent, columns=3)

    def media_stack(self, c: ZoneContent, indent: str) -> str:
        parts = []
        if c.inputs_dropdown is not None:
            parts.append(render_dropdown(c.inputs_dropdown, indent, self.set_param(c.inputs_dropdown.set_action)))
        if c.playback_section and c.playback_section.actions:
            parts.append(self.row(c.playback_section.actions, indent, "flex flex-row gap-2"))
        if c.tracks_section and c.tracks_section.actions:
            parts.append(self.row(c.tracks_section.actions, indent, "flex flex-col gap-2"))
        return "\n".join(parts)

    def row(self, actions: List[ProcessedAction], indent: str, css: str) -> str:
        return "\n".join(
            [f'{indent}<div className="{css}">']
            + [self.action(a, indent + "  ") for a in actions]
            + [f"{indent}</div>"]
        )

    def volume(self, c: ZoneContent, indent: str) -> str:
        parts = []
        if c.volume_slider is not None:
            slider = c.volume_slider
            param = slider.action.range_parameter()
            extra = {"zone": slider.zone} if slider.zone is not None else None
            parts.append(render_slider(slider.action, param, indent, self.target(slider.action),
                                       extra, slider.orientation))
            if slider.mute_action is not None:
                parts.append(self.button(slider.mute_action, indent, params=extra))
        for buttons in c.volume_buttons or []:
            extra = {"zone": buttons.zone} if buttons.zone is not None else None
            for action in (buttons.up_action, buttons.down_action, buttons.mute_action):
                if action is not None:
                    parts.append(self.button(action, indent, params=extra))
        return "\n".join(parts)

    def navigation(self, c: ZoneContent, indent: str) -> str:
        nav = c.navigation_cluster
        inner = indent + "  "
        lines = [f"{indent}<NavCluster"]
        for slot in ("up", "down", "left", "right", "ok"):
            action = getattr(nav, f"{slot}_action")
            prop = "on" + slot[:1].upper() + slot[1:]
            if action is None:
                lines.append(f"{inner}{prop}={{undefined}}")
            else:
                lines.append(f"{inner}{prop}={{() => {self._call(action)}}}")
        lines.append(f'{inner}className="w-full mx-auto max-w-sm"')
        lines.append(f"{indent}/>")
        aux = [a for slot, a in nav.slots().items() if slot.startswith("aux") and a is not None]
        if aux:
            lines.append(self.grid([self.button(a, inner) for a in aux], indent, columns=4))
        return "\n".join(lines)

    def pointer(self, c: ZoneContent, indent: str) -> str:
        pad = c.pointer_pad
        inner = indent + "  "
        move = pad.move_action
        names = [p.name for p in move.parameters][:2]
        dx, dy = names if len(names) == 2 else ("deltaX", "deltaY")
        lines = [
            f"{indent}<PointerPad",
            f"{inner}onMove={{(dx: number, dy: number) => "
            f"{self._call(move, '{ ' + dx + ': dx, ' + dy + ': dy }')}}}",
        ]
        for prop, action in (("onClick", pad.click_action), ("onDrag", pad.drag_action),
                             ("onScroll", pad.scroll_action)):
            if action is not None:
                lines.append(f"{inner}{prop}={{() => {self._call(action)}}}")
        lines.append(f'{inner}className="w-full h-48"')
        lines.append(f"{indent}/>")
        return "\n".join(lines)

    def _call(self, action: ProcessedAction, params_expr: Optional[str] = None) -> str:
        return action_call(action.action_name, params_expr, self.target(action))


def _component_imports(structure: RemoteDeviceStructure) -> str:
    used = {z.zone_id for z in structure.remote_zones if z.enabled and not z.is_empty}
    content = [z.content for z in structure.remote_zones if z.zone_id in used]
    lines = []
    if any(c.inputs_dropdown or c.apps_dropdown for c in content):
        lines.append("import DeviceDropdown from '../../components/DeviceDropdown';")
    if ZoneId.MENU in used:
        lines.append("import NavCluster from '../../components/NavCluster';")
    if ZoneId.POINTER in used:
        lines.append("import PointerPad from '../../components/PointerPad';")
    if any(a.range_parameter() for z in structure.remote_zones if z.zone_id in used for a in zone_actions(z)):
        lines.append("import SliderControl from '../../components/SliderControl';")
    return "".join(line + "\n" for line in lines)


def generate_component(structure: RemoteDeviceStructure) -> str:
    """Render the page component source for a device."""
    renderer = _Renderer(structure)
    device_id = js_string(structure.device_id)
    rendered_actions = [
        a for z in structure.remote_zones if z.enabled and not z.is_empty for a in zone_actions(z)
    ]
    state_vars = slider_state_vars(rendered_actions)

    hooks = ["useExecuteDeviceAction"]
    if structure.is_scenario:
        hooks += ["useStartScenario", "useShutdownScenario"]

    return COMPONENT_TEMPLATE.format(
        device_name_comment=structure.device_name.replace("\n", " "),
        device_class=jsx_attr(structure.device_class),
        api_hooks=", ".join(hooks),
        component_imports=_component_imports(structure),
        component=component_name(structure.device_id),
        scenario_mutations=SCENARIO_MUTATIONS if structure.is_scenario else "",
        state_vars="\n".join(state_vars) + ("\n" if state_vars else ""),
        device_id=device_id,
        scenario_branch=SCENARIO_BRANCH.format(device_id=device_id) if structure.is_scenario else "",
        device_name=jsx_text(structure.device_name),
        zones="\n".join(renderer.zone(z, " " * 8) for z in structure.remote_zones),
    )
