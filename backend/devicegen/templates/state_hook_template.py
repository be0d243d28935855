"""State interface and per-device hook templates."""

from __future__ import annotations

import json
from typing import Any, Optional

from ..structure import StateDefinition, StateField

STATE_INTERFACE_TEMPLATE = """\
// Auto-generated state types - DO NOT EDIT
{imports}export interface {interface_name}{extends} {{
{fields}
}}

export const default{interface_name}: {interface_name} = {{
{defaults}
}};
"""

STATE_HOOK_TEMPLATE = """\
// Auto-generated state hook for {device_id} - DO NOT EDIT
import {{ useState, useEffect }} from 'react';
import {{ {interface_name}, default{interface_name} }} from '{import_path}';
import {{ useDeviceState }} from '../../hooks/useDeviceState';

export function {hook_name}(deviceId: string = '{device_id}') {{
  const [state, setState] = useState<{interface_name}>(default{interface_name});
  const {{ subscribeToState, updateState }} = useDeviceState(deviceId);

  useEffect(() => {{
    const subscription = subscribeToState((newState: Partial<{interface_name}>) => {{
      setState(prevState => ({{ ...prevState, ...newState }}));
    }});
    return subscription.unsubscribe;
  }}, [deviceId, subscribeToState]);

  const updateField = <K extends keyof {interface_name}>(field: K, value: {interface_name}[K]) => {{
    setState(prevState => ({{ ...prevState, [field]: value }}));
    updateState({{ [field]: value }});
  }};

  return {{
    state,
    updateField,
    setState: (newState: Partial<{interface_name}>) => {{
      setState(prevState => ({{ ...prevState, ...newState }}));
      updateState(newState);
    }},
  }};
}}
"""

# fields every BaseDeviceState carries
BASE_DEFAULTS = (
    ("device_id", "''"),
    ("device_name", "''"),
    ("last_command", "null"),
    ("error", "null"),
)


def format_default(state_field: StateField) -> str:
    """TypeScript literal for a field's default value.

    Missing defaults fall back per type: ``false``, ``0``, ``''``, else ``null``.
    """
    value: Any = state_field.default_value
    if value is None:
        if "null" in state_field.type:
            return "null"
        return {"boolean": "false", "number": "0", "string": "''"}.get(state_field.type, "null")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"
    return json.dumps(value, sort_keys=True)


def hook_name(state: StateDefinition) -> str:
    """``LgTvState`` → ``useLgTv``."""
    base = state.interface_name
    if base.endswith("State"):
        base = base[: -len("State")]
    return f"use{base}"


def generate_state_interface(state: StateDefinition) -> str:
    imports = ""
    if state.imports:
        imports = f"import {{ {', '.join(state.imports)} }} from '../BaseDeviceState';\n\n"
    extends = f" extends {', '.join(state.extends)}" if state.extends else ""
    fields = "\n".join(
        f"  {f.name}{'?' if f.optional else ''}: {f.type};"
        + (f" // {f.description}" if f.description else "")
        for f in state.fields
    )
    defaults = list(BASE_DEFAULTS) if "BaseDeviceState" in state.extends else []
    defaults += [(f.name, format_default(f)) for f in state.fields]
    return STATE_INTERFACE_TEMPLATE.format(
        imports=imports,
        interface_name=state.interface_name,
        extends=extends,
        fields=fields,
        defaults=",\n".join(f"  {name}: {value}" for name, value in defaults),
    )


def generate_state_hook(
    state: StateDefinition,
    device_id: str,
    state_class: Optional[str] = None,
) -> str:
    """Hook source bound to one device.

    Args:
        state: The state definition the hook exposes
        device_id: Default device id for the hook
        state_class: Shared schema class name; when given the hook imports
            the shared ``{state_class}.state`` file instead of a per-device one
    """
    if state_class:
        import_path = f"../../types/generated/{state_class}.state"
    else:
        import_path = f"../../types/generated/{state.interface_name}"
    return STATE_HOOK_TEMPLATE.format(
        device_id=device_id,
        interface_name=state.interface_name,
        import_path=import_path,
        hook_name=hook_name(state),
    )
