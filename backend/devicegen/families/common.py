"""Shared building blocks for family strategies.

Strategies are standalone classes; what they have in common lives here as
plain functions (action processing, handlers, state shapes, assembly).
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..device_config import DeviceCommand, DeviceConfig, DeviceGroups, effective_group
from ..icons import resolve_icon
from ..structure import (
    ActionHandler,
    DeviceSpecialCase,
    ProcessedAction,
    ProcessedParameter,
    RemoteDeviceStructure,
    RemoteZone,
    StateDefinition,
    StateField,
)

_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")

PRIMARY_ACTIONS = {"power_on", "play", "ok", "enter", "select", "home"}
DESTRUCTIVE_ACTIONS = {"power_off", "stop", "standby"}
POINTER_KEYWORDS = ("move", "cursor", "click", "drag", "scroll", "touch", "gesture")


def format_display_name(action_name: str) -> str:
    """``volume_up`` / ``volumeUp`` → ``Volume Up``."""
    spaced = _CAMEL_RE.sub(r"\1 \2", action_name).replace("_", " ").replace("-", " ")
    return " ".join(w[:1].upper() + w[1:].lower() for w in spaced.split())


def format_handler_name(action_name: str) -> str:
    """``volume_up`` → ``handleVolumeUp``."""
    return "handle" + format_display_name(action_name).replace(" ", "")


def ui_hints_for(action_name: str, has_params: bool) -> Dict[str, Any]:
    name = action_name.lower()
    if name in PRIMARY_ACTIONS:
        style = "primary"
    elif name in DESTRUCTIVE_ACTIONS:
        style = "destructive"
    else:
        style = "secondary"
    hints: Dict[str, Any] = {"buttonStyle": style}
    if has_params:
        hints["hasParameters"] = True
    if any(k in name for k in POINTER_KEYWORDS):
        hints["isPointerAction"] = True
    return hints


def process_parameters(command: DeviceCommand) -> List[ProcessedParameter]:
    return [
        ProcessedParameter(
            name=p.name,
            type=p.type,
            required=p.required,
            default=p.default,
            min=p.min,
            max=p.max,
            description=p.description,
        )
        for p in command.params or []
    ]


def process_action(
    command: DeviceCommand,
    group: Optional[str],
    icon_overrides: Optional[Mapping[str, str]] = None,
) -> ProcessedAction:
    params = process_parameters(command)
    return ProcessedAction(
        action_name=command.action,
        display_name=format_display_name(command.action),
        description=command.description or format_display_name(command.action),
        parameters=params,
        group=group,
        icon=resolve_icon(command.action, icon_overrides),
        ui_hints=ui_hints_for(command.action, bool(params)),
        location=command.location,
    )


def build_actions(
    config: DeviceConfig,
    groups: DeviceGroups,
    icon_overrides: Optional[Mapping[str, str]] = None,
    exclude: Iterable[str] = (),
) -> List[ProcessedAction]:
    """Process every command into a ProcessedAction, one per action name.

    Commands whose group the groups object does not declare are treated
    as ungrouped. Duplicate action names keep the first command.
    """
    declared = groups.group_ids() if groups.groups else None
    skip = set(exclude)
    seen = set()
    actions: List[ProcessedAction] = []
    for command in config.commands.values():
        if command.action in seen or command.action in skip:
            continue
        seen.add(command.action)
        actions.append(process_action(command, effective_group(command, declared), icon_overrides))
    return actions


def build_action_handlers(actions: Sequence[ProcessedAction]) -> List[ActionHandler]:
    return [
        ActionHandler(
            action_name=a.action_name,
            handler_name=format_handler_name(a.action_name),
            parameters=list(a.parameters),
            location=a.location,
        )
        for a in actions
    ]


def static_state(config: DeviceConfig, fields: Sequence[StateField]) -> StateDefinition:
    """Family-defined state shape named ``{device_class}State``."""
    return StateDefinition(
        interface_name=f"{config.device_class}State",
        fields=list(fields),
        imports=["BaseDeviceState"],
        extends=["BaseDeviceState"],
    )


def assemble(
    config: DeviceConfig,
    zones: List[RemoteZone],
    actions: Sequence[ProcessedAction],
    state: StateDefinition,
    special_cases: Sequence[DeviceSpecialCase] = (),
) -> RemoteDeviceStructure:
    return RemoteDeviceStructure(
        device_id=config.device_id,
        device_name=config.device_name,
        device_class=config.device_class,
        remote_zones=zones,
        state_interface=state,
        action_handlers=build_action_handlers(actions),
        special_cases=list(special_cases),
    )
