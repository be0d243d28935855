"""Kitchen hood family (Broadlink RF blaster).

A hood has no screen, so its fan, light and timer controls take the
screen zone as a control panel. Range parameters (fan speed) render as
sliders there; power keeps its own zone.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..device_config import DeviceConfig, DeviceGroups
from ..structure import (
    DeviceSpecialCase,
    ProcessedAction,
    RemoteDeviceStructure,
    StateDefinition,
    StateField,
    ZoneId,
)
from ..zones import assign_zones, build_zones, finalize_zones
from .common import assemble, build_actions, static_state

logger = logging.getLogger(__name__)

HOOD_STATE_FIELDS = (
    StateField("light", "string", description="Kitchen hood light state"),
    StateField("speed", "number", description="Fan speed level"),
    StateField("connection_status", "string", description="Device connection status"),
)

# keyword → icon; first hit wins, power actions use the shared icon table
HOOD_ICONS = (
    ("fan", "Toys"),
    ("speed", "Speed"),
    ("light", "Lightbulb"),
    ("timer", "Timer"),
    ("filter", "FilterAlt"),
    ("turbo", "FlashOn"),
    ("mode", "Settings"),
)

# groups never shown on the remote
EXCLUDED_GROUPS = ("noops", "hidden", "internal", "debug")


def hood_icon(action_name: str) -> Optional[str]:
    name = action_name.lower()
    if "power" in name:
        return None
    return next((icon for key, icon in HOOD_ICONS if key in name), None)


def excluded_actions(groups: DeviceGroups) -> List[str]:
    names: List[str] = []
    for group in groups.groups:
        label = f"{group.group_id} {group.group_name}".lower()
        if any(word in label for word in EXCLUDED_GROUPS):
            logger.info("Excluding group '%s' from the layout (%d actions)",
                        group.group_name, len(group.actions))
            names.extend(a.name for a in group.actions)
    return names


class KitchenHoodStrategy:
    device_class = "BroadlinkKitchenHood"

    def analyze_structure(
        self,
        config: DeviceConfig,
        groups: DeviceGroups,
        state: Optional[StateDefinition] = None,
    ) -> RemoteDeviceStructure:
        overrides: Dict[str, str] = {}
        for command in config.commands.values():
            icon = hood_icon(command.action)
            if icon is not None:
                overrides[command.action] = icon

        actions = build_actions(config, groups, overrides, exclude=excluded_actions(groups))
        controls: List[ProcessedAction] = [a for a in actions if a.action_name in overrides]
        others = [a for a in actions if a.action_name not in overrides]

        # hood controls go to the panel before generic matching ("fan_speed_up" is not navigation)
        assignment = assign_zones(groups, others)
        if controls:
            panel = assignment.assigned.setdefault((ZoneId.SCREEN, None), [])
            panel.extend(controls)
            for action in controls:
                assignment.zone_of[action.action_name] = ZoneId.SCREEN

        has_slider = any(a.range_parameter() is not None for a in controls)
        special = DeviceSpecialCase(
            device_class=self.device_class,
            case_type="kitchen-hood-controls",
            configuration={
                "hasFanSpeedSlider": has_slider,
                "hasLightControls": any("light" in a.action_name.lower() for a in controls),
                "hasParameterizedActions": any(a.parameters for a in actions),
            },
        )
        return assemble(
            config, finalize_zones(build_zones(assignment).values()), actions,
            state or static_state(config, HOOD_STATE_FIELDS),
            [special],
        )
