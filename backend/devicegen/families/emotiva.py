"""Multi-zone audio processor family (eMotiva XMC-2).

The processor has two power domains: main zone power on the left/right
slots and a Zone 2 power button in the middle, built from ``power_on``
with ``zone=2``. The volume zone drives Zone 2.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from ..device_config import DeviceConfig, DeviceGroups
from ..structure import (
    DeviceSpecialCase,
    PowerButton,
    ProcessedAction,
    RemoteDeviceStructure,
    StateDefinition,
    StateField,
    ZoneId,
)
from ..zones import assign_zones, build_zones, finalize_zones
from .common import assemble, build_actions, static_state

logger = logging.getLogger(__name__)

ZONE2 = 2
_ZONE_RE = re.compile(r"zone[_\s]*(\d+)", re.IGNORECASE)

EMOTIVA_STATE_FIELDS = (
    StateField("power", "boolean", optional=True, description="Main zone power", default_value=False),
    StateField("zone2_power", "boolean", optional=True, description="Zone 2 power", default_value=False),
    StateField("volume", "number", optional=True, description="Main zone volume (dB)", default_value=0),
    StateField("zone2_volume", "number", optional=True, description="Zone 2 volume (dB)", default_value=0),
    StateField("input_source", "string", optional=True, description="Selected input"),
    StateField("connected", "boolean", optional=True, description="Processor reachable", default_value=False),
    StateField("mute", "boolean", optional=True, description="Main zone mute", default_value=False),
    StateField("zone2_mute", "boolean", optional=True, description="Zone 2 mute", default_value=False),
)


def zone_of_action(action: ProcessedAction) -> Optional[int]:
    """Zone number named in an action's name or description, if any."""
    for text in (action.action_name, action.description):
        match = _ZONE_RE.search(text or "")
        if match:
            return int(match.group(1))
    return None


class EmotivaStrategy:
    device_class = "EMotivaXMC2"

    def analyze_structure(
        self,
        config: DeviceConfig,
        groups: DeviceGroups,
        state: Optional[StateDefinition] = None,
    ) -> RemoteDeviceStructure:
        actions = build_actions(config, groups)
        assignment = assign_zones(groups, actions)
        zones = build_zones(assignment)

        has_zone2_power = self._add_zone2_power(zones[ZoneId.POWER].content.power_buttons, actions)
        volume = zones[ZoneId.VOLUME].content
        if volume.volume_slider:
            volume.volume_slider.zone = ZONE2
        for buttons in volume.volume_buttons or []:
            buttons.zone = ZONE2

        zone_actions: Dict[str, int] = {}
        for action in actions:
            zone = zone_of_action(action)
            if zone is not None:
                zone_actions[action.action_name] = zone

        special = DeviceSpecialCase(
            device_class=self.device_class,
            case_type="emotiva-xmc2-power",
            configuration={
                "hasZone2Power": has_zone2_power,
                "zone2VolumeOnly": True,
                "multiZoneDevice": True,
                "zoneActions": dict(sorted(zone_actions.items())),
            },
        )
        return assemble(
            config, finalize_zones(zones.values()), actions,
            state or static_state(config, EMOTIVA_STATE_FIELDS),
            [special],
        )

    def _add_zone2_power(self, buttons: Optional[List[PowerButton]], actions: List[ProcessedAction]) -> bool:
        if buttons is None:
            return False
        if any(b.position == "middle" for b in buttons):
            return True
        power_on = next((a for a in actions if a.action_name.lower() == "power_on"), None)
        if power_on is None:
            logger.warning("EMotivaXMC2: power_on not found, no Zone 2 power button")
            return False
        zone2 = ProcessedAction(
            action_name=power_on.action_name,
            display_name="Zone 2 Power",
            description="Toggle Zone 2 power",
            parameters=list(power_on.parameters),
            group=power_on.group,
            icon=power_on.icon,
            ui_hints=dict(power_on.ui_hints),
            location=power_on.location,
        )
        # keep left → middle → right order
        right = [b for b in buttons if b.position == "right"]
        del buttons[len(buttons) - len(right):]
        buttons.append(PowerButton("middle", zone2, "zone2-power", params={"zone": ZONE2}))
        buttons.extend(right)
        return True
