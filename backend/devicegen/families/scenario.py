"""Virtual composite family (scenario devices).

A scenario bundles commands that other devices execute: each role-mapped
command carries the executing device's id in ``location`` and that value
is passed through untouched. Power maps to starting and stopping the
scenario itself.
"""

from __future__ import annotations

from typing import List, Optional, Set

from ..device_config import DeviceConfig, DeviceGroups, effective_group
from ..structure import (
    ActionIcon,
    DeviceSpecialCase,
    ProcessedAction,
    RemoteDeviceStructure,
    StateDefinition,
    StateField,
    ZoneId,
)
from ..zones import ZONE_RULES, assign_zones, build_zones, finalize_zones, match_score
from .common import assemble, process_action

SCENARIO_LOCATION = "scenario"
SCENARIO_POWER = {
    "power_on": ("Start Scenario", "Play", "primary"),
    "power_off": ("Stop Scenario", "Square", "secondary"),
}


def enabled_zones(groups: DeviceGroups) -> Set[ZoneId]:
    """Zones backed by at least one declared group; power is always on."""
    enabled = {ZoneId.POWER}
    for group in groups.groups:
        for rule in ZONE_RULES:
            if match_score(group.group_id, rule.group_keywords) is not None:
                enabled.add(rule.zone_id)
                break
    return enabled


class ScenarioStrategy:
    device_class = "ScenarioDevice"

    def analyze_structure(
        self,
        config: DeviceConfig,
        groups: DeviceGroups,
        state: Optional[StateDefinition] = None,
    ) -> RemoteDeviceStructure:
        actions = self._build_actions(config, groups)
        zones = build_zones(assign_zones(groups, actions))
        enabled = enabled_zones(groups)
        for zone_id, zone in zones.items():
            zone.enabled = zone_id in enabled

        special = DeviceSpecialCase(
            device_class=self.device_class,
            case_type="scenario-virtual-device",
            configuration={
                "scenarioBased": True,
                "powerGroupMapsToScenario": True,
                "selectiveEnablement": True,
                "enabledZones": sorted(z.value for z in enabled),
                "targetDevices": sorted({
                    a.location for a in actions
                    if a.location and a.location != SCENARIO_LOCATION
                }),
            },
        )
        return assemble(
            config, finalize_zones(zones.values()), actions,
            state or self._state(config),
            [special],
        )

    def _build_actions(self, config: DeviceConfig, groups: DeviceGroups) -> List[ProcessedAction]:
        declared = groups.group_ids() if groups.groups else None
        actions: List[ProcessedAction] = []
        for key, (display, icon, style) in SCENARIO_POWER.items():
            command = config.commands.get(key)
            actions.append(ProcessedAction(
                action_name=key,
                display_name=display,
                description=command.description if command else f"{display}: {config.device_name}",
                group="power",
                icon=ActionIcon("lucide", icon, fallback_icon="Settings", confidence=0.8),
                ui_hints={"buttonStyle": style},
                location=command.location if command else SCENARIO_LOCATION,
            ))
        for key, command in config.commands.items():
            if key in SCENARIO_POWER:
                continue
            action = process_action(command, effective_group(command, declared))
            # role-mapped commands are addressed by their key
            action.action_name = key
            actions.append(action)
        return actions

    def _state(self, config: DeviceConfig) -> StateDefinition:
        return StateDefinition(
            interface_name=f"{config.device_class}State",
            fields=[
                StateField("scenario_active", "boolean", description="Whether the scenario is running",
                           default_value=False),
                StateField("last_scenario_action", "string", optional=True,
                           description="Last scenario action executed"),
            ],
            imports=["BaseDeviceState"],
            extends=["BaseDeviceState"],
        )
