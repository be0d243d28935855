"""Infrared remote family (Wirenboard IR blaster).

IR devices have no feedback channel, so the state shape only tracks the
last command sent and an assumed power flag.
"""

from __future__ import annotations

from typing import Optional

from ..device_config import DeviceConfig, DeviceGroups
from ..structure import DeviceSpecialCase, RemoteDeviceStructure, StateDefinition, StateField
from ..zones import classify
from .common import assemble, build_actions, static_state

IR_STATE_FIELDS = (
    StateField("power", "boolean", optional=True, description="Device power state (assumed)"),
    StateField("lastAction", "string", optional=True, description="Last executed action"),
)


class IrRemoteStrategy:
    device_class = "WirenboardIRDevice"

    def analyze_structure(
        self,
        config: DeviceConfig,
        groups: DeviceGroups,
        state: Optional[StateDefinition] = None,
    ) -> RemoteDeviceStructure:
        actions = build_actions(config, groups)
        zones = classify(groups, actions)
        rom_positions = {
            c.action: c.rom_position
            for c in config.commands.values()
            if c.rom_position
        }
        special = DeviceSpecialCase(
            device_class=self.device_class,
            case_type="wirenboard-ir-commands",
            configuration={"romPositions": dict(sorted(rom_positions.items()))},
        )
        return assemble(
            config, zones, actions,
            state or static_state(config, IR_STATE_FIELDS),
            [special],
        )
