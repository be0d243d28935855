"""Networked display family (LG webOS TV).

Inputs and apps are listed by the TV at runtime, so both dropdowns are
API-populated; the magic-remote pointer gets its own pad.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..device_config import DeviceConfig, DeviceGroups
from ..structure import DeviceSpecialCase, RemoteDeviceStructure, StateDefinition, StateField, ZoneId
from ..zones import classify
from .common import assemble, build_actions, static_state

logger = logging.getLogger(__name__)

LG_STATE_FIELDS = (
    StateField("power", "boolean", optional=True, description="TV power state", default_value=False),
    StateField("volume", "number", optional=True, description="Current volume level", default_value=0),
    StateField("mute", "boolean", optional=True, description="Mute state", default_value=False),
    StateField("current_app", "string", optional=True, description="Foreground application id"),
    StateField("input_source", "string", optional=True, description="Active input source"),
    StateField("connected", "boolean", optional=True, description="WebSocket connection state", default_value=False),
    StateField("ip_address", "string", optional=True, description="TV IP address"),
    StateField("mac_address", "string", optional=True, description="TV MAC address for wake-on-LAN"),
)

LG_ICON_OVERRIDES = {
    "home": "Home",
    "get_available_apps": "Grid3x3",
    "launch_app": "Grid3x3",
    "get_available_inputs": "ArrowLeftRight",
    "set_input": "ArrowLeftRight",
    "move_cursor": "MousePointer",
    "click": "MousePointerClick",
}


class LgTvStrategy:
    device_class = "LgTv"

    def analyze_structure(
        self,
        config: DeviceConfig,
        groups: DeviceGroups,
        state: Optional[StateDefinition] = None,
    ) -> RemoteDeviceStructure:
        actions = build_actions(config, groups, LG_ICON_OVERRIDES)
        zones = classify(groups, actions)
        names = {a.action_name for a in actions}
        has_pointer = any(z.zone_id == ZoneId.POINTER for z in zones)
        if not has_pointer:
            logger.info("LgTv %s: no pointer commands, pointer pad omitted", config.device_id)
        special = DeviceSpecialCase(
            device_class=self.device_class,
            case_type="lg-tv-inputs-apps",
            configuration={
                "usesInputsAPI": "get_available_inputs" in names,
                "usesAppsAPI": "get_available_apps" in names,
                "hasPointerControl": has_pointer,
            },
        )
        return assemble(
            config, zones, actions,
            state or static_state(config, LG_STATE_FIELDS),
            [special],
        )
