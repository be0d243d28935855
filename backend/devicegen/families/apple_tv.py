"""Streaming box family (Apple TV)."""

from __future__ import annotations

from typing import Optional

from ..device_config import DeviceConfig, DeviceGroups
from ..structure import DeviceSpecialCase, RemoteDeviceStructure, StateDefinition, StateField, ZoneId
from ..zones import assign_zones, build_zones, finalize_zones
from .common import assemble, build_actions, static_state

APPLE_TV_STATE_FIELDS = (
    StateField("power", "boolean", optional=True, description="Power state", default_value=False),
    StateField("playback_state", "string", optional=True, description="idle | playing | paused"),
    StateField("current_app", "string", optional=True, description="Foreground application"),
    StateField("volume", "number", optional=True, description="Volume level", default_value=0),
)

APPLE_TV_ICON_OVERRIDES = {
    "siri": "Mic",
    "menu": "Menu",
    "home": "Tv",
    "play_pause": "Play",
}

VOICE_ACTIONS = ("siri", "voice")


class AppleTvStrategy:
    device_class = "AppleTVDevice"

    def analyze_structure(
        self,
        config: DeviceConfig,
        groups: DeviceGroups,
        state: Optional[StateDefinition] = None,
    ) -> RemoteDeviceStructure:
        actions = build_actions(config, groups, APPLE_TV_ICON_OVERRIDES)
        voice = next((a for a in actions if a.action_name.lower() in VOICE_ACTIONS), None)
        zones = build_zones(assign_zones(groups, actions))

        # Siri sits on the remote next to the touch surface: put it on a free aux slot
        nav = zones[ZoneId.MENU].content.navigation_cluster
        if voice is not None and nav is not None and all(a is not voice for a in nav.slots().values()):
            if nav.aux4_action is None:
                nav.aux4_action = voice

        special = DeviceSpecialCase(
            device_class=self.device_class,
            case_type="appletv-streaming",
            configuration={"hasVoiceControl": voice is not None},
        )
        return assemble(
            config, finalize_zones(zones.values()), actions,
            state or static_state(config, APPLE_TV_STATE_FIELDS),
            [special],
        )
