"""Scenario resolver: synthesizes a virtual device config from a scenario file.

A scenario ``{scenario_dir}/{scenario_id}.json`` names the devices that
fill each role (``volume``, ``playback``, ...). The synthesized
``ScenarioDevice`` config has start/stop power commands plus the role
commands, each with ``location`` set to the device that executes it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..device_config import (
    DeviceConfig,
    DeviceGroup,
    DeviceGroups,
    GroupAction,
    validate_device_config,
)
from ..exceptions import DeviceNotFoundError, InvalidDeviceConfigError

logger = logging.getLogger(__name__)

SCENARIO_CLASS = "ScenarioDevice"
SCENARIO_CONFIG_CLASS = "ScenarioDeviceConfig"
SCENARIO_LOCATION = "scenario"

REQUIRED_FIELDS = ("scenario_id", "name", "roles")

# role → commands (key, description); keys are the action names
ROLE_COMMANDS: Dict[str, List[Tuple[str, str]]] = {
    "volume": [("volume_up", "Volume Up"), ("volume_down", "Volume Down"), ("mute", "Mute")],
    "playback": [("play", "Play"), ("pause", "Pause"), ("stop", "Stop")],
    "navigation": [("up", "Up"), ("down", "Down"), ("left", "Left"), ("right", "Right"), ("ok", "OK")],
    "tracks": [("next_track", "Next Track"), ("prev_track", "Previous Track")],
    "menu": [("menu", "Menu"), ("back", "Back"), ("home", "Home")],
    "screen": [("aspect_ratio", "Aspect Ratio"), ("zoom", "Zoom")],
}


class ScenarioResolver:
    def __init__(self, scenario_dir: Union[str, Path]):
        self.scenario_dir = Path(scenario_dir)

    def path_for(self, scenario_id: str) -> Path:
        return self.scenario_dir / f"{scenario_id}.json"

    def exists(self, scenario_id: str) -> bool:
        return self.path_for(scenario_id).is_file()

    def list_scenario_ids(self) -> List[str]:
        if not self.scenario_dir.is_dir():
            return []
        return sorted(p.stem for p in self.scenario_dir.glob("*.json"))

    def load(self, scenario_id: str) -> Dict[str, Any]:
        path = self.path_for(scenario_id)
        if not path.is_file():
            raise DeviceNotFoundError(scenario_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidDeviceConfigError(f"Invalid scenario file {path}: {e}") from e
        missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
        if missing:
            raise InvalidDeviceConfigError(
                f"Invalid scenario {scenario_id}: missing {', '.join(missing)}"
            )
        return data

    def resolve(self, scenario_id: str) -> Tuple[DeviceConfig, DeviceGroups]:
        """Synthesized config and groups for a scenario."""
        scenario = self.load(scenario_id)
        roles: Dict[str, str] = scenario["roles"]
        name = scenario["name"]

        commands: Dict[str, Dict[str, Any]] = {
            "power_on": {
                "action": "start_scenario",
                "location": SCENARIO_LOCATION,
                "description": f"Start {name}",
                "group": "power",
            },
            "power_off": {
                "action": "stop_scenario",
                "location": SCENARIO_LOCATION,
                "description": f"Stop {name}",
                "group": "power",
            },
        }
        groups = [DeviceGroup(
            group_id="power",
            group_name="Power",
            actions=[
                GroupAction(name="power_on", description=f"Start {name}"),
                GroupAction(name="power_off", description=f"Stop {name}"),
            ],
        )]

        for role, device_id in sorted(roles.items()):
            role_commands = ROLE_COMMANDS.get(role)
            if role_commands is None:
                logger.info("Scenario %s: role '%s' has no command set, ignored", scenario_id, role)
                continue
            for key, description in role_commands:
                commands[key] = {
                    "action": key,
                    "location": device_id,
                    "description": description,
                    "group": role,
                }
            groups.append(DeviceGroup(
                group_id=role,
                group_name=role[:1].upper() + role[1:],
                actions=[GroupAction(name=key, description=d) for key, d in role_commands],
            ))

        config = validate_device_config({
            "device_id": scenario["scenario_id"],
            "device_name": name,
            "device_class": SCENARIO_CLASS,
            "config_class": SCENARIO_CONFIG_CLASS,
            "commands": commands,
        })
        logger.info("Resolved scenario %s: %d role(s), %d command(s)", scenario_id, len(roles), len(commands))
        return config, DeviceGroups(device_id=config.device_id, groups=groups)
