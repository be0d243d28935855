"""Local configuration source: device configs on disk via a mapping file.

Mapping file layout::

    {
      "LgTv": {
        "stateClass": "wb_mqtt_bridge.domain.devices.lg_tv:LgTvState",
        "deviceConfigs": ["devices/living_room_tv.json"]
      }
    }

Config paths are relative to the mapping file. Ids not found in any
config are looked up as scenarios.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..config import SCENARIO_DIR
from ..device_config import (
    DeviceConfig,
    DeviceGroups,
    derive_groups_from_config,
    validate_device_config,
)
from ..exceptions import ConfigSourceError, DeviceNotFoundError
from .scenario import SCENARIO_CLASS, ScenarioResolver

logger = logging.getLogger(__name__)


class LocalConfigSource:
    def __init__(
        self,
        mapping_file: Union[str, Path],
        scenario_dir: Union[str, Path, None] = None,
    ):
        self.mapping_file = Path(mapping_file)
        self.scenarios = ScenarioResolver(scenario_dir or SCENARIO_DIR)

    def load_mapping(self) -> Dict[str, Dict[str, Any]]:
        try:
            data = json.loads(self.mapping_file.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigSourceError(f"Mapping file not found (no connection to local config): {self.mapping_file}") from e
        except json.JSONDecodeError as e:
            raise ConfigSourceError(f"Failed to load mapping file {self.mapping_file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigSourceError(f"Mapping file {self.mapping_file} must hold an object")
        return data

    def _config_paths(self, device_class: Optional[str] = None) -> Iterator[Tuple[str, Path]]:
        mapping = self.load_mapping()
        base = self.mapping_file.parent
        for cls, info in mapping.items():
            if device_class is not None and cls != device_class:
                continue
            for rel in info.get("deviceConfigs", []):
                yield cls, base / rel

    def _scan(self, device_class: Optional[str] = None) -> Iterator[Tuple[str, Path, Dict[str, Any]]]:
        for cls, path in self._config_paths(device_class):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Could not read config file %s: %s", path, e)
                continue
            yield cls, path, data

    # ------------------------------------------------------------------
    # ConfigSource
    # ------------------------------------------------------------------

    async def fetch_device_config(self, device_id: str) -> DeviceConfig:
        for _cls, _path, data in self._scan():
            if isinstance(data, dict) and data.get("device_id") == device_id:
                return validate_device_config(data)
        if self.scenarios.exists(device_id):
            return self.scenarios.resolve(device_id)[0]
        raise DeviceNotFoundError(device_id)

    async def fetch_device_groups(self, device_id: str) -> DeviceGroups:
        if self.scenarios.exists(device_id) and device_id not in self.list_device_ids(include_scenarios=False):
            return self.scenarios.resolve(device_id)[1]
        return derive_groups_from_config(await self.fetch_device_config(device_id))

    async def check_reachable(self) -> bool:
        return self.mapping_file.is_file()

    async def discover_devices(self) -> List[Dict[str, str]]:
        devices = [
            {"device_id": data["device_id"], "device_class": data.get("device_class", cls)}
            for cls, _path, data in self._scan()
            if isinstance(data, dict) and data.get("device_id")
        ]
        devices += [{"device_id": sid, "device_class": SCENARIO_CLASS} for sid in self.scenarios.list_scenario_ids()]
        return devices

    # ------------------------------------------------------------------
    # Mapping queries
    # ------------------------------------------------------------------

    def list_device_ids(self, include_scenarios: bool = True) -> List[str]:
        ids = [data["device_id"] for _cls, _path, data in self._scan()
               if isinstance(data, dict) and data.get("device_id")]
        if include_scenarios:
            ids += [sid for sid in self.scenarios.list_scenario_ids() if sid not in ids]
        return ids

    def list_device_ids_by_class(self, device_class: str) -> List[str]:
        if device_class == SCENARIO_CLASS:
            return self.scenarios.list_scenario_ids()
        if device_class not in self.load_mapping():
            raise DeviceNotFoundError(f"class {device_class}")
        return [data["device_id"] for _cls, _path, data in self._scan(device_class)
                if isinstance(data, dict) and data.get("device_id")]

    def get_state_reference(self, device_class: str) -> Optional[str]:
        """``module:Class`` (or ``file.py:Class``) schema reference for a class."""
        info = self.load_mapping().get(device_class) or {}
        state_class = info.get("stateClass")
        state_file = info.get("stateFile")
        if state_file and state_class and ":" not in state_class:
            return f"{self.mapping_file.parent / state_file}:{state_class}"
        return state_class or None
