"""Configuration sources.

Both variants satisfy ConfigSource; pick one with create_config_source.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from ..config import CONFIG_MODE, MAPPING_FILE, SCENARIO_DIR
from ..device_config import DeviceConfig, DeviceGroups
from .local import LocalConfigSource
from .remote import RemoteConfigSource
from .scenario import ScenarioResolver


class ConfigSource(Protocol):
    async def fetch_device_config(self, device_id: str) -> DeviceConfig:
        """Raises DeviceNotFoundError for unknown ids."""
        ...

    async def fetch_device_groups(self, device_id: str) -> DeviceGroups: ...

    async def check_reachable(self) -> bool: ...

    async def discover_devices(self) -> List[Dict[str, str]]: ...


def create_config_source(
    mode: Optional[str] = None,
    api_base_url: Optional[str] = None,
    mapping_file: Optional[str] = None,
    scenario_dir: Optional[str] = None,
) -> ConfigSource:
    mode = mode or CONFIG_MODE
    if mode == "local":
        return LocalConfigSource(mapping_file or MAPPING_FILE, scenario_dir or SCENARIO_DIR)
    if mode == "remote":
        return RemoteConfigSource(api_base_url)
    raise ValueError(f"Unknown config mode '{mode}' (expected 'remote' or 'local')")


__all__ = [
    "ConfigSource",
    "LocalConfigSource",
    "RemoteConfigSource",
    "ScenarioResolver",
    "create_config_source",
]
