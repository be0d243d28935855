"""Device family strategies.

Each family is a standalone class exposing ``device_class`` and
``analyze_structure(config, groups, state=None)``; FAMILY_STRATEGIES maps
the family tag to its strategy. Adding a family means adding a module and
a table entry.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from ..device_config import DeviceConfig, DeviceGroups
from ..exceptions import UnsupportedDeviceClassError
from ..structure import RemoteDeviceStructure, StateDefinition
from .apple_tv import AppleTvStrategy
from .emotiva import EmotivaStrategy
from .ir_remote import IrRemoteStrategy
from .kitchen_hood import KitchenHoodStrategy
from .lg_tv import LgTvStrategy
from .scenario import ScenarioStrategy


class FamilyStrategy(Protocol):
    """Interface every device family implements."""

    device_class: str

    def analyze_structure(
        self,
        config: DeviceConfig,
        groups: DeviceGroups,
        state: Optional[StateDefinition] = None,
    ) -> RemoteDeviceStructure:
        """Turn a validated config + groups into a RemoteDeviceStructure.

        Args:
            config: Validated device configuration
            groups: Device groups (supplied or derived)
            state: Introspected state definition; the family's static
                shape is used when omitted
        """
        ...


FAMILY_STRATEGIES: Dict[str, FamilyStrategy] = {
    s.device_class: s
    for s in (
        IrRemoteStrategy(),
        LgTvStrategy(),
        EmotivaStrategy(),
        AppleTvStrategy(),
        KitchenHoodStrategy(),
        ScenarioStrategy(),
    )
}


def list_supported_families() -> List[str]:
    return list(FAMILY_STRATEGIES)


def get_strategy(device_class: str) -> FamilyStrategy:
    """Look up the strategy for a family tag.

    Raises:
        UnsupportedDeviceClassError: no strategy is registered for the tag
    """
    strategy = FAMILY_STRATEGIES.get(device_class)
    if strategy is None:
        raise UnsupportedDeviceClassError(device_class, list_supported_families())
    return strategy


__all__ = [
    "FAMILY_STRATEGIES",
    "FamilyStrategy",
    "get_strategy",
    "list_supported_families",
]
