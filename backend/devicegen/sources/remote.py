"""HTTP configuration source (device service REST API).

Endpoints:
    GET /config/device/{id}    device configuration
    GET /devices/{id}/groups   device groups
    GET /system                reachability probe
    GET /devices               device listing for discovery

Usage:
    source = RemoteConfigSource("http://localhost:8000")
    config = await source.fetch_device_config("living_room_tv")
    await source.close()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .. import settings
from ..config import DEVICE_API_BASE_URL
from ..device_config import (
    DeviceConfig,
    DeviceGroups,
    derive_groups_from_config,
    validate_device_config,
    validate_device_groups,
)
from ..exceptions import ConfigSourceError, DeviceNotFoundError

logger = logging.getLogger(__name__)


class RemoteConfigSource:
    """Async client for the device configuration service.

    Args:
        base_url: Service base URL. Falls back to DEVICE_API_BASE_URL.
        timeout: HTTP request timeout in seconds.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or DEVICE_API_BASE_URL).rstrip("/")
        self._timeout = timeout or settings.CONFIG_HTTP_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
                limits=httpx.Limits(
                    max_connections=settings.CONFIG_HTTP_MAX_CONNECTIONS,
                    max_keepalive_connections=settings.CONFIG_HTTP_MAX_KEEPALIVE,
                ),
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, device_id: Optional[str] = None) -> Any:
        client = await self._get_client()
        try:
            resp = await client.get(path)
        except httpx.TimeoutException as e:
            raise ConfigSourceError(f"Device API connection timed out: {path}") from e
        except httpx.TransportError as e:
            raise ConfigSourceError(f"Device API connection error: {path} ({e})") from e

        if resp.status_code == 404 and device_id is not None:
            raise DeviceNotFoundError(device_id)
        if resp.status_code != 200:
            raise ConfigSourceError(
                f"Device API error {resp.status_code} for {path}: {resp.text[:200]}"
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ConfigSourceError(f"Device API returned non-JSON body for {path}") from e

    # ------------------------------------------------------------------
    # ConfigSource
    # ------------------------------------------------------------------

    async def fetch_device_config(self, device_id: str) -> DeviceConfig:
        data = await self._get(f"/config/device/{device_id}", device_id)
        return validate_device_config(data)

    async def fetch_device_groups(self, device_id: str) -> DeviceGroups:
        """Groups from the service; derived from the config when the service has none."""
        try:
            data = await self._get(f"/devices/{device_id}/groups", device_id)
        except DeviceNotFoundError:
            logger.info("No groups endpoint data for %s, deriving from config", device_id)
            return derive_groups_from_config(await self.fetch_device_config(device_id))
        return validate_device_groups(data)

    async def check_reachable(self) -> bool:
        try:
            await self._get("/system")
        except ConfigSourceError as e:
            logger.warning("Device API unreachable at %s: %s", self.base_url, e)
            return False
        return True

    async def discover_devices(self) -> List[Dict[str, str]]:
        """``[{device_id, device_class}]`` for every device the service knows."""
        data = await self._get("/devices")
        items = data.get("devices", []) if isinstance(data, dict) else data
        devices = []
        for item in items or []:
            if isinstance(item, dict) and item.get("device_id"):
                devices.append({
                    "device_id": item["device_id"],
                    "device_class": item.get("device_class", ""),
                })
        logger.info("Discovered %d device(s) at %s", len(devices), self.base_url)
        return devices
