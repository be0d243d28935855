"""Root conftest for pipeline and API tests.

Provides:
- Device configuration payloads for each supported family
- An in-memory ConfigSource and a static schema introspector
- FastAPI AsyncClient with the pipeline dependencies overridden
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from devicegen.device_config import (
    DeviceConfig,
    DeviceGroups,
    derive_groups_from_config,
    validate_device_config,
)
from devicegen.exceptions import DeviceNotFoundError
from devicegen.generator import DevicePageGenerator
from devicegen.integration.manifest import ManifestStore
from devicegen.schema import IntrospectionResult, fallback_definition


# ---------------------------------------------------------------------------
# Config payloads
# ---------------------------------------------------------------------------


def command(action: str, group: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    cmd: Dict[str, Any] = {"action": action, "description": extra.pop("description", "")}
    if group:
        cmd["group"] = group
    cmd.update(extra)
    return cmd


def payload(device_id: str, device_class: str, commands: Dict[str, Dict[str, Any]],
            name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "device_id": device_id,
        "device_name": name or device_id.replace("_", " ").title(),
        "device_class": device_class,
        "config_class": f"{device_class}Config",
        "commands": commands,
    }


VOLUME_PARAM = [{"name": "level", "type": "range", "min": 0, "max": 50, "required": True}]


@pytest.fixture
def ir_payload() -> Dict[str, Any]:
    return payload("ld_player", "WirenboardIRDevice", {
        "power_on": command("power_on", "power", rom_position="1"),
        "power_off": command("power_off", "power", rom_position="2"),
        "play": command("play", "playback", rom_position="3"),
        "pause": command("pause", "playback", rom_position="4"),
        "up": command("up", "menu", rom_position="5"),
        "down": command("down", "menu", rom_position="6"),
        "ok": command("ok", "menu", rom_position="7"),
        "eject": command("eject", "tracks", rom_position="8"),
    }, name="LD Player")


@pytest.fixture
def lg_payload() -> Dict[str, Any]:
    return payload("living_room_tv", "LgTv", {
        "power_on": command("power_on", "power"),
        "power_off": command("power_off", "power"),
        "set_volume": command("set_volume", "volume", params=[
            {"name": "level", "type": "range", "min": 0, "max": 100, "required": True},
        ]),
        "mute": command("mute", "volume"),
        "get_available_inputs": command("get_available_inputs", "inputs"),
        "set_input": command("set_input", "inputs", params=[
            {"name": "input_source", "type": "string", "required": True},
        ]),
        "get_available_apps": command("get_available_apps", "apps"),
        "launch_app": command("launch_app", "apps", params=[
            {"name": "app_name", "type": "string", "required": True},
        ]),
        "move_cursor": command("move_cursor", "pointer", params=[
            {"name": "x", "type": "integer", "required": True},
            {"name": "y", "type": "integer", "required": True},
        ]),
        "click": command("click", "pointer"),
        "home": command("home", "menu"),
        "up": command("up", "menu"),
        "ok": command("ok", "menu"),
    }, name="Living Room TV")


@pytest.fixture
def emotiva_payload() -> Dict[str, Any]:
    return payload("processor", "EMotivaXMC2", {
        "power_on": command("power_on", "power"),
        "power_off": command("power_off", "power"),
        "zone2_power_on": command("zone2_power_on", "power"),
        "set_volume": command("set_volume", "volume", params=VOLUME_PARAM),
        "zone2_set_volume": command("zone2_set_volume", "volume", params=VOLUME_PARAM),
        "mute_toggle": command("mute_toggle", "volume"),
        "set_input": command("set_input", "inputs", params=[
            {"name": "input", "type": "string", "required": True},
        ]),
    }, name="eMotiva XMC2")


@pytest.fixture
def hood_payload() -> Dict[str, Any]:
    return payload("kitchen_hood", "BroadlinkKitchenHood", {
        "power_on": command("power_on", "power"),
        "power_off": command("power_off", "power"),
        "set_speed": command("set_speed", "fan", params=[
            {"name": "speed", "type": "range", "min": 0, "max": 4, "required": True},
        ]),
        "fan_speed_up": command("fan_speed_up", "fan"),
        "light_on": command("light_on", "light"),
        "light_off": command("light_off", "light"),
        "noop": command("noop", "noops"),
    })


@pytest.fixture
def apple_payload() -> Dict[str, Any]:
    return payload("apple_tv", "AppleTVDevice", {
        "power_on": command("power_on", "power"),
        "up": command("up", "navigation"),
        "down": command("down", "navigation"),
        "left": command("left", "navigation"),
        "right": command("right", "navigation"),
        "select": command("select", "navigation"),
        "menu": command("menu", "navigation"),
        "home": command("home", "navigation"),
        "siri": command("siri", "navigation"),
        "play": command("play", "playback"),
        "pause": command("pause", "playback"),
    }, name="Apple TV")


@pytest.fixture
def scenario_payload() -> Dict[str, Any]:
    return payload("movie_night", "ScenarioDevice", {
        "power_on": command("start_scenario", "power", location="scenario"),
        "power_off": command("stop_scenario", "power", location="scenario"),
        "volume_up": command("volume_up", "volume", location="processor"),
        "volume_down": command("volume_down", "volume", location="processor"),
        "play": command("play", "playback", location="ld_player"),
    }, name="Movie Night")


@pytest.fixture
def config_of():
    """Validate a payload into (config, derived groups)."""
    def _build(data: Dict[str, Any]):
        config = validate_device_config(data)
        return config, derive_groups_from_config(config)
    return _build


# ---------------------------------------------------------------------------
# Fake configuration source
# ---------------------------------------------------------------------------


class FakeSource:
    """In-memory ConfigSource; ``errors`` maps device ids to exceptions (or lists of them)."""

    def __init__(self, payloads: List[Dict[str, Any]], reachable: bool = True):
        self.payloads = {p["device_id"]: p for p in payloads}
        self.reachable = reachable
        self.errors: Dict[str, Any] = {}
        self.calls: List[str] = []
        self.state_refs: Dict[str, str] = {}

    def _raise_pending(self, device_id: str) -> None:
        pending = self.errors.get(device_id)
        if pending is None:
            return
        if isinstance(pending, list):
            if pending:
                raise pending.pop(0)
            return
        raise pending

    async def fetch_device_config(self, device_id: str) -> DeviceConfig:
        self.calls.append(device_id)
        self._raise_pending(device_id)
        if device_id not in self.payloads:
            raise DeviceNotFoundError(device_id)
        return validate_device_config(self.payloads[device_id])

    async def fetch_device_groups(self, device_id: str) -> DeviceGroups:
        if device_id not in self.payloads:
            raise DeviceNotFoundError(device_id)
        return derive_groups_from_config(validate_device_config(self.payloads[device_id]))

    async def check_reachable(self) -> bool:
        return self.reachable

    async def discover_devices(self) -> List[Dict[str, str]]:
        return [{"device_id": k, "device_class": v["device_class"]} for k, v in self.payloads.items()]

    def get_state_reference(self, device_class: str) -> Optional[str]:
        return self.state_refs.get(device_class)


class StaticIntrospector:
    """Introspector stand-in returning a fixed definition."""

    def __init__(self, definition=None, success: bool = True):
        self.definition = definition
        self.success = success
        self.refs: List[str] = []

    async def introspect(self, schema_ref: str) -> IntrospectionResult:
        self.refs.append(schema_ref)
        class_name = schema_ref.rsplit(":", 1)[-1]
        definition = self.definition or fallback_definition(class_name)
        return IntrospectionResult(definition, self.success, None if self.success else "boom", class_name)


@pytest.fixture
def fake_source(ir_payload, lg_payload, emotiva_payload, apple_payload, scenario_payload) -> FakeSource:
    return FakeSource([ir_payload, lg_payload, emotiva_payload, apple_payload, scenario_payload])


@pytest.fixture
def introspector() -> StaticIntrospector:
    return StaticIntrospector()


@pytest.fixture
def source_factory():
    """The FakeSource class, for tests that need their own device set."""
    return FakeSource


@pytest.fixture
def introspector_factory():
    return StaticIntrospector


@pytest.fixture
def make_payload():
    """``make_payload(device_id, device_class, commands, name=None)``."""
    return payload


@pytest.fixture
def make_command():
    """``make_command(action, group=None, **fields)``."""
    return command


# ---------------------------------------------------------------------------
# FastAPI test client (pipeline dependencies point at tmp_path)
# ---------------------------------------------------------------------------


@pytest.fixture
def api_generator(tmp_path, fake_source, introspector) -> DevicePageGenerator:
    output_dir = tmp_path / "src" / "pages" / "devices"
    return DevicePageGenerator(
        fake_source,
        output_dir=output_dir,
        types_dir=tmp_path / "src" / "types" / "generated",
        introspector=introspector,
        manifest=ManifestStore(output_dir),
    )


@pytest_asyncio.fixture
async def client(api_generator: DevicePageGenerator) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI routes.

    The lifespan is not run; get_generator / get_manifest are overridden
    so no real configuration source is created.
    """
    from devicegen_api.main import app
    from devicegen_api.pipeline import get_generator, get_manifest

    async def _generator() -> DevicePageGenerator:
        return api_generator

    async def _manifest() -> ManifestStore:
        return api_generator.manifest

    app.dependency_overrides[get_generator] = _generator
    app.dependency_overrides[get_manifest] = _manifest
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
