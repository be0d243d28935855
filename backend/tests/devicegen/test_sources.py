"""Tests for devicegen.sources: remote client, local mapping, scenarios."""

import json

import httpx
import pytest

from devicegen.exceptions import ConfigSourceError, DeviceNotFoundError, InvalidDeviceConfigError
from devicegen.sources import (
    LocalConfigSource,
    RemoteConfigSource,
    ScenarioResolver,
    create_config_source,
)


# ---------------------------------------------------------------------------
# Remote
# ---------------------------------------------------------------------------


def remote(routes):
    """RemoteConfigSource over a MockTransport; ``routes`` maps path → response or callable."""
    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        if callable(route):
            return route(request)
        return route

    return RemoteConfigSource("http://devices.test/", transport=httpx.MockTransport(handler))


class TestRemoteConfigSource:
    @pytest.mark.asyncio
    async def test_fetch_config(self, lg_payload):
        source = remote({"/config/device/living_room_tv": httpx.Response(200, json=lg_payload)})
        config = await source.fetch_device_config("living_room_tv")
        assert config.device_class == "LgTv"
        assert "set_volume" in config.commands
        await source.close()

    @pytest.mark.asyncio
    async def test_unknown_device(self):
        source = remote({})
        with pytest.raises(DeviceNotFoundError) as exc_info:
            await source.fetch_device_config("ghost")
        assert exc_info.value.device_id == "ghost"

    @pytest.mark.asyncio
    async def test_server_error(self):
        source = remote({"/config/device/tv": httpx.Response(500, text="internal")})
        with pytest.raises(ConfigSourceError, match="500") as exc_info:
            await source.fetch_device_config("tv")
        assert not isinstance(exc_info.value, DeviceNotFoundError)

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        source = remote({"/config/device/tv": httpx.Response(200, text="<html>")})
        with pytest.raises(ConfigSourceError, match="non-JSON"):
            await source.fetch_device_config("tv")

    @pytest.mark.asyncio
    async def test_invalid_payload(self):
        source = remote({"/config/device/tv": httpx.Response(200, json={"device_id": "tv"})})
        with pytest.raises(InvalidDeviceConfigError):
            await source.fetch_device_config("tv")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        source = remote({"/config/device/tv": refuse})
        with pytest.raises(ConfigSourceError, match="connection error"):
            await source.fetch_device_config("tv")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def slow(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        source = remote({"/config/device/tv": slow})
        with pytest.raises(ConfigSourceError, match="timed out"):
            await source.fetch_device_config("tv")

    @pytest.mark.asyncio
    async def test_groups_from_service(self):
        groups = {"device_id": "tv", "groups": [{"group_id": "power", "group_name": "Power", "actions": []}]}
        source = remote({"/devices/tv/groups": httpx.Response(200, json=groups)})
        result = await source.fetch_device_groups("tv")
        assert result.group_ids() == ["power"]

    @pytest.mark.asyncio
    async def test_groups_derived_when_missing(self, lg_payload):
        source = remote({"/config/device/living_room_tv": httpx.Response(200, json=lg_payload)})
        groups = await source.fetch_device_groups("living_room_tv")
        assert groups.group_ids()[0] == "default"
        assert "volume" in groups.group_ids()

    @pytest.mark.asyncio
    async def test_check_reachable(self):
        assert await remote({"/system": httpx.Response(200, json={"ok": True})}).check_reachable() is True
        assert await remote({"/system": httpx.Response(503, text="down")}).check_reachable() is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        [{"device_id": "tv", "device_class": "LgTv"}, {"name": "no id"}],
        {"devices": [{"device_id": "tv", "device_class": "LgTv"}]},
    ])
    async def test_discover_devices(self, body):
        source = remote({"/devices": httpx.Response(200, json=body)})
        assert await source.discover_devices() == [{"device_id": "tv", "device_class": "LgTv"}]

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        source = remote({})
        await source._get_client()
        await source.close()
        await source.close()


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


MOVIE_NIGHT = {
    "scenario_id": "movie_night",
    "name": "Movie Night",
    "roles": {"volume": "processor", "playback": "ld_player", "lighting": "dimmer"},
}


@pytest.fixture
def scenario_dir(tmp_path):
    directory = tmp_path / "scenarios"
    directory.mkdir()
    (directory / "movie_night.json").write_text(json.dumps(MOVIE_NIGHT), encoding="utf-8")
    return directory


class TestScenarioResolver:
    def test_list(self, scenario_dir):
        assert ScenarioResolver(scenario_dir).list_scenario_ids() == ["movie_night"]
        assert ScenarioResolver(scenario_dir / "nope").list_scenario_ids() == []

    def test_resolve_commands(self, scenario_dir):
        config, groups = ScenarioResolver(scenario_dir).resolve("movie_night")

        assert config.device_class == "ScenarioDevice"
        assert config.commands["power_on"].action == "start_scenario"
        assert config.commands["power_on"].location == "scenario"
        assert config.commands["volume_up"].location == "processor"
        assert config.commands["play"].location == "ld_player"
        # roles without a command set are ignored
        assert groups.group_ids() == ["power", "playback", "volume"]

    def test_missing_scenario(self, scenario_dir):
        with pytest.raises(DeviceNotFoundError):
            ScenarioResolver(scenario_dir).resolve("party")

    def test_incomplete_scenario(self, scenario_dir):
        (scenario_dir / "broken.json").write_text(json.dumps({"scenario_id": "broken"}), encoding="utf-8")
        with pytest.raises(InvalidDeviceConfigError, match="name, roles"):
            ScenarioResolver(scenario_dir).load("broken")

    def test_unparseable_scenario(self, scenario_dir):
        (scenario_dir / "bad.json").write_text("{", encoding="utf-8")
        with pytest.raises(InvalidDeviceConfigError):
            ScenarioResolver(scenario_dir).load("bad")


# ---------------------------------------------------------------------------
# Local
# ---------------------------------------------------------------------------


@pytest.fixture
def local_source(tmp_path, scenario_dir, lg_payload, emotiva_payload) -> LocalConfigSource:
    config_dir = tmp_path / "config"
    (config_dir / "devices").mkdir(parents=True)
    (config_dir / "devices" / "living_room_tv.json").write_text(json.dumps(lg_payload), encoding="utf-8")
    (config_dir / "devices" / "processor.json").write_text(json.dumps(emotiva_payload), encoding="utf-8")
    mapping = {
        "LgTv": {
            "stateClass": "wb_mqtt_bridge.domain.devices.lg_tv:LgTvState",
            "deviceConfigs": ["devices/living_room_tv.json", "devices/missing.json"],
        },
        "EMotivaXMC2": {
            "stateClass": "EmotivaState",
            "stateFile": "states/emotiva.py",
            "deviceConfigs": ["devices/processor.json"],
        },
    }
    mapping_file = config_dir / "device-state-mapping.json"
    mapping_file.write_text(json.dumps(mapping), encoding="utf-8")
    return LocalConfigSource(mapping_file, scenario_dir)


class TestLocalConfigSource:
    @pytest.mark.asyncio
    async def test_fetch_config(self, local_source):
        config = await local_source.fetch_device_config("processor")
        assert config.device_class == "EMotivaXMC2"

    @pytest.mark.asyncio
    async def test_fetch_scenario(self, local_source):
        config = await local_source.fetch_device_config("movie_night")
        groups = await local_source.fetch_device_groups("movie_night")
        assert config.device_class == "ScenarioDevice"
        assert groups.group_ids()[0] == "power"

    @pytest.mark.asyncio
    async def test_unknown_device(self, local_source):
        with pytest.raises(DeviceNotFoundError):
            await local_source.fetch_device_config("ghost")

    @pytest.mark.asyncio
    async def test_groups_derived(self, local_source):
        groups = await local_source.fetch_device_groups("living_room_tv")
        assert "pointer" in groups.group_ids()

    @pytest.mark.asyncio
    async def test_discover(self, local_source):
        devices = await local_source.discover_devices()
        assert devices == [
            {"device_id": "living_room_tv", "device_class": "LgTv"},
            {"device_id": "processor", "device_class": "EMotivaXMC2"},
            {"device_id": "movie_night", "device_class": "ScenarioDevice"},
        ]

    @pytest.mark.asyncio
    async def test_reachable_only_with_mapping(self, local_source, tmp_path):
        assert await local_source.check_reachable() is True
        assert await LocalConfigSource(tmp_path / "none.json").check_reachable() is False

    def test_missing_mapping_raises(self, tmp_path):
        with pytest.raises(ConfigSourceError):
            LocalConfigSource(tmp_path / "none.json").load_mapping()

    def test_list_ids(self, local_source):
        assert local_source.list_device_ids() == ["living_room_tv", "processor", "movie_night"]
        assert local_source.list_device_ids(include_scenarios=False) == ["living_room_tv", "processor"]
        assert local_source.list_device_ids_by_class("LgTv") == ["living_room_tv"]
        assert local_source.list_device_ids_by_class("ScenarioDevice") == ["movie_night"]
        with pytest.raises(DeviceNotFoundError):
            local_source.list_device_ids_by_class("Heater")

    def test_state_reference(self, local_source):
        assert local_source.get_state_reference("LgTv") == "wb_mqtt_bridge.domain.devices.lg_tv:LgTvState"
        ref = local_source.get_state_reference("EMotivaXMC2")
        assert ref.endswith("states/emotiva.py:EmotivaState")
        assert local_source.get_state_reference("AppleTVDevice") is None


class TestCreateConfigSource:
    def test_modes(self, tmp_path):
        assert isinstance(create_config_source("remote", "http://x"), RemoteConfigSource)
        assert isinstance(create_config_source("local", mapping_file=str(tmp_path / "m.json")), LocalConfigSource)
        with pytest.raises(ValueError):
            create_config_source("ftp")
