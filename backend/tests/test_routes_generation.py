"""Tests for device page generation API routes (devicegen_api/routes/generation.py).

Covers:
- GET /health
- GET /api/v2/families
- POST /api/v2/devices/{device_id}/generate
- POST /api/v2/batch/generate
- GET /api/v2/manifest
- POST /api/v2/validate
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from devicegen.exceptions import InvalidDeviceConfigError, OutputWriteError


def _clean_tsc():
    proc = AsyncMock()
    proc.communicate.return_value = (b"", b"")
    proc.returncode = 0
    return AsyncMock(return_value=proc)


async def _generate(client: AsyncClient, device_id: str, **body) -> dict:
    """Helper: generate one device and return response JSON."""
    resp = await client.post(f"/api/v2/devices/{device_id}/generate", json=body or None)
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestFamilies:
    @pytest.mark.asyncio
    async def test_list(self, client: AsyncClient):
        resp = await client.get("/api/v2/families")
        assert resp.status_code == 200
        assert set(resp.json()["families"]) == {
            "WirenboardIRDevice", "LgTv", "EMotivaXMC2", "AppleTVDevice", "BroadlinkKitchenHood", "ScenarioDevice",
        }


# ---------------------------------------------------------------------------
# POST /api/v2/devices/{device_id}/generate
# ---------------------------------------------------------------------------


class TestGenerateDevice:
    @pytest.mark.asyncio
    async def test_generate_without_body(self, client: AsyncClient):
        data = await _generate(client, "living_room_tv")
        assert data["success"] is True
        assert data["device_class"] == "LgTv"
        assert data["output_path"].endswith("living_room_tv.gen.tsx")
        assert data["route"] == "/devices/living_room_tv"
        assert data["checksum"]
        assert data["hook_path"] is None

    @pytest.mark.asyncio
    async def test_generate_with_schema_ref(self, client: AsyncClient):
        data = await _generate(client, "living_room_tv", schema_ref="pkg.lg:LgTvState")
        assert data["schema_written"] is True
        assert data["schema_path"].endswith("LgTvState.state.ts")
        assert data["hook_path"].endswith("living_room_tv.hooks.ts")

    @pytest.mark.asyncio
    async def test_invalid_schema_ref_rejected(self, client: AsyncClient):
        resp = await client.post("/api/v2/devices/living_room_tv/generate", json={"schema_ref": "LgTvState"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_device(self, client: AsyncClient):
        resp = await client.post("/api/v2/devices/ghost/generate")
        assert resp.status_code == 404
        assert "ghost" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_unsupported_class(self, client: AsyncClient, fake_source, make_payload, make_command):
        fake_source.payloads["heater"] = make_payload("heater", "Heater", {"on": make_command("power_on")})
        resp = await client.post("/api/v2/devices/heater/generate")
        assert resp.status_code == 400
        assert "Unsupported device class: Heater" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_invalid_config(self, client: AsyncClient, fake_source):
        fake_source.errors["living_room_tv"] = InvalidDeviceConfigError("Invalid device configuration structure")
        resp = await client.post("/api/v2/devices/living_room_tv/generate")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_source_unreachable(self, client: AsyncClient, fake_source):
        fake_source.reachable = False
        resp = await client.post("/api/v2/devices/living_room_tv/generate")
        assert resp.status_code == 502

    @pytest.mark.asyncio
    async def test_write_failure(self, client: AsyncClient, fake_source):
        fake_source.errors["living_room_tv"] = OutputWriteError("Failed to write page")
        resp = await client.post("/api/v2/devices/living_room_tv/generate")
        assert resp.status_code == 500


# ---------------------------------------------------------------------------
# POST /api/v2/batch/generate
# ---------------------------------------------------------------------------


class TestBatchGenerate:
    @pytest.mark.asyncio
    async def test_explicit_ids(self, client: AsyncClient):
        resp = await client.post("/api/v2/batch/generate", json={
            "device_ids": ["living_room_tv", "processor", "ghost"],
        })
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["total_processed"] == 3
        assert data["successful"] == 2
        assert data["skipped"] == 1
        assert data["failed"] == 0
        assert data["success_rate"] == pytest.approx(66.7)
        assert data["failed_devices"] == [{
            "device_id": "ghost",
            "error": data["failed_devices"][0]["error"],
            "device_class": None,
            "action": "skipped",
            "error_type": "api_validation",
        }]
        assert len(data["generated_files"]) == 2

    @pytest.mark.asyncio
    async def test_discovery_with_class_filter(self, client: AsyncClient):
        resp = await client.post("/api/v2/batch/generate", json={
            "device_classes": ["AppleTVDevice", "ScenarioDevice"],
        })
        data = resp.json()
        assert sorted(r["device_id"] for r in data["results"]) == ["apple_tv", "movie_night"]
        assert data["performance"]["totalGenerations"] == 2

    @pytest.mark.asyncio
    async def test_duplicate_ids_rejected(self, client: AsyncClient):
        resp = await client.post("/api/v2/batch/generate", json={"device_ids": ["tv", "tv"]})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_concurrency_bounds(self, client: AsyncClient):
        resp = await client.post("/api/v2/batch/generate", json={"max_concurrency": 0})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# GET /api/v2/manifest
# ---------------------------------------------------------------------------


class TestManifest:
    @pytest.mark.asyncio
    async def test_empty(self, client: AsyncClient):
        resp = await client.get("/api/v2/manifest")
        assert resp.status_code == 200
        assert resp.json()["total_devices"] == 0

    @pytest.mark.asyncio
    async def test_after_generation(self, client: AsyncClient):
        await _generate(client, "living_room_tv")
        await _generate(client, "movie_night")

        data = (await client.get("/api/v2/manifest")).json()
        assert data["total_devices"] == 2
        assert data["device_classes"] == ["LgTv", "ScenarioDevice"]
        assert [d["id"] for d in data["devices"]] == ["living_room_tv"]
        assert data["scenarios"][0]["route"] == "/scenario/movie_night"

    @pytest.mark.asyncio
    async def test_unreadable_manifest(self, client: AsyncClient, api_generator):
        path = api_generator.manifest.path_for("devices")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("export const devicePageManifest = {oops\n", encoding="utf-8")

        resp = await client.get("/api/v2/manifest")
        assert resp.status_code == 500
        assert "unreadable" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# POST /api/v2/validate
# ---------------------------------------------------------------------------


class TestValidate:
    @pytest.mark.asyncio
    async def test_missing_target(self, client: AsyncClient, tmp_path):
        resp = await client.post("/api/v2/validate", json={"target": str(tmp_path / "nope")})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_directory(self, client: AsyncClient, api_generator):
        await _generate(client, "living_room_tv")
        with patch("asyncio.create_subprocess_exec", _clean_tsc()):
            resp = await client.post("/api/v2/validate", json={"target": str(api_generator.output_dir)})
        data = resp.json()
        assert data["success"] is True
        assert data["component"]["files"][0].endswith("living_room_tv.gen.tsx")
        assert data["actions"] is None

    @pytest.mark.asyncio
    async def test_file_with_actions(self, client: AsyncClient):
        generated = await _generate(client, "living_room_tv")
        with patch("asyncio.create_subprocess_exec", _clean_tsc()):
            resp = await client.post("/api/v2/validate", json={
                "target": generated["output_path"],
                "action_names": ["power_on", "eject"],
            })
        data = resp.json()
        assert data["success"] is False
        assert data["component"]["success"] is True
        assert [e["rule"] for e in data["actions"]["errors"]] == ["missing_action"]
