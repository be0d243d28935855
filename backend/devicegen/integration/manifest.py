"""Router manifest: entries, merge, rendering and the on-disk store.

The manifest file embeds the full RouterManifest as JSON plus accessor
declarations. Updates are always read → merge → rewrite of the whole file;
ManifestStore serializes that sequence so concurrent generations in one
run never interleave their writes.

Devices and scenarios keep separate manifests
(``devices/index.gen.ts`` and ``scenarios/index.gen.ts``).
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..exceptions import ManifestReadError, OutputWriteError
from ..structure import RemoteDeviceStructure
from ..templates import component_name

logger = logging.getLogger(__name__)

API_VERSION = "1.0"
SCENARIO_CLASS = "ScenarioDevice"

ROUTES_BEGIN = "// BEGIN GENERATED DEVICE ROUTES"
ROUTES_END = "// END GENERATED DEVICE ROUTES"

MANIFEST_RE = re.compile(r"export const (?:device|scenario)PageManifest = (?=\{)")
_DECODER = json.JSONDecoder()

# kind → (entity, pages export, manifest export, getter)
_KINDS: Dict[str, Tuple[str, str, str, str]] = {
    "devices": ("device", "generatedDevicePages", "devicePageManifest", "getDeviceComponent"),
    "scenarios": ("scenario", "generatedScenarioPages", "scenarioPageManifest", "getScenarioComponent"),
}


def compute_checksum(content: str) -> str:
    """32-bit ``((h << 5) - h) + c`` rolling hash over UTF-16 code units, abs, hex.

    Change detection only; not an integrity check.
    """
    data = content.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return format(abs(h), "x")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class DevicePageEntry:
    id: str
    name: str
    device_class: str
    component_name: str
    route: str
    file_path: str
    generated_at: str
    checksum: str

    @property
    def is_scenario(self) -> bool:
        return self.device_class == SCENARIO_CLASS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "deviceClass": self.device_class,
            "componentName": self.component_name,
            "route": self.route,
            "filePath": self.file_path,
            "generatedAt": self.generated_at,
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DevicePageEntry":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            device_class=data.get("deviceClass", ""),
            component_name=data.get("componentName", component_name(data["id"])),
            route=data.get("route", f"/devices/{data['id']}"),
            file_path=data.get("filePath", ""),
            generated_at=data.get("generatedAt", ""),
            checksum=data.get("checksum", ""),
        )


@dataclass
class RouterManifest:
    devices: List[DevicePageEntry]
    generated_at: str
    api_version: str = API_VERSION

    @property
    def total_devices(self) -> int:
        return len(self.devices)

    @property
    def device_classes(self) -> List[str]:
        return sorted({d.device_class for d in self.devices})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "devices": [d.to_dict() for d in self.devices],
            "generatedAt": self.generated_at,
            "apiVersion": self.api_version,
            "totalDevices": self.total_devices,
            "deviceClasses": self.device_classes,
        }


# ---------------------------------------------------------------------------
# Pure operations
# ---------------------------------------------------------------------------

def create_entry(
    structure: RemoteDeviceStructure,
    output_path: Union[str, Path],
    source: Optional[str] = None,
    generated_at: Optional[str] = None,
) -> DevicePageEntry:
    """Manifest entry for a generated page.

    The checksum covers the component source when given, otherwise the
    device id and name.
    """
    prefix = "/scenario" if structure.is_scenario else "/devices"
    return DevicePageEntry(
        id=structure.device_id,
        name=structure.device_name,
        device_class=structure.device_class,
        component_name=component_name(structure.device_id),
        route=f"{prefix}/{structure.device_id}",
        file_path=str(output_path),
        generated_at=generated_at or _now(),
        checksum=compute_checksum(source if source is not None else structure.device_id + structure.device_name),
    )


def merge_entries(existing: Iterable[DevicePageEntry], new: DevicePageEntry) -> List[DevicePageEntry]:
    """Replace any entry with the same id, keep the rest, sort by id."""
    merged = [e for e in existing if e.id != new.id]
    merged.append(new)
    return sorted(merged, key=lambda e: e.id)


def _js(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def render_manifest(
    entries: List[DevicePageEntry],
    kind: str = "devices",
    generated_at: Optional[str] = None,
) -> Tuple[str, str]:
    """Render the manifest module; returns ``(source, checksum)``."""
    entity, pages_export, manifest_export, getter = _KINDS[kind]
    entries = sorted(entries, key=lambda e: e.id)
    manifest = RouterManifest(entries, generated_at or _now())

    imports = "\n".join(f"import {e.component_name} from './{e.id}.gen';" for e in entries)
    pages = ",\n".join(f"  {_js(e.id)}: {e.component_name}" for e in entries)
    routes = ",\n".join(
        "  {\n"
        f"    path: {_js(e.route)},\n"
        f"    component: {e.component_name},\n"
        f"    deviceId: {_js(e.id)},\n"
        f"    deviceClass: {_js(e.device_class)},\n"
        f"    name: {_js(e.name)}\n"
        "  }"
        for e in entries
    )
    title = entity[:1].upper() + entity[1:]
    source = "\n".join([
        f"// Auto-generated {entity} router manifest - DO NOT EDIT",
        f"// Generated at: {manifest.generated_at}",
        f"// Total {kind}: {manifest.total_devices}",
        f"// Device classes: {', '.join(manifest.device_classes)}",
        "import React from 'react';",
        imports,
        "",
        f"export const {pages_export}: Record<string, React.ComponentType> = {{",
        pages,
        "};",
        "",
        f"export const {manifest_export} = {json.dumps(manifest.to_dict(), indent=2)};",
        "",
        f"export const {entity}Routes = [",
        routes,
        "];",
        "",
        f"export function {getter}({entity}Id: string): React.ComponentType | undefined {{",
        f"  return {pages_export}[{entity}Id];",
        "}",
        "",
        f"export function get{title}Route({entity}Id: string): string | undefined {{",
        f"  return {entity}Routes.find(r => r.deviceId === {entity}Id)?.path;",
        "}",
        "",
    ])
    return source, compute_checksum(source)


def parse_manifest(source: str) -> List[DevicePageEntry]:
    """Entries embedded in a manifest module; empty when none is found.

    Raises:
        ManifestReadError: the manifest export is present but its JSON is not
    """
    match = MANIFEST_RE.search(source)
    if not match:
        return []
    try:
        data, _ = _DECODER.raw_decode(source, match.end())
        return [DevicePageEntry.from_dict(d) for d in data.get("devices", [])]
    except (json.JSONDecodeError, AttributeError, KeyError, TypeError) as e:
        raise ManifestReadError(f"Existing manifest is unreadable, refusing to write over it: {e}") from e


def update_router_section(router_source: str, entries: List[DevicePageEntry]) -> str:
    """Rewrite only the generated routes block, appending it when absent."""
    entries = sorted(entries, key=lambda e: e.id)
    block = "\n".join(
        [ROUTES_BEGIN]
        + [f"import {e.component_name} from './devices/{e.id}.gen';" for e in entries]
        + ["const generatedDeviceRoutes = ["]
        + [f"  {{ path: {_js(e.route)}, component: {e.component_name} }}," for e in entries]
        + ["];", ROUTES_END]
    )
    start = router_source.find(ROUTES_BEGIN)
    end = router_source.find(ROUTES_END)
    if start != -1 and end > start:
        return router_source[:start] + block + router_source[end + len(ROUTES_END):]
    logger.info("Router has no generated section markers, appending one")
    sep = "" if router_source.endswith("\n") or not router_source else "\n"
    return f"{router_source}{sep}\n{block}\n"


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class ManifestStore:
    """Single-writer access to the manifest files of one output root.

    Args:
        devices_dir: Directory holding device pages and ``index.gen.ts``
        scenarios_dir: Directory for scenario pages, default sibling ``scenarios``
    """

    def __init__(self, devices_dir: Union[str, Path], scenarios_dir: Union[str, Path, None] = None):
        self.devices_dir = Path(devices_dir)
        self.scenarios_dir = Path(scenarios_dir) if scenarios_dir else self.devices_dir.parent / "scenarios"
        self._lock = asyncio.Lock()

    def path_for(self, kind: str) -> Path:
        return (self.scenarios_dir if kind == "scenarios" else self.devices_dir) / "index.gen.ts"

    def read(self, kind: str = "devices") -> List[DevicePageEntry]:
        path = self.path_for(kind)
        if not path.exists():
            return []
        return parse_manifest(path.read_text(encoding="utf-8"))

    def read_all(self) -> List[DevicePageEntry]:
        return self.read("devices") + self.read("scenarios")

    def _write(self, kind: str, entries: List[DevicePageEntry]) -> Path:
        path = self.path_for(kind)
        source, checksum = render_manifest(entries, kind)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(f"Failed to write manifest {path}: {e}") from e
        logger.info("Manifest %s: %d entr(ies), checksum %s", path, len(entries), checksum)
        return path

    async def update(self, entry: DevicePageEntry) -> Path:
        """Read, merge and rewrite the manifest the entry belongs to."""
        kind = "scenarios" if entry.is_scenario else "devices"
        async with self._lock:
            existing = await asyncio.to_thread(self.read, kind)
            return await asyncio.to_thread(self._write, kind, merge_entries(existing, entry))

    async def rewrite(self, entries: List[DevicePageEntry]) -> List[Path]:
        """Full regeneration from a known entry set (split by kind)."""
        async with self._lock:
            written = []
            for kind in ("devices", "scenarios"):
                subset = [e for e in entries if e.is_scenario == (kind == "scenarios")]
                if subset:
                    written.append(await asyncio.to_thread(self._write, kind, subset))
            return written
