"""Single-device page generation.

Pipeline for one device id:
1. Reachability check on the configuration source
2. Fetch config + groups concurrently, validate
3. Family strategy lookup
4. Optional schema introspection; the shared ``{Class}.state.ts`` is
   created once per schema class and never overwritten, the per-device
   hook ``{id}.hooks.ts`` always is. A failed introspection writes its
   fallback to ``{Class}.fallback.state.ts`` instead
5. Render and write ``{id}.gen.tsx`` (scenario pages go to the
   scenarios directory)
6. Optional manifest update (serialised by ManifestStore)

Errors propagate as DeviceGenError subclasses; callers (batch
orchestrator, CLI, API) decide how to recover.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import OUTPUT_DIR, TYPES_DIR
from .device_config import DeviceConfig, DeviceGroups, validate_device_config, validate_device_groups
from .exceptions import ConfigSourceError, DeviceGenError, OutputWriteError, TemplateRenderError
from .families import get_strategy
from .integration.manifest import DevicePageEntry, ManifestStore, create_entry
from .schema import IntrospectionResult, SchemaIntrospector
from .sources import ConfigSource
from .structure import RemoteDeviceStructure, StateDefinition
from .templates import generate_component, generate_state_hook, generate_state_interface

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    device_id: str
    success: bool
    device_class: Optional[str] = None
    output_path: Optional[str] = None
    hook_path: Optional[str] = None
    schema_path: Optional[str] = None
    schema_written: bool = False
    introspection_error: Optional[str] = None
    error: Optional[str] = None
    skipped: bool = False
    duration_ms: float = 0.0
    entry: Optional[DevicePageEntry] = None
    structure: Optional[RemoteDeviceStructure] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "deviceId": self.device_id,
            "success": self.success,
            "deviceClass": self.device_class,
            "outputPath": self.output_path,
            "durationMs": round(self.duration_ms, 1),
        }
        if self.hook_path:
            d["hookPath"] = self.hook_path
        if self.schema_path:
            d["schemaPath"] = self.schema_path
            d["schemaWritten"] = self.schema_written
        if self.introspection_error:
            d["introspectionError"] = self.introspection_error
        if self.error:
            d["error"] = self.error
        if self.skipped:
            d["skipped"] = True
        return d


class DevicePageGenerator:
    """Generates page, hook and shared schema files for devices.

    Args:
        source: Configuration source (remote or local)
        output_dir: Directory for device pages; scenario pages go to the
            sibling ``scenarios`` directory
        types_dir: Directory for shared state schema files
        introspector: Schema introspector; one with the subprocess
            backend is created when omitted
        manifest: When given, every generated page is merged into it
    """

    def __init__(
        self,
        source: ConfigSource,
        output_dir: Union[str, Path, None] = None,
        types_dir: Union[str, Path, None] = None,
        introspector: Optional[SchemaIntrospector] = None,
        manifest: Optional[ManifestStore] = None,
    ):
        self.source = source
        self.output_dir = Path(output_dir or OUTPUT_DIR)
        self.scenarios_dir = self.output_dir.parent / "scenarios"
        self.types_dir = Path(types_dir or TYPES_DIR)
        self.introspector = introspector or SchemaIntrospector()
        self.manifest = manifest

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    async def fetch(self, device_id: str) -> Tuple[DeviceConfig, DeviceGroups]:
        if not await self.source.check_reachable():
            raise ConfigSourceError("Device configuration source unreachable (connection failed)")
        config_payload, groups_payload = await asyncio.gather(
            self.source.fetch_device_config(device_id),
            self.source.fetch_device_groups(device_id),
        )
        return validate_device_config(config_payload), validate_device_groups(groups_payload)

    def schema_ref_for(self, device_class: str, schema_ref: Optional[str]) -> Optional[str]:
        if schema_ref:
            return schema_ref
        lookup = getattr(self.source, "get_state_reference", None)
        if lookup is None:
            return None
        return lookup(device_class)

    async def build_structure(
        self,
        device_id: str,
        state: Optional[StateDefinition] = None,
    ) -> RemoteDeviceStructure:
        """Structure for a device without writing anything."""
        config, groups = await self.fetch(device_id)
        strategy = get_strategy(config.device_class)
        return strategy.analyze_structure(config, groups, state)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def page_dir(self, structure: RemoteDeviceStructure) -> Path:
        return self.scenarios_dir if structure.is_scenario else self.output_dir

    async def generate_device_page(self, device_id: str, schema_ref: Optional[str] = None) -> GenerationResult:
        """Generate all files for one device.

        Raises:
            DeviceGenError: any pipeline failure (config, family, template, write)
        """
        started = time.perf_counter()
        config, groups = await self.fetch(device_id)
        strategy = get_strategy(config.device_class)
        logger.info("Generating %s (%s)", device_id, config.device_class)

        result = GenerationResult(device_id=device_id, success=False, device_class=config.device_class)

        introspection: Optional[IntrospectionResult] = None
        ref = self.schema_ref_for(config.device_class, schema_ref)
        if ref:
            introspection = await self.introspector.introspect(ref)
            if not introspection.success:
                result.introspection_error = introspection.error

        state = introspection.definition if introspection else None
        structure = strategy.analyze_structure(config, groups, state)
        page_dir = self.page_dir(structure)

        try:
            source = generate_component(structure)
        except DeviceGenError:
            raise
        except Exception as e:
            raise TemplateRenderError(f"Template rendering failed for {device_id}: {e}") from e

        if introspection is not None:
            # a fallback definition must not claim the shared file
            if introspection.success:
                schema_path, written = await asyncio.to_thread(
                    self.write_shared_schema, introspection.class_name, introspection.definition,
                )
                schema_module = introspection.class_name
            else:
                schema_path, written = await asyncio.to_thread(
                    self.write_fallback_schema, introspection.class_name, introspection.definition,
                )
                schema_module = f"{introspection.class_name}.fallback"
            result.schema_path, result.schema_written = str(schema_path), written
            hook_path = page_dir / f"{device_id}.hooks.ts"
            hook_source = generate_state_hook(introspection.definition, device_id, schema_module)
            await asyncio.to_thread(self._write, hook_path, hook_source)
            result.hook_path = str(hook_path)

        output_path = page_dir / f"{device_id}.gen.tsx"
        await asyncio.to_thread(self._write, output_path, source)

        entry = create_entry(structure, output_path, source)
        if self.manifest is not None:
            await self.manifest.update(entry)

        result.success = True
        result.output_path = str(output_path)
        result.entry = entry
        result.structure = structure
        result.duration_ms = (time.perf_counter() - started) * 1000
        logger.info("Generated %s → %s (%.0fms)", device_id, output_path, result.duration_ms)
        return result

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def write_shared_schema(self, class_name: str, definition: StateDefinition) -> Tuple[Path, bool]:
        """Create ``{class_name}.state.ts`` unless it already exists.

        Returns the path and whether this call created it.
        """
        path = self.types_dir / f"{class_name}.state.ts"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "x", encoding="utf-8") as f:
                f.write(generate_state_interface(definition))
        except FileExistsError:
            logger.info("Shared schema %s already exists, keeping it", path)
            return path, False
        except OSError as e:
            raise OutputWriteError(f"Failed to write schema file {path}: {e}") from e
        logger.info("Wrote shared schema %s", path)
        return path, True

    def write_fallback_schema(self, class_name: str, definition: StateDefinition) -> Tuple[Path, bool]:
        """Degraded schema in ``{class_name}.fallback.state.ts``, rewritten every time.

        The shared ``{class_name}.state.ts`` stays free for the next
        successful introspection.
        """
        path = self.types_dir / f"{class_name}.fallback.state.ts"
        self._write(path, generate_state_interface(definition))
        logger.warning("Wrote fallback schema %s", path)
        return path, True

    def _write(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(f"Failed to write {path}: {e}") from e

    async def generate_structures(self, device_ids: List[str]) -> List[RemoteDeviceStructure]:
        """Structures for several devices, skipping ones that fail (docs flow)."""
        structures = []
        for device_id in device_ids:
            try:
                structures.append(await self.build_structure(device_id))
            except DeviceGenError as e:
                logger.warning("Skipping %s in documentation: %s", device_id, e)
        return structures
