"""Device page generation API endpoints.

Single-device generation raises straight through to HTTP errors; batch
generation goes through the orchestrator and always answers 200 with a
summary, even when every device failed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from devicegen.batch import BatchOrchestrator, BatchResult
from devicegen.config import OUTPUT_DIR
from devicegen.exceptions import (
    ConfigSourceError,
    DeviceNotFoundError,
    InvalidDeviceConfigError,
    ManifestReadError,
    OutputWriteError,
    TemplateRenderError,
    UnsupportedDeviceClassError,
)
from devicegen.families import list_supported_families
from devicegen.generator import DevicePageGenerator, GenerationResult
from devicegen.integration.manifest import DevicePageEntry, ManifestStore, RouterManifest
from devicegen.validation import run_validation_suite, validate_component_actions

from ..pipeline import get_generator, get_manifest
from .generation_schemas import (
    BatchGenerateRequest,
    BatchGenerateResponse,
    FailedDeviceInfo,
    FamilyListResponse,
    GenerateDeviceRequest,
    GenerationResponse,
    ManifestEntryInfo,
    ManifestResponse,
    ValidateRequest,
    ValidateResponse,
    ValidationReportInfo,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v2", tags=["generation"])


# --- Helpers ---


def _generation_response(result: GenerationResult) -> GenerationResponse:
    return GenerationResponse(
        device_id=result.device_id,
        success=result.success,
        device_class=result.device_class,
        output_path=result.output_path,
        hook_path=result.hook_path,
        schema_path=result.schema_path,
        schema_written=result.schema_written,
        introspection_error=result.introspection_error,
        error=result.error,
        skipped=result.skipped,
        duration_ms=round(result.duration_ms, 1),
        route=result.entry.route if result.entry else None,
        checksum=result.entry.checksum if result.entry else None,
    )


def _batch_response(batch: BatchResult) -> BatchGenerateResponse:
    return BatchGenerateResponse(
        total_processed=batch.total_processed,
        successful=batch.successful,
        failed=batch.failed,
        skipped=batch.skipped,
        success_rate=round(batch.success_rate, 1),
        processing_time_ms=round(batch.processing_time_ms, 1),
        aborted=batch.aborted,
        failed_devices=[FailedDeviceInfo(**asdict(d)) for d in batch.failed_devices],
        generated_files=batch.generated_files,
        results=[_generation_response(r) for r in batch.results],
        performance=batch.performance,
        error=batch.error,
    )


def _entry_info(entry: DevicePageEntry) -> ManifestEntryInfo:
    return ManifestEntryInfo(
        id=entry.id,
        name=entry.name,
        device_class=entry.device_class,
        component_name=entry.component_name,
        route=entry.route,
        file_path=entry.file_path,
        generated_at=entry.generated_at,
        checksum=entry.checksum,
    )


# --- Endpoints ---


@router.get("/families", response_model=FamilyListResponse)
async def list_families():
    """Device classes that have a generation strategy."""
    return FamilyListResponse(families=list_supported_families())


@router.post("/devices/{device_id}/generate", response_model=GenerationResponse)
async def generate_device(
    device_id: str,
    payload: Optional[GenerateDeviceRequest] = None,
    generator: DevicePageGenerator = Depends(get_generator),
):
    """Generate page, hook and schema files for one device."""
    try:
        schema_ref = payload.schema_ref if payload else None
        result = await generator.generate_device_page(device_id, schema_ref)
    except DeviceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidDeviceConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UnsupportedDeviceClassError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigSourceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except (TemplateRenderError, OutputWriteError) as e:
        logger.error("Generation failed for %s: %s", device_id, e)
        raise HTTPException(status_code=500, detail=str(e))
    return _generation_response(result)


@router.post("/batch/generate", response_model=BatchGenerateResponse)
async def generate_batch(
    payload: BatchGenerateRequest,
    generator: DevicePageGenerator = Depends(get_generator),
):
    """Generate many devices; explicit ids or discovery (optionally by class)."""
    orchestrator = BatchOrchestrator(generator)
    if payload.device_ids:
        batch = await orchestrator.process_many(
            payload.device_ids, payload.max_concurrency, payload.continue_on_error,
        )
    else:
        batch = await orchestrator.process_all(
            payload.device_classes, payload.max_concurrency, payload.continue_on_error,
        )
    return _batch_response(batch)


@router.get("/manifest", response_model=ManifestResponse)
async def get_router_manifest(manifest: ManifestStore = Depends(get_manifest)):
    """Current on-disk device and scenario manifests."""
    try:
        devices = manifest.read("devices")
        scenarios = manifest.read("scenarios")
    except ManifestReadError as e:
        logger.error("Manifest read failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    combined = RouterManifest(devices + scenarios, generated_at="")
    return ManifestResponse(
        total_devices=combined.total_devices,
        device_classes=combined.device_classes,
        devices=[_entry_info(e) for e in devices],
        scenarios=[_entry_info(e) for e in scenarios],
    )


@router.post("/validate", response_model=ValidateResponse)
async def validate_generated(payload: Optional[ValidateRequest] = None):
    """Component and compiler validation over generated pages."""
    payload = payload or ValidateRequest()
    target = Path(payload.target or OUTPUT_DIR)
    if not target.exists():
        raise HTTPException(status_code=404, detail=f"Validation target not found: {target}")

    report = await run_validation_suite(target)
    response = ValidateResponse(
        success=report["success"],
        component=ValidationReportInfo(**report["component"]),
        source=ValidationReportInfo(**report["source"]),
    )
    if payload.action_names and target.is_file():
        actions = await asyncio.to_thread(validate_component_actions, target, payload.action_names)
        response.actions = ValidationReportInfo(**actions.to_dict())
        response.success = response.success and actions.success
    return response
