"""Pydantic schemas for the generation API endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class FamilyListResponse(BaseModel):
    """Response for GET /api/v2/families."""
    families: List[str]


class GenerateDeviceRequest(BaseModel):
    """Request for POST /api/v2/devices/{device_id}/generate."""
    schema_ref: Optional[str] = Field(
        None,
        description="State schema reference, module:Class or path.py:Class",
    )

    @field_validator("schema_ref")
    @classmethod
    def validate_schema_ref(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if value and ":" not in value:
            raise ValueError("schema_ref must look like 'module:Class' or 'path.py:Class'")
        return value or None


class GenerationResponse(BaseModel):
    """One device's generation outcome."""
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
    route: Optional[str] = None
    checksum: Optional[str] = None


class BatchGenerateRequest(BaseModel):
    """Request for POST /api/v2/batch/generate.

    Without device_ids every discovered device is generated, optionally
    narrowed to device_classes.
    """
    device_ids: Optional[List[str]] = None
    device_classes: Optional[List[str]] = None
    max_concurrency: int = Field(default=3, ge=1, le=10)
    continue_on_error: bool = True

    @field_validator("device_ids")
    @classmethod
    def validate_device_ids(cls, ids: Optional[List[str]]) -> Optional[List[str]]:
        if ids is None:
            return ids
        cleaned = [i.strip() for i in ids]
        if any(not i for i in cleaned):
            raise ValueError("device ids cannot be empty")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("device ids must be unique")
        return cleaned


class FailedDeviceInfo(BaseModel):
    device_id: str
    error: str
    device_class: Optional[str] = None
    action: Literal["failed", "skipped"]
    error_type: Optional[str] = None


class BatchGenerateResponse(BaseModel):
    """Response for POST /api/v2/batch/generate."""
    total_processed: int
    successful: int
    failed: int
    skipped: int
    success_rate: float
    processing_time_ms: float
    aborted: bool
    failed_devices: List[FailedDeviceInfo]
    generated_files: List[str]
    results: List[GenerationResponse]
    performance: Dict[str, Any]
    error: Optional[str] = None


class ManifestEntryInfo(BaseModel):
    id: str
    name: str
    device_class: str
    component_name: str
    route: str
    file_path: str
    generated_at: str
    checksum: str


class ManifestResponse(BaseModel):
    """Response for GET /api/v2/manifest."""
    total_devices: int
    device_classes: List[str]
    devices: List[ManifestEntryInfo]
    scenarios: List[ManifestEntryInfo]


class ValidateRequest(BaseModel):
    """Request for POST /api/v2/validate."""
    target: Optional[str] = Field(None, description="File or directory, defaults to the output directory")
    action_names: Optional[List[str]] = Field(
        None,
        description="With a single-file target: action names that must be wired in the component",
    )


class ValidationReportInfo(BaseModel):
    success: bool
    errors: List[Dict[str, Any]]
    warnings: List[Dict[str, Any]]
    files: List[str]


class ValidateResponse(BaseModel):
    """Response for POST /api/v2/validate."""
    success: bool
    component: ValidationReportInfo
    source: ValidationReportInfo
    actions: Optional[ValidationReportInfo] = None
