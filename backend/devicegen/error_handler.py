"""Error classification and recovery policy for device generation.

classify_error maps an exception onto the closed ErrorType set (by type
first, then by keywords in the message, defaulting to
GENERATION_FAILURE). ErrorHandler.handle turns the classified error plus
the run's RetryLedger into a recovery directive:

    API_CONNECTION           retry with backoff, abort once retries are spent
    GENERATION_FAILURE       retry with backoff, skip once retries are spent
    DEVICE_CLASS_UNSUPPORTED skip
    TEMPLATE_ERROR           skip
    API_VALIDATION           skip
    VALIDATION_ERROR         skip
    FILE_WRITE_ERROR         abort

The ledger is created per run and passed in; the handler keeps no state
between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import httpx

from . import settings
from .exceptions import (
    ConfigSourceError,
    DeviceNotFoundError,
    InvalidDeviceConfigError,
    OutputWriteError,
    TemplateRenderError,
    UnsupportedDeviceClassError,
)

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    API_CONNECTION = "api_connection"
    API_VALIDATION = "api_validation"
    DEVICE_CLASS_UNSUPPORTED = "device_class_unsupported"
    GENERATION_FAILURE = "generation_failure"
    FILE_WRITE_ERROR = "file_write_error"
    TEMPLATE_ERROR = "template_error"
    VALIDATION_ERROR = "validation_error"


class RecoveryAction(str, Enum):
    RETRY = "retry"
    SKIP = "skip"
    ABORT = "abort"
    CONTINUE = "continue"


# Checked in order; the first matching exception type wins
_TYPE_RULES: Tuple[Tuple[Tuple[type, ...], ErrorType], ...] = (
    ((DeviceNotFoundError, InvalidDeviceConfigError), ErrorType.API_VALIDATION),
    ((UnsupportedDeviceClassError,), ErrorType.DEVICE_CLASS_UNSUPPORTED),
    ((TemplateRenderError,), ErrorType.TEMPLATE_ERROR),
    ((OutputWriteError, PermissionError), ErrorType.FILE_WRITE_ERROR),
    ((ConfigSourceError, httpx.TransportError, ConnectionError), ErrorType.API_CONNECTION),
)

# Message keywords, checked in order when the type says nothing
_KEYWORD_RULES: Tuple[Tuple[Tuple[str, ...], ErrorType], ...] = (
    (("connection", "network", "fetch", "unreachable", "timed out"), ErrorType.API_CONNECTION),
    (("unsupported device class",), ErrorType.DEVICE_CLASS_UNSUPPORTED),
    (("template", "generation"), ErrorType.TEMPLATE_ERROR),
    (("write", "permission", "enoent", "no such file", "read-only"), ErrorType.FILE_WRITE_ERROR),
    (("validation", "invalid"), ErrorType.VALIDATION_ERROR),
)

_MANUAL_STEPS: Dict[ErrorType, List[str]] = {
    ErrorType.API_CONNECTION: [
        "Check that the device configuration service is running",
        "Verify network connectivity to the configured base URL",
        "Pass --api-base-url with the correct URL",
    ],
    ErrorType.DEVICE_CLASS_UNSUPPORTED: [
        "Add a family strategy for this device class",
        "Run with --list-classes to see supported classes",
    ],
    ErrorType.TEMPLATE_ERROR: [
        "Device configuration may have an unexpected structure",
        "Check the device commands for missing fields",
    ],
    ErrorType.FILE_WRITE_ERROR: [
        "Check write permissions for the output directory",
        "Ensure sufficient disk space",
    ],
    ErrorType.GENERATION_FAILURE: [
        "Check the device configuration format",
        "Verify all required fields are present",
    ],
    ErrorType.API_VALIDATION: [
        "Check the device id and its configuration payload",
    ],
    ErrorType.VALIDATION_ERROR: [
        "Inspect the reported validation errors",
    ],
}


def classify_error(error: BaseException) -> ErrorType:
    """Best-effort classification; never raises."""
    for types, error_type in _TYPE_RULES:
        if isinstance(error, types):
            return error_type
    message = str(error).lower()
    for keywords, error_type in _KEYWORD_RULES:
        if any(k in message for k in keywords):
            return error_type
    return ErrorType.GENERATION_FAILURE


@dataclass
class ErrorContext:
    operation: str
    device_id: Optional[str] = None
    device_class: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    additional_info: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RecoveryResult:
    action: RecoveryAction
    message: str
    error_type: ErrorType
    success: bool = False
    retry_after: Optional[int] = None  # milliseconds
    manual_steps: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "success": self.success,
            "action": self.action.value,
            "message": self.message,
            "errorType": self.error_type.value,
        }
        if self.retry_after is not None:
            d["retryAfter"] = self.retry_after
        if self.manual_steps:
            d["manualSteps"] = list(self.manual_steps)
        return d


class RetryLedger:
    """Attempt counts per (device, error type) for one run."""

    def __init__(self) -> None:
        self._counts: Dict[Tuple[str, ErrorType], int] = {}

    def attempts(self, device_id: Optional[str], error_type: ErrorType) -> int:
        return self._counts.get((device_id or "unknown", error_type), 0)

    def record(self, device_id: Optional[str], error_type: ErrorType) -> int:
        """Count one more failure; returns the count before this one."""
        key = (device_id or "unknown", error_type)
        previous = self._counts.get(key, 0)
        self._counts[key] = previous + 1
        return previous

    def total(self) -> int:
        return sum(self._counts.values())


class ErrorHandler:
    def __init__(
        self,
        max_retries: Optional[int] = None,
        backoff_base_ms: Optional[int] = None,
        backoff_cap_ms: Optional[int] = None,
    ):
        self.max_retries = settings.ERROR_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_base_ms = backoff_base_ms or settings.ERROR_BACKOFF_BASE_MS
        self.backoff_cap_ms = backoff_cap_ms or settings.ERROR_BACKOFF_CAP_MS

    def backoff(self, attempt: int) -> int:
        return min((2 ** attempt) * self.backoff_base_ms, self.backoff_cap_ms)

    def handle(self, error: BaseException, context: ErrorContext, ledger: RetryLedger) -> RecoveryResult:
        error_type = classify_error(error)
        attempt = ledger.record(context.device_id, error_type)
        logger.error(
            "Error [%s] in %s for %s (attempt %d): %s",
            error_type.value, context.operation, context.device_id or "unknown", attempt + 1, error,
        )
        result = self._decide(error, error_type, attempt, context)
        logger.info("Recovery for %s: %s (%s)", context.device_id or "unknown", result.action.value, result.message)
        return result

    def _decide(self, error: BaseException, error_type: ErrorType, attempt: int,
                context: ErrorContext) -> RecoveryResult:
        steps = list(_MANUAL_STEPS.get(error_type, []))
        device = context.device_id or "unknown"

        if error_type in (ErrorType.API_CONNECTION, ErrorType.GENERATION_FAILURE):
            if attempt < self.max_retries:
                return RecoveryResult(
                    action=RecoveryAction.RETRY,
                    message=f"{error_type.value} (attempt {attempt + 1}/{self.max_retries}): {error}",
                    error_type=error_type,
                    retry_after=self.backoff(attempt),
                    manual_steps=steps,
                )
            terminal = RecoveryAction.ABORT if error_type == ErrorType.API_CONNECTION else RecoveryAction.SKIP
            return RecoveryResult(
                action=terminal,
                message=f"{error_type.value} after {self.max_retries} retries for {device}: {error}",
                error_type=error_type,
                manual_steps=steps,
            )

        if error_type == ErrorType.FILE_WRITE_ERROR:
            return RecoveryResult(RecoveryAction.ABORT, f"File write error: {error}", error_type, manual_steps=steps)

        if error_type == ErrorType.DEVICE_CLASS_UNSUPPORTED:
            message = f"Device class not supported: {context.device_class or error}"
        else:
            message = f"{error_type.value} for {device}: {error}"
        return RecoveryResult(RecoveryAction.SKIP, message, error_type, manual_steps=steps)
