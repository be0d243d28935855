"""Batch orchestration over DevicePageGenerator.

Devices run in fixed-width concurrent batches; a batch only starts after
every task of the previous one has settled, so peak concurrency never
exceeds the width. Failures go through ErrorHandler with a RetryLedger
scoped to the run: ``retry`` re-runs that one device after the backoff,
everything else is terminal for the device. ``abort`` stops the run, as
does any non-skipped failure when ``continue_on_error`` is off. Results
gathered so far are always returned.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from . import settings
from .error_handler import ErrorContext, ErrorHandler, RecoveryAction, RecoveryResult, RetryLedger
from .exceptions import DeviceGenError
from .generator import DevicePageGenerator, GenerationResult
from .metrics import PerformanceMonitor

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class FailedDevice:
    device_id: str
    error: str
    device_class: Optional[str] = None
    action: str = "failed"  # "failed" | "skipped"
    error_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deviceId": self.device_id,
            "error": self.error,
            "deviceClass": self.device_class,
            "action": self.action,
            "errorType": self.error_type,
        }


@dataclass
class BatchResult:
    results: List[GenerationResult] = field(default_factory=list)
    failed_devices: List[FailedDevice] = field(default_factory=list)
    processing_time_ms: float = 0.0
    aborted: bool = False
    performance: Dict[str, Any] = field(default_factory=dict)
    # run-level failure that happened before any device was dispatched
    error: Optional[str] = None

    @property
    def total_processed(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success and not r.skipped)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def success_rate(self) -> float:
        if not self.results:
            return 0.0
        return self.successful / len(self.results) * 100

    @property
    def generated_files(self) -> List[str]:
        return [r.output_path for r in self.results if r.success and r.output_path]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalProcessed": self.total_processed,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "successRate": round(self.success_rate, 1),
            "processingTime": round(self.processing_time_ms),
            "aborted": self.aborted,
            "failedDevices": [d.to_dict() for d in self.failed_devices],
            "generatedFiles": self.generated_files,
            "results": [r.to_dict() for r in self.results],
            "performance": self.performance,
            "error": self.error,
        }

    def summary(self) -> str:
        lines = [
            "Batch processing complete",
            f"  Duration: {self.processing_time_ms / 1000:.1f}s",
            f"  Total processed: {self.total_processed}",
            f"  Successful: {self.successful}",
            f"  Failed: {self.failed}",
            f"  Skipped: {self.skipped}",
            f"  Success rate: {self.success_rate:.1f}%",
        ]
        if self.error:
            lines.append(f"  Aborted: {self.error}")
        for d in self.failed_devices:
            lines.append(f"  [{d.action}] {d.device_id}: {d.error}")
        return "\n".join(lines)


class BatchOrchestrator:
    """Runs DevicePageGenerator over many devices.

    Args:
        generator: Single-device generator
        error_handler: Recovery policy, defaults from settings
        sleep: Awaitable delay, replaced in tests
        inter_batch_delay: Seconds between batches
    """

    def __init__(
        self,
        generator: DevicePageGenerator,
        error_handler: Optional[ErrorHandler] = None,
        sleep: Sleep = asyncio.sleep,
        inter_batch_delay: Optional[float] = None,
    ):
        self.generator = generator
        self.error_handler = error_handler or ErrorHandler()
        self._sleep = sleep
        self.inter_batch_delay = (
            settings.BATCH_INTER_BATCH_DELAY if inter_batch_delay is None else inter_batch_delay
        )

    async def _process_device(
        self,
        device_id: str,
        ledger: RetryLedger,
        monitor: PerformanceMonitor,
        schema_ref: Optional[str],
    ) -> Tuple[GenerationResult, Optional[RecoveryResult]]:
        with monitor.track() as outcome:
            while True:
                try:
                    result = await self.generator.generate_device_page(device_id, schema_ref)
                except Exception as e:  # every failure is routed through the recovery policy
                    device_class = getattr(e, "device_class", None)
                    recovery = self.error_handler.handle(
                        e, ErrorContext("device_generation", device_id, device_class), ledger,
                    )
                    if recovery.action == RecoveryAction.RETRY:
                        await self._sleep((recovery.retry_after or 0) / 1000)
                        continue
                    outcome["device_class"] = device_class
                    return GenerationResult(
                        device_id=device_id,
                        success=False,
                        device_class=device_class,
                        error=recovery.message,
                        skipped=recovery.action == RecoveryAction.SKIP,
                    ), recovery
                outcome.update(success=True, device_class=result.device_class)
                return result, None

    async def process_many(
        self,
        device_ids: Sequence[str],
        max_concurrency: Optional[int] = None,
        continue_on_error: bool = True,
        schema_ref: Optional[str] = None,
    ) -> BatchResult:
        width = max(1, max_concurrency or settings.BATCH_MAX_CONCURRENCY)
        ledger = RetryLedger()
        monitor = PerformanceMonitor()
        batch = BatchResult()
        started = time.perf_counter()
        total_batches = (len(device_ids) + width - 1) // width

        logger.info(
            "Starting batch of %d device(s): width=%d, continue_on_error=%s",
            len(device_ids), width, continue_on_error,
        )

        for index in range(0, len(device_ids), width):
            chunk = list(device_ids[index:index + width])
            logger.info("Batch %d/%d: [%s]", index // width + 1, total_batches, ", ".join(chunk))

            settled = await asyncio.gather(
                *(self._process_device(d, ledger, monitor, schema_ref) for d in chunk)
            )

            stop = False
            for result, recovery in settled:
                batch.results.append(result)
                if result.success:
                    continue
                batch.failed_devices.append(FailedDevice(
                    device_id=result.device_id,
                    error=result.error or "Unknown error",
                    device_class=result.device_class,
                    action="skipped" if result.skipped else "failed",
                    error_type=recovery.error_type.value if recovery else None,
                ))
                if recovery and recovery.action == RecoveryAction.ABORT:
                    batch.aborted = True
                    stop = True
                elif not result.skipped and not continue_on_error:
                    stop = True

            if stop:
                logger.warning("Stopping batch processing after failures in batch %d", index // width + 1)
                break
            if index + width < len(device_ids):
                await self._sleep(self.inter_batch_delay)

        batch.processing_time_ms = (time.perf_counter() - started) * 1000
        batch.performance = monitor.to_dict()
        logger.info("%s", batch.summary())
        logger.info("%s", monitor.report())
        return batch

    async def process_all(
        self,
        device_classes: Optional[Sequence[str]] = None,
        max_concurrency: Optional[int] = None,
        continue_on_error: bool = True,
    ) -> BatchResult:
        """Discover devices from the source, optionally filter by class, process them."""
        try:
            devices = await self.generator.source.discover_devices()
        except DeviceGenError as e:
            logger.error("Device discovery failed: %s", e)
            return BatchResult(aborted=True, error=f"Device discovery failed: {e}")
        if device_classes:
            wanted = set(device_classes)
            devices = [d for d in devices if d.get("device_class") in wanted]
            logger.info("Filtered to %d device(s) of class(es) %s", len(devices), ", ".join(sorted(wanted)))
        return await self.process_many(
            [d["device_id"] for d in devices],
            max_concurrency=max_concurrency,
            continue_on_error=continue_on_error,
        )
