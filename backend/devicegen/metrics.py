"""Generation timing and success counters for a run."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple


@dataclass
class ClassMetrics:
    count: int = 0
    successes: int = 0
    total_ms: float = 0.0

    @property
    def average_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0


class PerformanceMonitor:
    """Collects per-device timings; one instance per run."""

    def __init__(self) -> None:
        self.total = 0
        self.successful = 0
        self.failed = 0
        self.total_ms = 0.0
        self.by_class: Dict[str, ClassMetrics] = {}

    def record(self, success: bool, device_class: Optional[str], duration_ms: float) -> None:
        self.total += 1
        self.total_ms += duration_ms
        if success:
            self.successful += 1
        else:
            self.failed += 1
        m = self.by_class.setdefault(device_class or "unknown", ClassMetrics())
        m.count += 1
        m.total_ms += duration_ms
        if success:
            m.successes += 1

    @contextmanager
    def track(self, device_class: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """Time a block; set ``outcome["success"]`` / ``["device_class"]`` inside it."""
        outcome: Dict[str, Any] = {"success": False, "device_class": device_class}
        start = time.perf_counter()
        try:
            yield outcome
        finally:
            self.record(
                bool(outcome.get("success")),
                outcome.get("device_class"),
                (time.perf_counter() - start) * 1000,
            )

    @property
    def average_ms(self) -> float:
        return self.total_ms / self.total if self.total else 0.0

    def slowest_class(self) -> Optional[Tuple[str, float]]:
        if not self.by_class:
            return None
        name, m = max(self.by_class.items(), key=lambda kv: kv[1].average_ms)
        return name, m.average_ms

    def to_dict(self) -> Dict[str, Any]:
        slowest = self.slowest_class()
        return {
            "totalGenerations": self.total,
            "successfulGenerations": self.successful,
            "failedGenerations": self.failed,
            "averageGenerationTime": round(self.average_ms, 1),
            "deviceClassMetrics": {
                name: {
                    "count": m.count,
                    "successes": m.successes,
                    "averageTime": round(m.average_ms, 1),
                }
                for name, m in sorted(self.by_class.items())
            },
            "slowestDeviceClass": {"deviceClass": slowest[0], "averageTime": round(slowest[1], 1)}
            if slowest else None,
        }

    def report(self) -> str:
        lines = [
            "Performance report",
            f"  Total generations: {self.total}",
            f"  Successful: {self.successful}",
            f"  Failed: {self.failed}",
            f"  Average time: {round(self.average_ms)}ms",
        ]
        for name, m in sorted(self.by_class.items()):
            lines.append(f"  {name}: {m.count} device(s), avg {round(m.average_ms)}ms")
        slowest = self.slowest_class()
        if slowest:
            lines.append(f"  Slowest device class: {slowest[0]} ({round(slowest[1])}ms)")
        return "\n".join(lines)
