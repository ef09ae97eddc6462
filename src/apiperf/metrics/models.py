from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNMEASURED_LATENCY_MS = -1


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    PROTOCOL = "protocol"
    OTHER = "other"
    UNEXPECTED_STATUS = "unexpected_status"
    BATCH_TIMEOUT = "batch_timeout"


@dataclass(frozen=True, slots=True)
class RequestOutcome:
    success: bool
    latency_ms: int
    status_code: int | None = None
    error_kind: ErrorKind | None = None

    @property
    def measured(self) -> bool:
        return self.latency_ms >= 0

    @classmethod
    def failed(cls, error_kind: ErrorKind) -> RequestOutcome:
        return cls(success=False, latency_ms=UNMEASURED_LATENCY_MS, error_kind=error_kind)


@dataclass(frozen=True, slots=True)
class BatchResult:
    total: int
    success_count: int
    failure_count: int
    avg_latency_ms: int
    min_latency_ms: int
    max_latency_ms: int
    success_rate_percent: float
    measured_count: int = 0
    p50_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class StressLevel:
    concurrency: int
    result: BatchResult


@dataclass(frozen=True, slots=True)
class StressReport:
    levels: tuple[StressLevel, ...]
    breaking_point: int | None
    threshold_percent: float
    max_concurrency: int
    interrupted: bool = False
    skipped_levels: tuple[int, ...] = ()

    @property
    def held_up(self) -> bool:
        return self.breaking_point is None and bool(self.levels)

    def summary(self) -> str:
        if self.breaking_point is not None:
            return (
                f"Breaking point at {self.breaking_point} concurrent requests "
                f"(success rate below {self.threshold_percent:.1f}%)"
            )
        if not self.levels:
            if self.interrupted:
                return "Stopped before any level ran; no breaking point determined"
            if not self.skipped_levels:
                return "No levels requested; no breaking point determined"
            skipped = ", ".join(str(level) for level in self.skipped_levels)
            return (
                f"No levels tested: requested levels ({skipped}) exceed "
                f"the configured maximum {self.max_concurrency}"
            )
        tested = self.levels[-1].concurrency
        if self.interrupted:
            return f"Stopped after {len(self.levels)} levels (up to {tested}); no breaking point found"
        message = (
            f"No breaking point found up to {tested} concurrent requests "
            f"(configured maximum {self.max_concurrency})"
        )
        if self.skipped_levels:
            skipped = ", ".join(str(level) for level in self.skipped_levels)
            message += f"; levels above the maximum not attempted: {skipped}"
        return message
