from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class TargetConfig:
    base_url: str
    method: str = "GET"
    timeout_sec: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BenchmarkConfig:
    response_time_threshold_ms: int = 3000


@dataclass(frozen=True, slots=True)
class LoadTestConfig:
    concurrent_users: int = 10
    requests_per_user: int = 5
    success_threshold_percent: float = 80.0
    batch_timeout_sec: float = 60.0

    @property
    def total_requests(self) -> int:
        return self.concurrent_users * self.requests_per_user


@dataclass(frozen=True, slots=True)
class StressConfig:
    levels: tuple[int, ...] = (5, 10, 20, 30, 50)
    max_concurrency: int = 50
    breaking_threshold_percent: float = 70.0
    batch_timeout_sec: float = 30.0


@dataclass(frozen=True, slots=True)
class ThroughputConfig:
    total_requests: int = 20


@dataclass(frozen=True, slots=True)
class SuiteConfig:
    target: TargetConfig
    benchmark: BenchmarkConfig = field(default_factory=BenchmarkConfig)
    load: LoadTestConfig = field(default_factory=LoadTestConfig)
    stress: StressConfig = field(default_factory=StressConfig)
    throughput: ThroughputConfig = field(default_factory=ThroughputConfig)
    run_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "run_id": self.run_id or "",
            "created_at": self.created_at.isoformat(),
            "notes": self.notes,
            "target": {
                "base_url": self.target.base_url,
                "method": self.target.method,
                "timeout_sec": self.target.timeout_sec,
                "headers": dict(self.target.headers),
            },
            "benchmark": {
                "response_time_threshold_ms": self.benchmark.response_time_threshold_ms,
            },
            "load": {
                "concurrent_users": self.load.concurrent_users,
                "requests_per_user": self.load.requests_per_user,
                "success_threshold_percent": self.load.success_threshold_percent,
                "batch_timeout_sec": self.load.batch_timeout_sec,
            },
            "stress": {
                "levels": list(self.stress.levels),
                "max_concurrency": self.stress.max_concurrency,
                "breaking_threshold_percent": self.stress.breaking_threshold_percent,
                "batch_timeout_sec": self.stress.batch_timeout_sec,
            },
            "throughput": {
                "total_requests": self.throughput.total_requests,
            },
        }
