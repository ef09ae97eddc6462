from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

logger = logging.getLogger("apiperf.reporting")


class Status(str, Enum):
    INFO = "info"
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


_LOG_LEVELS = {
    Status.INFO: logging.INFO,
    Status.PASS: logging.INFO,
    Status.WARNING: logging.WARNING,
    Status.FAIL: logging.ERROR,
}


@dataclass(frozen=True, slots=True)
class ReportEntry:
    run_id: str
    check: str
    status: Status
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ReportSink(Protocol):
    def record(self, entry: ReportEntry) -> None:
        ...


@dataclass(slots=True)
class MemoryReportSink:
    entries: list[ReportEntry] = field(default_factory=list)

    def record(self, entry: ReportEntry) -> None:
        self.entries.append(entry)
        logger.log(_LOG_LEVELS[entry.status], "[%s] %s: %s", entry.check, entry.status.value, entry.message)

    def for_check(self, check: str) -> list[ReportEntry]:
        return [e for e in self.entries if e.check == check]

    def failed(self) -> bool:
        return any(e.status is Status.FAIL for e in self.entries)


@dataclass(frozen=True, slots=True)
class RunContext:
    """Per-run reporting handle passed explicitly to every check."""

    run_id: str
    sink: ReportSink
    check: str = ""

    def for_check(self, check: str) -> RunContext:
        return replace(self, check=check)

    def info(self, message: str) -> None:
        self._emit(Status.INFO, message)

    def passed(self, message: str) -> None:
        self._emit(Status.PASS, message)

    def warning(self, message: str) -> None:
        self._emit(Status.WARNING, message)

    def failed(self, message: str) -> None:
        self._emit(Status.FAIL, message)

    def _emit(self, status: Status, message: str) -> None:
        self.sink.record(ReportEntry(run_id=self.run_id, check=self.check, status=status, message=message))
