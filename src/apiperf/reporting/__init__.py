from __future__ import annotations

from apiperf.reporting.context import MemoryReportSink, ReportEntry, ReportSink, RunContext, Status

__all__ = ["MemoryReportSink", "ReportEntry", "ReportSink", "RunContext", "Status"]
