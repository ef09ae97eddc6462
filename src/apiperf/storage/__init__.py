from __future__ import annotations

from pathlib import Path

from apiperf.storage.duckdb_store import Storage


def default_storage() -> Storage:
    return Storage(Path(".apiperf/apiperf.duckdb"))


__all__ = ["Storage", "default_storage"]
