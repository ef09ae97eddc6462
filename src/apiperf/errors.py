from __future__ import annotations


class HarnessError(Exception):
    """Base class for failures that abort a performance run."""


class InfrastructureError(HarnessError):
    """The harness could not acquire the resources needed to run a batch.

    Per-request failures never surface as exceptions; they are folded into
    outcome statistics. This error is reserved for the harness itself failing,
    e.g. being unable to spawn workers.
    """
