"""Data models for the scriptload workload engine.

Kept small for the per-iteration hot path:
- __slots__ on Statement / UnitOfWork / IterationResult, allocated once per iteration
- Enums for command kinds and sleep units
- slots dataclasses for run configuration and summary
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class CommandKind(str, Enum):
    """Tag for each command variant a script may contain."""

    QUERY = "query"
    SET = "set"
    SLEEP = "sleep"


class SleepUnit(str, Enum):
    """Time unit accepted by the sleep command."""

    MICROSECONDS = "us"
    MILLISECONDS = "ms"
    SECONDS = "s"

    @property
    def seconds(self) -> float:
        """Length of one unit in seconds."""
        return _UNIT_SECONDS[self]


_UNIT_SECONDS = {
    SleepUnit.MICROSECONDS: 1e-6,
    SleepUnit.MILLISECONDS: 1e-3,
    SleepUnit.SECONDS: 1.0,
}


class Statement:
    """One parameterized operation: opaque query text plus bound parameters.

    ``params`` is a snapshot of the scope at the time the statement was recorded;
    later assignments in the same script never reach it.
    """

    __slots__ = ("query", "params")

    def __init__(self, query: str, params: dict[str, Any] | None = None) -> None:
        self.query = query
        self.params = params if params is not None else {}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Statement):
            return NotImplemented
        return self.query == other.query and self.params == other.params

    def __repr__(self) -> str:
        return f"Statement(query={self.query!r}, params={self.params!r})"


class UnitOfWork:
    """Ordered statements produced by evaluating one script once.

    ``readonly`` is inherited from the script; a driver may route read-only
    units to a replica. ``script`` names the script that produced the unit.
    """

    __slots__ = ("readonly", "statements", "script")

    def __init__(
        self,
        readonly: bool = False,
        statements: list[Statement] | None = None,
        script: str | None = None,
    ) -> None:
        self.readonly = readonly
        self.statements = statements if statements is not None else []
        self.script = script

    def __len__(self) -> int:
        return len(self.statements)

    def __repr__(self) -> str:
        return f"UnitOfWork(script={self.script!r}, readonly={self.readonly}, statements={len(self.statements)})"


class IterationResult:
    """Outcome of one client iteration: evaluate a script, then hand it to the executor.

    Uses __slots__; one is allocated per iteration.
    """

    __slots__ = (
        "client_id", "readonly", "statement_count",
        "elapsed_ms", "success", "error", "timestamp",
    )

    def __init__(
        self,
        client_id: int,
        readonly: bool,
        statement_count: int,
        elapsed_ms: float,
        success: bool,
        error: str | None = None,
        timestamp: float = 0.0,
    ) -> None:
        self.client_id = client_id
        self.readonly = readonly
        self.statement_count = statement_count
        self.elapsed_ms = elapsed_ms
        self.success = success
        self.error = error
        self.timestamp = timestamp

    def __repr__(self) -> str:
        return (
            f"IterationResult(client={self.client_id}, statements={self.statement_count}, "
            f"time_ms={self.elapsed_ms:.2f}, success={self.success})"
        )


@dataclass(slots=True)
class RunConfig:
    """Run settings from YAML. Immutable after creation."""

    clients: int = 1
    duration_seconds: float = 10.0
    iterations: int = 0  # 0 = run for duration, >0 = run N iterations per client
    seed: int | None = None
    think_time_ms: float = 0.0


@dataclass(slots=True)
class RunSummary:
    """Counts tallied over a finished run."""

    clients: int
    iterations: int = 0
    failed_iterations: int = 0
    statements: int = 0
    readonly_units: int = 0
    duration_seconds: float = 0.0

    @property
    def iterations_per_second(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return self.iterations / self.duration_seconds

    @property
    def error_rate_pct(self) -> float:
        if self.iterations == 0:
            return 0.0
        return 100.0 * self.failed_iterations / self.iterations
