"""Client execution loop: evaluate a script, hand the unit of work to an executor, repeat.

This module provides the driver side of the workload engine:
- Executor: seam to whatever runs statements against the system under test
- JsonLinesExecutor: dry-run executor printing statements as JSON lines
- execute_iteration: one next() plus execution, with timing
- run_client: per-client loop until stop event or iteration limit
- collect_results: async generator for consuming results from queue
"""

from __future__ import annotations

import asyncio
import time
from typing import IO, AsyncIterator, Protocol

import orjson

from .exceptions import ScriptEvalError
from .logging_config import client_extra, get_logger
from .models import IterationResult, UnitOfWork
from .workload import ClientWorkload

logger = get_logger("engine")

# Nanoseconds to milliseconds conversion
NS_TO_MS = 1_000_000


class Executor(Protocol):
    """Runs one unit of work against the system under test. Raises on failure."""

    async def __call__(self, unit: UnitOfWork) -> None: ...


class JsonLinesExecutor:
    """Write every statement as one JSON object per line. No target system involved."""

    __slots__ = ("stream",)

    def __init__(self, stream: IO[str]) -> None:
        self.stream = stream

    async def __call__(self, unit: UnitOfWork) -> None:
        write = self.stream.write
        for stmt in unit.statements:
            line = orjson.dumps({"readonly": unit.readonly, "query": stmt.query, "params": stmt.params})
            write(line.decode("utf-8") + "\n")


async def execute_iteration(client: ClientWorkload, executor: Executor) -> IterationResult:
    """Produce one unit of work from ``client`` and execute it.

    Note:
        This never raises; evaluation and executor failures are captured in the
        IterationResult. A failed evaluation's partial unit is not executed.
    """
    start_ns = time.perf_counter_ns()
    try:
        unit = await client.next()
    except ScriptEvalError as e:
        logger.debug(
            "Script evaluation failed: %s", e,
            extra=client_extra(client.client_id, e.unit_of_work.script),
        )
        partial = e.unit_of_work
        return IterationResult(
            client_id=client.client_id,
            readonly=partial.readonly,
            statement_count=len(partial),
            elapsed_ms=(time.perf_counter_ns() - start_ns) / NS_TO_MS,
            success=False,
            error=str(e.original_error or e),
            timestamp=start_ns / 1_000_000_000,
        )

    try:
        await executor(unit)
    except Exception as e:  # noqa: BLE001
        logger.warning("Executor failed: %s", e, extra=client_extra(client.client_id, unit.script))
        return IterationResult(
            client_id=client.client_id,
            readonly=unit.readonly,
            statement_count=len(unit),
            elapsed_ms=(time.perf_counter_ns() - start_ns) / NS_TO_MS,
            success=False,
            error=str(e),
            timestamp=start_ns / 1_000_000_000,
        )
    return IterationResult(
        client_id=client.client_id,
        readonly=unit.readonly,
        statement_count=len(unit),
        elapsed_ms=(time.perf_counter_ns() - start_ns) / NS_TO_MS,
        success=True,
        timestamp=start_ns / 1_000_000_000,
    )


async def run_client(
    client: ClientWorkload,
    executor: Executor,
    result_queue: asyncio.Queue[IterationResult | None],
    stop_event: asyncio.Event,
    iterations: int = 0,
    think_time_ms: float = 0.0,
) -> None:
    """
    Single client: repeatedly calls next() and executes the result until stop_event.

    Args:
        client: Client handle; only this task touches it
        executor: Receives each unit of work
        result_queue: Queue to put results into
        stop_event: Event to signal client termination
        iterations: 0 = infinite until stop; >0 = run this many iterations then exit
        think_time_ms: Delay between iterations

    Note:
        Always sends None sentinel to result_queue when exiting. Cancellation may
        abandon the client mid-sleep.
    """
    done = 0
    is_set = stop_event.is_set
    try:
        while not is_set():
            result = await execute_iteration(client, executor)
            await result_queue.put(result)
            done += 1
            if iterations > 0 and done >= iterations:
                break
            if think_time_ms > 0:
                await asyncio.sleep(think_time_ms / 1000.0)
    except asyncio.CancelledError:
        pass
    finally:
        await result_queue.put(None)


async def collect_results(
    result_queue: asyncio.Queue[IterationResult | None],
    num_clients: int,
) -> AsyncIterator[IterationResult]:
    """Consume queue until all clients send sentinel.

    Yields:
        IterationResult objects as they arrive
    """
    done = 0
    while done < num_clients:
        item = await result_queue.get()
        if item is None:
            done += 1
            continue
        yield item
