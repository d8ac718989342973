"""Execution runner: spawn clients, drive their loops, tally results. No reporting layer."""

from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path

from .config import load_run_config, load_workload, validate_run_config
from .engine import Executor, JsonLinesExecutor, collect_results, run_client
from .logging_config import get_logger
from .models import RunConfig, RunSummary
from .workload import Workload

logger = get_logger("runner")

# Result queue maximum size; clients block on put when full
RESULT_QUEUE_MAXSIZE = 50_000
# Time given to clients to finish their current iteration after stop, before cancel
STOP_GRACE_SEC = 1.0


async def run_workload(
    workload: Workload,
    config: RunConfig,
    executor: Executor,
) -> RunSummary:
    """Run ``config.clients`` clients against ``executor`` and return tallies.

    Every client is spawned before any loop starts, so the master random source
    is only touched from this setup phase. Clients stop when their iteration
    limit is reached or when ``duration_seconds`` elapses, whichever is first.
    """
    validate_run_config(config)
    clients = [workload.new_client() for _ in range(config.clients)]
    logger.info(
        "Starting run: clients=%s, duration=%ss, iterations=%s, scripts=%r",
        config.clients, config.duration_seconds, config.iterations, workload.scripts,
    )

    result_queue: asyncio.Queue = asyncio.Queue(maxsize=RESULT_QUEUE_MAXSIZE)
    stop_event = asyncio.Event()
    summary = RunSummary(clients=config.clients)

    async def consume() -> None:
        async for result in collect_results(result_queue, config.clients):
            summary.iterations += 1
            summary.statements += result.statement_count
            if not result.success:
                summary.failed_iterations += 1
            if result.readonly:
                summary.readonly_units += 1

    consumer_task = asyncio.create_task(consume())
    start_time = time.perf_counter()
    tasks = [
        asyncio.create_task(
            run_client(
                client,
                executor,
                result_queue,
                stop_event,
                iterations=config.iterations,
                think_time_ms=config.think_time_ms,
            )
        )
        for client in clients
    ]

    try:
        await asyncio.wait(tasks, timeout=config.duration_seconds)
        stop_event.set()
        _, pending = await asyncio.wait(tasks, timeout=STOP_GRACE_SEC)
        for t in pending:
            t.cancel()
        await asyncio.gather(*tasks)
    finally:
        stop_event.set()
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        # A client cancelled before its first step never queues a sentinel
        _, pending = await asyncio.wait([consumer_task], timeout=STOP_GRACE_SEC)
        if pending:
            consumer_task.cancel()
            await asyncio.gather(consumer_task, return_exceptions=True)

    summary.duration_seconds = time.perf_counter() - start_time
    logger.info(
        "Run finished: iterations=%s, failed=%s, statements=%s, rate=%.1f/s",
        summary.iterations, summary.failed_iterations, summary.statements,
        summary.iterations_per_second,
    )
    return summary


async def run_from_file(
    config_path: str | Path,
    executor: Executor | None = None,
    seed: int | None = None,
) -> RunSummary:
    """Load workload and run settings from one YAML file and run them.

    Without an executor, statements are written to stdout as JSON lines.
    """
    config = await asyncio.to_thread(load_run_config, config_path)
    if seed is None:
        seed = config.seed
    workload = await asyncio.to_thread(load_workload, config_path, seed)
    if executor is None:
        executor = JsonLinesExecutor(sys.stdout)
    return await run_workload(workload, config, executor)
