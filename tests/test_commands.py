"""Unit tests for query, set and sleep commands."""

from __future__ import annotations

import asyncio
import time

import pytest

from scriptload.commands import Command, QueryCommand, SetCommand, SleepCommand
from scriptload.exceptions import SleepArgumentError, UndefinedVariableError
from scriptload.expressions import Literal, Variable
from scriptload.models import CommandKind, SleepUnit, Statement, UnitOfWork


def _arun(coro):
    return asyncio.run(coro)


def test_commands_carry_their_kind() -> None:
    assert QueryCommand("q").kind is CommandKind.QUERY
    assert SetCommand("x", Literal(1)).kind is CommandKind.SET
    assert SleepCommand(Literal(1)).kind is CommandKind.SLEEP
    assert isinstance(QueryCommand("q"), Command)


def test_query_appends_statement_with_scope_snapshot(make_ctx) -> None:
    ctx = make_ctx({"a": 1, "b": "two"})
    uow = UnitOfWork()
    _arun(QueryCommand("SELECT $a").execute(ctx, uow))
    assert uow.statements == [Statement("SELECT $a", {"a": 1, "b": "two"})]
    ctx.vars["a"] = 99
    assert uow.statements[0].params["a"] == 1


def test_set_binds_value_in_scope(make_ctx) -> None:
    ctx = make_ctx({"a": 1})
    uow = UnitOfWork()
    _arun(SetCommand("b", Variable("a")).execute(ctx, uow))
    assert ctx.vars == {"a": 1, "b": 1}
    assert uow.statements == []


def test_set_propagates_evaluator_error(make_ctx) -> None:
    ctx = make_ctx()
    with pytest.raises(UndefinedVariableError, match="undefined variable: nope"):
        _arun(SetCommand("b", Variable("nope")).execute(ctx, UnitOfWork()))
    assert "b" not in ctx.vars


def test_sleep_blocks_for_duration(make_ctx) -> None:
    t0 = time.perf_counter()
    _arun(SleepCommand(Literal(10), SleepUnit.MILLISECONDS).execute(make_ctx(), UnitOfWork()))
    elapsed_ms = (time.perf_counter() - t0) * 1000
    assert elapsed_ms >= 9


def test_sleep_does_not_block_other_tasks(make_ctx) -> None:
    """A sleeping client suspends only its own task."""

    async def _run() -> tuple[float, float]:
        t0 = time.perf_counter()
        finished: dict[str, float] = {}

        async def slow() -> None:
            await SleepCommand(Literal(200), SleepUnit.MILLISECONDS).execute(make_ctx(), UnitOfWork())
            finished["slow"] = time.perf_counter() - t0

        async def fast() -> None:
            await SleepCommand(Literal(0), SleepUnit.MILLISECONDS).execute(make_ctx(), UnitOfWork())
            finished["fast"] = time.perf_counter() - t0

        await asyncio.gather(slow(), fast())
        return finished["slow"], finished["fast"]

    slow_s, fast_s = _arun(_run())
    assert slow_s >= 0.19
    assert fast_s < 0.1


@pytest.mark.parametrize("value", [1.5, "10", True, None])
def test_sleep_rejects_non_integer(make_ctx, value) -> None:
    with pytest.raises(SleepArgumentError, match="integer expression") as exc_info:
        _arun(SleepCommand(Literal(value)).execute(make_ctx(), UnitOfWork()))
    assert exc_info.value.context["value"] == value


def test_sleep_unit_seconds() -> None:
    assert SleepUnit.SECONDS.seconds == 1.0
    assert SleepUnit.MILLISECONDS.seconds == pytest.approx(0.001)
    assert SleepUnit.MICROSECONDS.seconds == pytest.approx(0.000001)
