"""Unit tests for Script.eval."""

from __future__ import annotations

import asyncio

import pytest

from scriptload.commands import QueryCommand, SetCommand, SleepCommand
from scriptload.exceptions import ScriptEvalError, SleepArgumentError, UndefinedVariableError, WorkloadConfigError
from scriptload.expressions import Literal, Variable
from scriptload.models import Statement
from scriptload.script import Script


def _arun(coro):
    return asyncio.run(coro)


def test_eval_runs_commands_in_order(make_ctx) -> None:
    script = Script(
        name="s",
        readonly=True,
        commands=(
            QueryCommand("q1"),
            SetCommand("x", Literal(5)),
            QueryCommand("q2"),
        ),
    )
    uow = _arun(script.eval(make_ctx({"x": 1})))
    assert uow.readonly is True
    assert uow.statements == [Statement("q1", {"x": 1}), Statement("q2", {"x": 5})]


def test_later_set_does_not_rewrite_earlier_statement(make_ctx) -> None:
    script = Script(
        name="s",
        commands=(SetCommand("x", Literal(1)), QueryCommand("q"), SetCommand("x", Literal(2))),
    )
    ctx = make_ctx()
    uow = _arun(script.eval(ctx))
    assert uow.statements[0].params == {"x": 1}
    assert ctx.vars["x"] == 2


def test_failure_returns_partial_unit(make_ctx) -> None:
    script = Script(
        name="partial",
        commands=(
            QueryCommand("q1"),
            QueryCommand("q2"),
            SetCommand("y", Variable("missing")),
            QueryCommand("q3"),
        ),
    )
    with pytest.raises(ScriptEvalError) as exc_info:
        _arun(script.eval(make_ctx()))
    err = exc_info.value
    assert [s.query for s in err.unit_of_work.statements] == ["q1", "q2"]
    assert err.command_index == 2
    assert isinstance(err.original_error, UndefinedVariableError)
    assert err.__cause__ is err.original_error
    assert err.context == {"script": "partial", "command": 2}


def test_failure_before_any_statement_yields_empty_unit(make_ctx) -> None:
    script = Script(name="s", readonly=True, commands=(SleepCommand(Literal(0.5)), QueryCommand("q")))
    with pytest.raises(ScriptEvalError) as exc_info:
        _arun(script.eval(make_ctx()))
    assert len(exc_info.value.unit_of_work) == 0
    assert exc_info.value.unit_of_work.readonly is True
    assert isinstance(exc_info.value.original_error, SleepArgumentError)


def test_commands_stored_as_tuple() -> None:
    script = Script(name="s", commands=[QueryCommand("q")])  # type: ignore[arg-type]
    assert isinstance(script.commands, tuple)
    assert script.weight == 1
    assert script.readonly is False


def test_empty_script_yields_empty_unit(make_ctx) -> None:
    uow = _arun(Script(name="noop").eval(make_ctx()))
    assert uow.statements == []


@pytest.mark.parametrize("flag", ["false", 1, None])
def test_non_boolean_readonly_rejected(flag) -> None:
    with pytest.raises(WorkloadConfigError, match="readonly flag must be a boolean") as exc_info:
        Script(name="w", readonly=flag)  # type: ignore[arg-type]
    assert exc_info.value.context["script"] == "w"


def test_unit_records_script_name(make_ctx) -> None:
    uow = _arun(Script(name="named", commands=(QueryCommand("q"),)).eval(make_ctx()))
    assert uow.script == "named"
