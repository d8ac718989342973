"""Script commands and the per-evaluation context they run against.

Each command is immutable data with one coroutine, ``execute(ctx, uow)``, which
may append to the unit of work and/or rebind variables in ``ctx.vars``.
New command kinds are added as new classes tagged with a ``CommandKind``.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import IO, Any, ClassVar, Protocol, runtime_checkable

from .exceptions import SleepArgumentError
from .models import CommandKind, SleepUnit, Statement, UnitOfWork


class ScriptContext:
    """Single-use scope for one script evaluation.

    ``vars`` is private to the evaluation; ``rand`` is the client's stream,
    shared (not copied) by every command in the evaluation.
    """

    __slots__ = ("vars", "rand", "stderr")

    def __init__(self, vars: dict[str, Any], rand: random.Random, stderr: IO[str]) -> None:
        self.vars = vars
        self.rand = rand
        self.stderr = stderr


@runtime_checkable
class Expression(Protocol):
    """Evaluator contract. Raises on failure; never returns an error value."""

    def eval(self, ctx: ScriptContext) -> Any: ...


@runtime_checkable
class Command(Protocol):
    kind: ClassVar[CommandKind]

    async def execute(self, ctx: ScriptContext, uow: UnitOfWork) -> None: ...


@dataclass(frozen=True, slots=True)
class QueryCommand:
    """Record one statement with a snapshot of the current scope."""

    kind: ClassVar[CommandKind] = CommandKind.QUERY

    query: str

    async def execute(self, ctx: ScriptContext, uow: UnitOfWork) -> None:
        uow.statements.append(Statement(self.query, dict(ctx.vars)))


@dataclass(frozen=True, slots=True)
class SetCommand:
    """Bind ``var_name`` to the value of ``expression`` for the rest of the evaluation."""

    kind: ClassVar[CommandKind] = CommandKind.SET

    var_name: str
    expression: Expression

    async def execute(self, ctx: ScriptContext, uow: UnitOfWork) -> None:
        ctx.vars[self.var_name] = self.expression.eval(ctx)


@dataclass(frozen=True, slots=True)
class SleepCommand:
    """Suspend the calling client for ``duration * unit``.

    Only the client's own task waits; the event loop and other clients keep running.
    """

    kind: ClassVar[CommandKind] = CommandKind.SLEEP

    duration: Expression
    unit: SleepUnit = SleepUnit.SECONDS

    async def execute(self, ctx: ScriptContext, uow: UnitOfWork) -> None:
        count = self.duration.eval(ctx)
        # bool is an int subclass but not a count
        if not isinstance(count, int) or isinstance(count, bool):
            raise SleepArgumentError(
                f"\\sleep must be given an integer expression, got {count!r}",
                context={"value": count, "type": type(count).__name__},
            )
        await asyncio.sleep(count * self.unit.seconds)
