"""Built-in expression nodes usable from YAML workloads and tests.

Not a grammar: a full expression language plugs in through the ``Expression``
protocol in ``commands``. These nodes cover literals, variable lookups and
uniform random integers, which is what most benchmark scripts need.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .commands import Expression, ScriptContext
from .exceptions import ExpressionError, UndefinedVariableError

VARIABLE_PREFIX = ":"
RANDOM_KEY = "random"


@dataclass(frozen=True, slots=True)
class Literal:
    value: Any

    def eval(self, ctx: ScriptContext) -> Any:
        return self.value


@dataclass(frozen=True, slots=True)
class Variable:
    name: str

    def eval(self, ctx: ScriptContext) -> Any:
        try:
            return ctx.vars[self.name]
        except KeyError:
            raise UndefinedVariableError(
                f"undefined variable: {self.name}", context={"name": self.name}
            ) from None


@dataclass(frozen=True, slots=True)
class RandomInt:
    """Uniform integer in ``[low, high]`` drawn from the client's stream."""

    low: Expression
    high: Expression

    def eval(self, ctx: ScriptContext) -> int:
        low = _as_int(self.low.eval(ctx), "low")
        high = _as_int(self.high.eval(ctx), "high")
        if low > high:
            raise ExpressionError(
                "random() lower bound exceeds upper bound",
                context={"low": low, "high": high},
            )
        return ctx.rand.randint(low, high)


def _as_int(value: Any, bound: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ExpressionError(
            f"random() {bound} bound must be an integer, got {value!r}",
            context={"bound": bound, "value": value},
        )
    return value


def parse_expression(raw: Any) -> Expression:
    """Build an expression node from a YAML value.

    - ``":name"`` reads variable ``name``
    - ``{"random": [low, high]}`` draws a uniform integer; bounds are expressions too
    - any other scalar is a literal

    Raises:
        ExpressionError: If a mapping is not a well-formed ``random`` node
    """
    if isinstance(raw, str) and raw.startswith(VARIABLE_PREFIX) and len(raw) > 1:
        return Variable(raw[len(VARIABLE_PREFIX):])
    if isinstance(raw, dict):
        bounds = raw.get(RANDOM_KEY)
        if len(raw) != 1 or not isinstance(bounds, list) or len(bounds) != 2:
            raise ExpressionError(
                "expression mapping must be {random: [low, high]}",
                context={"value": raw},
            )
        return RandomInt(parse_expression(bounds[0]), parse_expression(bounds[1]))
    if isinstance(raw, (list, tuple)):
        raise ExpressionError("lists are not valid expressions", context={"value": raw})
    return Literal(raw)
