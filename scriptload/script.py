"""Script: a weighted, immutable sequence of commands evaluated once per iteration."""

from __future__ import annotations

from dataclasses import dataclass

from .commands import Command, ScriptContext
from .exceptions import ScriptEvalError, WorkloadConfigError
from .models import UnitOfWork

DEFAULT_WEIGHT = 1


@dataclass(frozen=True, slots=True)
class Script:
    """One kind of benchmark transaction.

    Shared by reference across all clients; ``commands`` is stored as a tuple so
    no client can mutate it.
    """

    name: str
    commands: tuple[Command, ...] = ()
    weight: int = DEFAULT_WEIGHT
    readonly: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.weight, bool) or not isinstance(self.weight, int):
            raise WorkloadConfigError(
                "script weight must be an integer",
                context={"script": self.name, "weight": self.weight},
            )
        if self.weight < 0:
            raise WorkloadConfigError(
                "script weight must be >= 0",
                context={"script": self.name, "weight": self.weight},
            )
        if not isinstance(self.readonly, bool):
            raise WorkloadConfigError(
                "script readonly flag must be a boolean",
                context={"script": self.name, "readonly": self.readonly},
            )
        object.__setattr__(self, "commands", tuple(self.commands))

    async def eval(self, ctx: ScriptContext) -> UnitOfWork:
        """Run every command in order against ``ctx``.

        Returns:
            UnitOfWork carrying this script's readonly flag and the recorded statements

        Raises:
            ScriptEvalError: On the first failing command. Carries the statements
                recorded so far and the command's exception as ``original_error``.
        """
        uow = UnitOfWork(readonly=self.readonly, script=self.name)
        for index, cmd in enumerate(self.commands):
            try:
                await cmd.execute(ctx, uow)
            except Exception as e:
                raise ScriptEvalError(
                    f"command {index} ({cmd.kind.value}) failed in script {self.name!r}",
                    unit_of_work=uow,
                    command_index=index,
                    context={"script": self.name, "command": index},
                    original_error=e,
                ) from e
        return uow
