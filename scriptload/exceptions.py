"""Custom exceptions for the scriptload workload engine.

All scriptload-specific exceptions inherit from ScriptloadError for unified error handling.
Each exception preserves the original cause chain for debugging.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import UnitOfWork


class ScriptloadError(Exception):
    """Base exception for all scriptload errors.

    Attributes:
        message: Human-readable error description
        context: Optional dictionary with additional debugging context
        original_error: Original exception that caused this error (if any)
    """

    def __init__(
        self,
        message: str,
        *args: object,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, *args)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        base = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            base = f"{base} [{ctx_str}]"
        if self.original_error:
            base = f"{base} (caused by: {type(self.original_error).__name__}: {self.original_error})"
        return base

    def with_context(self, **kwargs: Any) -> "ScriptloadError":
        """Add context to this error and return self for chaining."""
        self.context.update(kwargs)
        return self


class WorkloadConfigError(ScriptloadError):
    """Raised when a workload definition or run configuration is invalid.

    Common causes:
    - Config file not found or invalid YAML syntax
    - No scripts, or negative / non-integer script weights
    - Total weight of zero across several scripts (selection undefined)
    - Unknown command kind or sleep unit
    """


class ExpressionError(ScriptloadError):
    """Raised by the built-in expression nodes when evaluation fails."""


class UndefinedVariableError(ExpressionError):
    """Raised when an expression reads a variable that is not bound in scope."""


class SleepArgumentError(ScriptloadError):
    """Raised when a sleep duration does not evaluate to an integer count."""


class ScriptEvalError(ScriptloadError):
    """Raised when a command fails part-way through a script evaluation.

    The statements accumulated before the failing command are kept on
    ``unit_of_work``; the evaluator's exception is kept verbatim on
    ``original_error`` and chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *args: object,
        unit_of_work: "UnitOfWork",
        command_index: int,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, *args, context=context, original_error=original_error)
        self.unit_of_work = unit_of_work
        self.command_index = command_index
