"""
scriptload - Workload generation engine for load tests.

Turns weighted, parameterized scripts into a stream of randomized units of work,
one independent reproducible random stream per concurrent client.
"""

from .exceptions import (
    ExpressionError,
    ScriptEvalError,
    ScriptloadError,
    SleepArgumentError,
    UndefinedVariableError,
    WorkloadConfigError,
)
from .models import Statement, UnitOfWork
from .script import Script
from .selector import Scripts
from .workload import ClientWorkload, Workload

__all__ = [
    "__version__",
    "ClientWorkload",
    "ExpressionError",
    "Script",
    "ScriptEvalError",
    "ScriptloadError",
    "Scripts",
    "SleepArgumentError",
    "Statement",
    "UndefinedVariableError",
    "UnitOfWork",
    "Workload",
    "WorkloadConfigError",
]

__version__ = "1.0.0"
