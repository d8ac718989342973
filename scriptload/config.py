"""YAML configuration loader for scriptload workloads and run settings.

One file carries both::

    clients: 8
    duration_seconds: 30
    seed: 42
    variables:
      scale: 10
    scripts:
      - name: transfer
        weight: 3
        commands:
          - set: {var: aid, expr: {random: [1, ":scale"]}}
          - query: "UPDATE accounts SET balance = balance - 1 WHERE id = $aid"
          - sleep: {duration: 5, unit: ms}
      - name: lookup
        readonly: true
        commands:
          - query: "SELECT balance FROM accounts WHERE id = 1"
"""

from __future__ import annotations

import math
import random
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

import yaml

from .commands import Command, QueryCommand, SetCommand, SleepCommand
from .exceptions import ExpressionError, WorkloadConfigError
from .expressions import parse_expression
from .logging_config import get_logger
from .models import CommandKind, RunConfig, SleepUnit
from .script import DEFAULT_WEIGHT, Script
from .selector import Scripts
from .workload import Workload

logger = get_logger("config")


def _read_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise WorkloadConfigError(
            f"Config file not found: {path}",
            context={"path": str(path)},
        )

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.exception("Failed to parse YAML config file")
        raise WorkloadConfigError(
            f"Invalid YAML syntax in config file: {e}",
            context={"path": str(path)},
            original_error=e,
        ) from e
    except OSError as e:
        logger.exception("Failed to read config file")
        raise WorkloadConfigError(
            f"Cannot read config file: {e}",
            context={"path": str(path)},
            original_error=e,
        ) from e

    if not isinstance(raw, dict):
        raise WorkloadConfigError(
            "Config must be a YAML object/dictionary",
            context={"path": str(path), "actual_type": type(raw).__name__},
        )
    return raw


def validate_run_config(c: RunConfig) -> None:
    """Validate RunConfig bounds. Raises WorkloadConfigError if invalid.

    Durations must be finite; NaN and infinity are rejected.
    """
    if c.clients < 1:
        raise WorkloadConfigError("clients must be >= 1")
    if not (math.isfinite(c.duration_seconds) and c.duration_seconds > 0):
        raise WorkloadConfigError("duration_seconds must be a finite number > 0")
    if c.iterations < 0:
        raise WorkloadConfigError("iterations must be >= 0")
    if not (math.isfinite(c.think_time_ms) and c.think_time_ms >= 0):
        raise WorkloadConfigError("think_time_ms must be a finite number >= 0")


def _int_field(raw: dict[str, Any], key: str, default: int | None) -> int | None:
    """Read an integer setting; floats and booleans are rejected, not truncated."""
    value = raw.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise WorkloadConfigError(
            f"{key} must be an integer",
            context={key: value, "actual_type": type(value).__name__},
        )
    return value


def _number_field(raw: dict[str, Any], key: str, default: float) -> float:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise WorkloadConfigError(
            f"{key} must be a number",
            context={key: value, "actual_type": type(value).__name__},
        )
    return float(value)


def build_run_config(raw: dict[str, Any]) -> RunConfig:
    """Build and validate RunConfig from an already-parsed mapping."""
    config = RunConfig(
        clients=_int_field(raw, "clients", 1),
        duration_seconds=_number_field(raw, "duration_seconds", 10),
        iterations=_int_field(raw, "iterations", 0),
        seed=_int_field(raw, "seed", None),
        think_time_ms=_number_field(raw, "think_time_ms", 0),
    )
    validate_run_config(config)
    return config


def load_run_config(path: str | Path) -> RunConfig:
    """Load run settings from YAML file.

    Raises:
        WorkloadConfigError: If file not found, invalid YAML, or validation fails
    """
    try:
        config = build_run_config(_read_yaml(path))
    except WorkloadConfigError as e:
        raise e.with_context(path=str(path))
    logger.debug(
        "Loaded run config: clients=%s, duration=%s, iterations=%s",
        config.clients, config.duration_seconds, config.iterations,
    )
    return config


def _build_query(body: Any) -> Command:
    if not isinstance(body, str):
        raise WorkloadConfigError("query command takes the query text")
    return QueryCommand(body)


def _build_set(body: Any) -> Command:
    if not isinstance(body, dict) or "var" not in body or "expr" not in body:
        raise WorkloadConfigError("set command requires 'var' and 'expr'")
    return SetCommand(str(body["var"]), parse_expression(body["expr"]))


def _build_sleep(body: Any) -> Command:
    if not isinstance(body, dict) or "duration" not in body:
        raise WorkloadConfigError("sleep command requires 'duration'")
    unit_str = str(body.get("unit") or SleepUnit.SECONDS.value).strip().lower()
    try:
        unit = SleepUnit(unit_str)
    except ValueError:
        raise WorkloadConfigError(
            f"unknown sleep unit: {unit_str}",
            context={"allowed": [u.value for u in SleepUnit]},
        ) from None
    return SleepCommand(parse_expression(body["duration"]), unit)


_COMMAND_BUILDERS: dict[CommandKind, Callable[[Any], Command]] = {
    CommandKind.QUERY: _build_query,
    CommandKind.SET: _build_set,
    CommandKind.SLEEP: _build_sleep,
}


def build_command(raw: Any) -> Command:
    """Build one command from a single-key mapping such as ``{query: "..."}``."""
    if not isinstance(raw, dict) or len(raw) != 1:
        raise WorkloadConfigError("command must be a single-key mapping (query, set or sleep)")
    ((key, body),) = raw.items()
    try:
        kind = CommandKind(str(key).strip().lower())
    except ValueError:
        raise WorkloadConfigError(
            f"unknown command: {key}",
            context={"allowed": [k.value for k in CommandKind]},
        ) from None
    try:
        return _COMMAND_BUILDERS[kind](body)
    except ExpressionError as e:
        raise WorkloadConfigError(
            f"invalid expression in {kind.value} command: {e.message}",
            original_error=e,
        ) from e


def build_script(raw: Any, position: int) -> Script:
    if not isinstance(raw, dict):
        raise WorkloadConfigError("script must be a mapping", context={"script": position})
    name = str(raw.get("name") or f"script{position}")
    commands_raw = raw.get("commands") or []
    if not isinstance(commands_raw, list):
        raise WorkloadConfigError("commands must be a list", context={"script": name})
    commands = []
    for index, cmd_raw in enumerate(commands_raw):
        try:
            commands.append(build_command(cmd_raw))
        except WorkloadConfigError as e:
            raise e.with_context(script=name, command=index)
    return Script(
        name=name,
        commands=tuple(commands),
        weight=raw.get("weight", DEFAULT_WEIGHT),
        readonly=raw.get("readonly", False),
    )


def build_workload(
    raw: dict[str, Any],
    seed: int | None = None,
    variables: dict[str, Any] | None = None,
    stderr: IO[str] | None = None,
) -> Workload:
    """Build a Workload from an already-parsed mapping.

    Args:
        raw: Mapping with ``scripts`` and optional ``variables`` / ``seed``
        seed: Master seed; overrides ``raw["seed"]``. None in both = OS entropy
        variables: Extra baseline bindings; override those in ``raw``
        stderr: Diagnostic sink for clients (default: sys.stderr)

    Raises:
        WorkloadConfigError: On any invalid script, command, weight or variable block
    """
    scripts_raw = raw.get("scripts")
    if not isinstance(scripts_raw, list) or not scripts_raw:
        raise WorkloadConfigError("scripts must be a non-empty list")
    base_vars = raw.get("variables") or {}
    if not isinstance(base_vars, dict):
        raise WorkloadConfigError("variables must be a mapping")
    merged = {str(k): v for k, v in base_vars.items()}
    if variables:
        merged.update(variables)

    scripts = Scripts(build_script(s, i) for i, s in enumerate(scripts_raw))

    if seed is None:
        seed = _int_field(raw, "seed", None)
    rand = random.Random(seed)
    return Workload(scripts=scripts, variables=merged, rand=rand, stderr=stderr)


def load_workload(
    path: str | Path,
    seed: int | None = None,
    variables: dict[str, Any] | None = None,
    stderr: IO[str] | None = None,
) -> Workload:
    """Load a workload definition from YAML file.

    Raises:
        WorkloadConfigError: If file not found, invalid YAML, or validation fails
    """
    try:
        workload = build_workload(_read_yaml(path), seed=seed, variables=variables, stderr=stderr)
    except WorkloadConfigError as e:
        raise e.with_context(path=str(path))
    logger.debug("Loaded workload from %s: %r", path, workload.scripts)
    return workload
