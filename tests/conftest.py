"""Pytest fixtures for scriptload tests."""

from __future__ import annotations

import io
import random
from pathlib import Path

import pytest

from scriptload.commands import ScriptContext


class FixedRandom(random.Random):
    """Random whose randint always returns a preset point."""

    def __init__(self, point: int) -> None:
        super().__init__(0)
        self.point = point
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        return self.point


class ExplodingRandom(random.Random):
    """Random that fails the test if anything draws from it."""

    def random(self) -> float:
        raise AssertionError("random source must not be consulted")

    def randint(self, a: int, b: int) -> int:
        raise AssertionError("random source must not be consulted")

    def getrandbits(self, k: int) -> int:
        raise AssertionError("random source must not be consulted")


@pytest.fixture
def make_ctx():
    """Factory for a fresh ScriptContext."""

    def _make(vars: dict | None = None, seed: int = 1) -> ScriptContext:
        return ScriptContext(vars=dict(vars or {}), rand=random.Random(seed), stderr=io.StringIO())

    return _make


@pytest.fixture
def workload_yaml(tmp_path: Path) -> Path:
    """Write a minimal valid workload config to a temp file."""
    content = """
clients: 2
duration_seconds: 5
iterations: 3
seed: 42
variables:
  scale: 10
scripts:
  - name: transfer
    weight: 3
    commands:
      - set: {var: aid, expr: {random: [1, ":scale"]}}
      - query: "UPDATE accounts SET balance = balance - 1 WHERE id = $aid"
      - sleep: {duration: 1, unit: ms}
  - name: lookup
    weight: 1
    readonly: true
    commands:
      - query: "SELECT balance FROM accounts WHERE id = 1"
"""
    p = tmp_path / "workload.yaml"
    p.write_text(content, encoding="utf-8")
    return p
