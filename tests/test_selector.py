"""Unit tests for weighted script selection (Scripts)."""

from __future__ import annotations

import random
from collections import Counter

import pytest

from scriptload.exceptions import WorkloadConfigError
from scriptload.script import Script
from scriptload.selector import Scripts

from .conftest import ExplodingRandom, FixedRandom


def _scripts(*weights: int) -> Scripts:
    return Scripts(Script(name=f"s{i}", weight=w) for i, w in enumerate(weights))


def test_lookup_table_is_cumulative() -> None:
    s = _scripts(2, 3, 3)
    assert s.weighted_lookup == (2, 5, 8)
    assert s.total_weight == 8
    assert len(s) == 3


@pytest.mark.parametrize(
    ("point", "expected"),
    [(1, "s0"), (2, "s0"), (3, "s1"), (5, "s1"), (6, "s2"), (8, "s2")],
)
def test_boundary_points_belong_to_lower_index(point: int, expected: str) -> None:
    s = _scripts(2, 3, 3)
    rand = FixedRandom(point)
    assert s.choose(rand).name == expected
    assert rand.calls == [(1, 8)]


def test_zero_weight_script_is_never_chosen() -> None:
    s = _scripts(2, 0, 3)
    chosen = {s.choose(FixedRandom(p)).name for p in range(1, 6)}
    assert chosen == {"s0", "s2"}


def test_single_script_never_consults_randomness() -> None:
    s = _scripts(5)
    assert s.choose(ExplodingRandom()).name == "s0"


def test_single_script_with_zero_weight_allowed() -> None:
    s = _scripts(0)
    assert s.choose(ExplodingRandom()).name == "s0"


def test_empirical_frequencies_converge_to_weights() -> None:
    s = _scripts(1, 2, 7)
    rand = random.Random(1234)
    trials = 20_000
    counts = Counter(s.choose(rand).name for _ in range(trials))
    for name, weight in (("s0", 1), ("s1", 2), ("s2", 7)):
        assert abs(counts[name] / trials - weight / 10) < 0.02


def test_empty_script_set_rejected() -> None:
    with pytest.raises(WorkloadConfigError, match="at least one script"):
        Scripts([])


def test_all_zero_weights_rejected() -> None:
    with pytest.raises(WorkloadConfigError, match="total script weight must be > 0"):
        _scripts(0, 0, 0)


def test_negative_weight_rejected() -> None:
    with pytest.raises(WorkloadConfigError, match="weight must be >= 0"):
        Script(name="bad", weight=-1)


def test_non_integer_weight_rejected() -> None:
    with pytest.raises(WorkloadConfigError, match="weight must be an integer"):
        Script(name="bad", weight=1.5)  # type: ignore[arg-type]
