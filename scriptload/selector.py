"""Weighted random choice among scripts.

Picture the scripts laid end to end on a number line, each segment as long as
its weight. For A@2, B@3, C@3::

    1 2 3 4 5 6 7 8
    [A ][B   ][C   ]
      2     5     8   <- cumulative weight (lookup table)

A uniform draw in ``[1, total]`` lands in exactly one segment, and the first
lookup entry ``>= point`` names it. Binary search keeps that O(log n).
A point equal to a boundary belongs to the lower-indexed script.
"""

from __future__ import annotations

import random
from bisect import bisect_left
from collections.abc import Iterable, Iterator

from .exceptions import WorkloadConfigError
from .script import Script


class Scripts:
    """Immutable scripts plus their cumulative-weight lookup table.

    Holds no mutable state, so one instance may be shared by any number of
    clients as long as each passes its own random stream to ``choose``.
    """

    __slots__ = ("scripts", "weighted_lookup", "total_weight")

    def __init__(self, scripts: Iterable[Script]) -> None:
        scripts = tuple(scripts)
        if not scripts:
            raise WorkloadConfigError("workload must define at least one script")
        lookup: list[int] = []
        cumulative = 0
        for script in scripts:
            cumulative += script.weight
            lookup.append(cumulative)
        # A single script never consults randomness, so weight 0 is harmless there
        if cumulative == 0 and len(scripts) > 1:
            raise WorkloadConfigError(
                "total script weight must be > 0",
                context={"scripts": [s.name for s in scripts]},
            )
        self.scripts = scripts
        self.weighted_lookup = tuple(lookup)
        self.total_weight = cumulative

    def __len__(self) -> int:
        return len(self.scripts)

    def __iter__(self) -> Iterator[Script]:
        return iter(self.scripts)

    def __repr__(self) -> str:
        names = ", ".join(f"{s.name}@{s.weight}" for s in self.scripts)
        return f"Scripts({names})"

    def index_for_point(self, point: int) -> int:
        """Index of the script whose segment contains ``point`` (1-based, <= total)."""
        return bisect_left(self.weighted_lookup, point)

    def choose(self, rand: random.Random) -> Script:
        """Pick a script with probability weight / total_weight."""
        if len(self.scripts) == 1:
            return self.scripts[0]
        point = rand.randint(1, self.total_weight)
        return self.scripts[self.index_for_point(point)]
