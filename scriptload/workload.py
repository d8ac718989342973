"""Workload (process-wide, shared) and ClientWorkload (one per concurrent client).

The workload owns the master random source and only touches it in
``new_client``; everything else it holds is read-only once built. Each client
gets its own stream seeded from the master and a private copy of the baseline
variables, so clients never interact except through shared immutable scripts.
"""

from __future__ import annotations

import random
import sys
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import IO, Any

from .commands import ScriptContext
from .exceptions import ScriptloadError
from .logging_config import client_extra, get_logger
from .models import UnitOfWork
from .selector import Scripts

logger = get_logger("workload")

# Width of a client seed drawn from the master source
CLIENT_SEED_BITS = 63


class Workload:
    """Scripts, baseline variables and the master random source.

    Args:
        scripts: Weighted script selector shared by every client
        variables: Baseline bindings visible to every evaluation before any command runs
        rand: Master source; used only to seed new clients
        stderr: Diagnostic sink handed to each client
    """

    __slots__ = ("variables", "scripts", "_rand", "_rand_lock", "_stderr", "_next_client_id")

    def __init__(
        self,
        scripts: Scripts,
        variables: Mapping[str, Any] | None = None,
        rand: random.Random | None = None,
        stderr: IO[str] | None = None,
    ) -> None:
        self.scripts = scripts
        self.variables: Mapping[str, Any] = MappingProxyType(dict(variables or {}))
        self._rand = rand if rand is not None else random.Random()
        self._rand_lock = threading.Lock()
        self._stderr = stderr
        self._next_client_id = 0

    def __repr__(self) -> str:
        return f"Workload(scripts={self.scripts!r}, variables={sorted(self.variables)})"

    def new_client(self) -> "ClientWorkload":
        """Create a client with a private random stream seeded from the master source.

        Safe to call from several threads; the master source is locked while drawing.
        """
        with self._rand_lock:
            seed = self._rand.getrandbits(CLIENT_SEED_BITS)
            client_id = self._next_client_id
            self._next_client_id += 1
        logger.debug("Spawned client", extra=client_extra(client_id))
        return ClientWorkload(
            scripts=self.scripts,
            variables=self.variables,
            rand=random.Random(seed),
            stderr=self._stderr if self._stderr is not None else sys.stderr,
            client_id=client_id,
        )


class ClientWorkload:
    """Per-client handle producing one unit of work per ``next()`` call.

    Calls on one client must not overlap; separate clients may run concurrently.
    """

    __slots__ = ("client_id", "variables", "scripts", "rand", "stderr", "_busy")

    def __init__(
        self,
        scripts: Scripts,
        variables: Mapping[str, Any],
        rand: random.Random,
        stderr: IO[str],
        client_id: int = 0,
    ) -> None:
        self.client_id = client_id
        self.variables = dict(variables)
        self.scripts = scripts
        self.rand = rand
        self.stderr = stderr
        self._busy = False

    def __repr__(self) -> str:
        return f"ClientWorkload(client_id={self.client_id})"

    async def next(self) -> UnitOfWork:
        """Choose a script with this client's stream and evaluate it in a fresh scope.

        Raises:
            ScriptEvalError: If a command fails; the partial unit rides on the error
            ScriptloadError: If called while a previous call on this client is still running
        """
        if self._busy:
            raise ScriptloadError(
                "next() called while a previous evaluation is still running",
                context={"client": self.client_id},
            )
        self._busy = True
        try:
            script = self.scripts.choose(self.rand)
            ctx = ScriptContext(vars=dict(self.variables), rand=self.rand, stderr=self.stderr)
            return await script.eval(ctx)
        finally:
            self._busy = False
