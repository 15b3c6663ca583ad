"""Test doubles shared by the test modules."""

import asyncio
from typing import Any, Dict, List, Optional

from fleetreach.errors import TransportError


class FakeQueryService:
    """QueryService double that answers from a dict and records every query."""

    def __init__(self, responses: Optional[Dict[Any, List[str]]] = None, failures: Optional[Dict[Any, Exception]] = None):
        self.responses = responses or {}
        self.failures = failures or {}
        self.calls: List[Any] = []

    async def query_certnames(self, query: Any) -> List[str]:
        self.calls.append(query)
        if query in self.failures:
            raise self.failures[query]
        return list(self.responses.get(query, []))


class ScriptedConnector:
    """
    Connector double.

    ``succeed_on`` maps a target name to the attempt number that succeeds;
    targets missing from it never become reachable.
    """
    name = "scripted"

    def __init__(self, succeed_on: Optional[Dict[str, int]] = None):
        self.succeed_on = succeed_on or {}
        self.attempts: Dict[str, int] = {}

    async def connect(self, target) -> None:
        count = self.attempts.get(target.name, 0) + 1
        self.attempts[target.name] = count
        await asyncio.sleep(0)
        wanted = self.succeed_on.get(target.name)
        if wanted is None or count < wanted:
            raise TransportError(f"{target.name} refused connection")


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is awaited."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)
