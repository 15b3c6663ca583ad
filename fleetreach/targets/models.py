"""
Targets and per-target results.

A Target is an immutable value identified by its name. Results of an
operation over many targets are collected into a ResultSet, which keeps the
input target order and is read-only once built.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union, overload
from urllib.parse import urlsplit

DEFAULT_TRANSPORT = "ssh"


@dataclass(frozen=True)
class Target:
    """
    An addressable remote host.

    Equality and hashing use ``name`` only; the connection parameters travel
    with the target but do not change its identity.
    """

    name: str
    host: Optional[str] = field(default=None, compare=False)
    port: Optional[int] = field(default=None, compare=False)
    transport: str = field(default=DEFAULT_TRANSPORT, compare=False)
    user: Optional[str] = field(default=None, compare=False)
    options: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Target name must not be empty")
        if self.host is None:
            object.__setattr__(self, "host", self.name)
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @classmethod
    def parse(cls, uri: str) -> "Target":
        """
        Build a target from ``[transport://][user@]host[:port]``.

        The whole string is kept as the target name.
        """
        uri = uri.strip()
        if not uri:
            raise ValueError("Target name must not be empty")
        split = urlsplit(uri if "://" in uri else f"{DEFAULT_TRANSPORT}://{uri}")
        try:
            port = split.port
        except ValueError as e:
            raise ValueError(f"Invalid port in target '{uri}'") from e
        return cls(
            name=uri,
            host=split.hostname or uri,
            port=port,
            transport=split.scheme or DEFAULT_TRANSPORT,
            user=split.username,
        )

    def __str__(self) -> str:
        return self.name


class ResultStatus(Enum):
    """Outcome of an operation on a single target."""
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class TargetResult:
    """Result of an operation on one target: a value on success, an error on failure."""

    target: Target
    status: ResultStatus
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, target: Target, value: Any = None) -> "TargetResult":
        return cls(target=target, status=ResultStatus.SUCCESS, value=value)

    @classmethod
    def failure(cls, target: Target, error: BaseException) -> "TargetResult":
        return cls(target=target, status=ResultStatus.FAILURE, error=error)

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/reporting."""
        data: Dict[str, Any] = {
            "target": self.target.name,
            "status": self.status.value,
            "value": self.value,
        }
        if self.error is not None:
            data["error"] = {
                "kind": type(self.error).__name__,
                "message": str(self.error),
            }
        return data


class ResultSet(Sequence[TargetResult]):
    """
    Ordered, immutable collection of TargetResults.

    Order is the order the results were given in, which callers keep equal to
    the input target order.
    """

    __slots__ = ("_results",)

    def __init__(self, results=()):
        self._results: Tuple[TargetResult, ...] = tuple(results)

    @overload
    def __getitem__(self, index: int) -> TargetResult: ...

    @overload
    def __getitem__(self, index: slice) -> "ResultSet": ...

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return ResultSet(self._results[index])
        return self._results[index]

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[TargetResult]:
        return iter(self._results)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultSet):
            return NotImplemented
        return self._results == other._results

    def __repr__(self) -> str:
        return f"ResultSet({list(self._results)!r})"

    @property
    def ok(self) -> bool:
        """True when every result succeeded (vacuously true when empty)."""
        return all(result.ok for result in self._results)

    @property
    def targets(self) -> List[Target]:
        return [result.target for result in self._results]

    @property
    def names(self) -> List[str]:
        return [result.target.name for result in self._results]

    @property
    def ok_set(self) -> "ResultSet":
        return ResultSet(r for r in self._results if r.ok)

    @property
    def error_set(self) -> "ResultSet":
        return ResultSet(r for r in self._results if not r.ok)

    @property
    def first(self) -> Optional[TargetResult]:
        return self._results[0] if self._results else None

    def find(self, name: str) -> Optional[TargetResult]:
        """Return the result for the target called ``name``, if any."""
        for result in self._results:
            if result.target.name == name:
                return result
        return None

    def to_list(self) -> List[Dict[str, Any]]:
        return [result.to_dict() for result in self._results]

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Results keyed by target name, in result order."""
        return {result.target.name: result.to_dict() for result in self._results}
