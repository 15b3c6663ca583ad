from typing import Any, Iterable, Iterator, List, Union

from fleetreach.errors import ConfigurationError
from fleetreach.targets.models import Target

TargetSpec = Union[Target, str, Iterable[Any], None]


def get_targets(spec: TargetSpec) -> List[Target]:
    """
    Normalize a target spec into an ordered list of unique Targets.

    Accepts a Target, a string of comma-separated names or URIs, or any
    (nested) iterable of those. Duplicates are dropped, keeping the first
    occurrence.

    Raises:
        ConfigurationError: If a name cannot be parsed into a target.
    """
    seen = set()
    targets: List[Target] = []
    for target in _flatten(spec):
        if target not in seen:
            seen.add(target)
            targets.append(target)
    return targets


def _flatten(spec: TargetSpec) -> Iterator[Target]:
    if spec is None:
        return
    if isinstance(spec, Target):
        yield spec
    elif isinstance(spec, str):
        for part in spec.split(","):
            if not part.strip():
                continue
            try:
                yield Target.parse(part)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
    elif isinstance(spec, Iterable):
        for item in spec:
            yield from _flatten(item)
    else:
        raise ConfigurationError(f"Cannot build targets from {type(spec).__name__}")
