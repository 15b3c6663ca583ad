"""
Waiting for targets to become reachable.

``wait_until_available`` is the entry point used by plan execution: it lets a
plan wait (for example after rebooting hosts) until the targets accept
connections again, for up to ``wait_time`` seconds.
"""

import logging
from typing import Any, Mapping, Optional, Union

from fleetreach.targets.models import ResultSet
from fleetreach.targets.resolve import TargetSpec, get_targets
from fleetreach.transports.base import Connector
from fleetreach.transports.registry import default_registry

from .aggregate import aggregate
from .options import PollOptions
from .poller import AvailabilityPoller

logger = logging.getLogger(__name__)


async def wait_until_available(
    targets: TargetSpec,
    options: Union[PollOptions, Mapping[str, Any], None] = None,
    *,
    connector: Optional[Connector] = None,
) -> ResultSet:
    """
    Wait until all targets accept connections.

    Args:
        targets: Targets, target names/URIs, or a nested list of them.
        options: PollOptions, or a mapping with ``description``,
            ``wait_time``, ``retry_interval`` and ``catch_errors``
            (``_catch_errors`` is accepted too).
        connector: Connection primitive. Defaults to the built-in registry,
            which dispatches on each target's transport.

    Returns:
        One result per target in input order. Successful results have no value.

    Raises:
        AggregateFailure: If a target stayed unreachable and ``catch_errors``
            is not set.
        ConfigurationError: If the options or target names are invalid.
    """
    if not isinstance(options, PollOptions):
        options = PollOptions.from_options(options)

    target_list = get_targets(targets)
    if not target_list:
        logger.debug("Simulating %s - no targets given", options.description)
        return aggregate(ResultSet([]), options)

    poller = AvailabilityPoller(connector or default_registry())
    results = await poller.wait_until_available(target_list, options)
    return aggregate(results, options)


__all__ = [
    "AvailabilityPoller",
    "PollOptions",
    "aggregate",
    "wait_until_available",
]
