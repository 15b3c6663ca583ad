import logging

from fleetreach.errors import AggregateFailure
from fleetreach.targets.models import ResultSet

from .options import PollOptions

logger = logging.getLogger(__name__)


def aggregate(results: ResultSet, options: PollOptions) -> ResultSet:
    """
    Decide what a finished ResultSet means for the caller.

    Returns ``results`` unchanged when every target succeeded or when the
    caller asked to inspect failures itself (``catch_errors``).

    Raises:
        AggregateFailure: If any target failed and ``catch_errors`` is off.
    """
    if results.ok:
        return results

    failed = results.error_set
    if options.catch_errors:
        logger.info(
            "%s: %d of %d target(s) failed, returning results to caller",
            options.description,
            len(failed),
            len(results),
        )
        return results

    logger.error(
        "%s failed on %d of %d target(s): %s",
        options.description,
        len(failed),
        len(results),
        ", ".join(failed.names),
    )
    raise AggregateFailure(results, options.description)
