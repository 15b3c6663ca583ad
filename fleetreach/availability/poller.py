"""
Availability polling.

Each target gets its own asyncio task that keeps trying to connect until a
connection succeeds or the operation's wait time runs out. The tasks share
one start time, never wait on each other, and are joined once at the end.
Every task writes only its own slot of the result list, so results come back
in input order whatever order the targets finished in.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional, Sequence

from fleetreach.errors import TargetTimeoutError, TransportError
from fleetreach.targets.models import ResultSet, Target, TargetResult
from fleetreach.transports.base import Connector

from .options import PollOptions

logger = logging.getLogger(__name__)

# Failures that mean "not reachable yet"; anything else is a bug in the connector.
RETRYABLE_ERRORS = (TransportError, OSError, asyncio.TimeoutError)


class AvailabilityPoller:
    """
    Waits for targets to accept connections.

    Args:
        connector: Makes one connection attempt per call.
        clock: Monotonic clock in seconds.
        sleep: Coroutine used to pause between attempts.
    """

    def __init__(
        self,
        connector: Connector,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.connector = connector
        self.clock = clock
        self.sleep = sleep

    async def wait_until_available(
        self, targets: Sequence[Target], options: Optional[PollOptions] = None
    ) -> ResultSet:
        """
        Poll every target concurrently and collect one result per target.

        An empty target list returns an empty ResultSet without contacting
        anything.
        """
        options = options or PollOptions()
        if not targets:
            logger.debug("%s: no targets given", options.description)
            return ResultSet([])

        logger.info(
            "%s: polling %d target(s) for up to %gs every %gs",
            options.description,
            len(targets),
            options.wait_time,
            options.retry_interval,
        )
        started = self.clock()
        slots: List[Optional[TargetResult]] = [None] * len(targets)
        await asyncio.gather(
            *(self._poll(index, target, options, started, slots) for index, target in enumerate(targets))
        )
        return ResultSet(slots)

    async def _poll(
        self,
        index: int,
        target: Target,
        options: PollOptions,
        started: float,
        slots: List[Optional[TargetResult]],
    ) -> None:
        attempts = 0
        while True:
            attempts += 1
            try:
                await self.connector.connect(target)
            except RETRYABLE_ERRORS as e:
                last_error: Exception = e
            except Exception as e:
                logger.error(
                    "%s: unexpected %s from connector %s, giving up: %s",
                    target,
                    type(e).__name__,
                    getattr(self.connector, "name", self.connector),
                    e,
                    exc_info=True,
                )
                slots[index] = TargetResult.failure(target, e)
                return
            else:
                logger.debug("%s connected after %d attempt(s)", target, attempts)
                slots[index] = TargetResult.success(target)
                return

            elapsed = self.clock() - started
            if elapsed >= options.wait_time:
                slots[index] = self._timed_out(target, options, attempts, elapsed, last_error)
                return

            logger.debug(
                "%s attempt %d failed (%s), retrying in %gs",
                target,
                attempts,
                last_error,
                options.retry_interval,
            )
            await self.sleep(options.retry_interval)

            # no new attempt once the budget is exceeded while waiting
            elapsed = self.clock() - started
            if elapsed > options.wait_time:
                slots[index] = self._timed_out(target, options, attempts, elapsed, last_error)
                return

    @staticmethod
    def _timed_out(
        target: Target, options: PollOptions, attempts: int, elapsed: float, last_error: Exception
    ) -> TargetResult:
        logger.warning(
            "%s not available after %d attempt(s) in %.1fs: %s",
            target,
            attempts,
            elapsed,
            last_error,
        )
        return TargetResult.failure(target, TargetTimeoutError(target, options.wait_time, last_error))
