"""
Sometimes the modem sends the login page instead of the status page, even right after a good login.
Just hammer the thing with requests until it sends the correct response (or we run out of attempts).

Only ExtractionError is retried. Config problems won't fix themselves and a real network outage
isn't going to clear up within a single health check.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

import structlog
from err.exceptions import ExtractionError, ModemError
from modem import metrics
from modem.models import StartupProcedure
from util.const import DEFAULT_MAX_RETRIES

log = structlog.get_logger(__name__)


class RetryState(Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    # Non-retryable error; reported after the attempt that raised it
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass
class RetryOutcome:
    state: RetryState
    attempts: int
    result: StartupProcedure | None = None
    error: ModemError | None = None


class RetryController:
    """Runs `fetch` up to max_retries + 1 times."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[StartupProcedure]],
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = 0.0,
    ):
        self.fetch = fetch
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def run(self) -> RetryOutcome:
        remaining = self.max_retries
        attempts = 0
        state = RetryState.ATTEMPTING
        while state is RetryState.ATTEMPTING:
            attempts += 1
            try:
                result = await self.fetch()
            except ExtractionError as e:
                if remaining == 0:
                    log.error("Out of retries", attempts=attempts, error=str(e))
                    return RetryOutcome(RetryState.EXHAUSTED, attempts, error=e)
                log.warning("Wrong page from modem, retrying", remaining=remaining, error=str(e))
                metrics.c_meta_retry.inc()
                remaining -= 1
                if self.retry_delay > 0:
                    await asyncio.sleep(self.retry_delay)
                continue
            except ModemError as e:
                log.error("Status fetch failed", attempts=attempts, error=str(e))
                return RetryOutcome(RetryState.FAILED, attempts, error=e)
            state = RetryState.SUCCEEDED

        log.info("Got startup procedure", attempts=attempts)
        return RetryOutcome(state, attempts, result=result)
