"""
Bounded polling for asynchronous jobs
"""
import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from config import settings
from utils.errors import PollingTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def poll_until_complete(
    check: Callable[[], Optional[T]],
    max_attempts: Optional[int] = None,
    interval: Optional[float] = None,
    retry_on: Tuple[Type[BaseException], ...] = (OSError,),
    sleep: Callable[[float], None] = time.sleep,
    description: str = "job",
) -> T:
    """
    Call `check` until it returns something other than None.

    Errors listed in `retry_on` count as a failed attempt and are retried;
    on the last attempt they propagate. No sleep follows the final attempt.

    Raises:
        PollingTimeoutError: Every attempt reported "still processing".
    """
    max_attempts = max_attempts if max_attempts is not None else settings.POLL_MAX_ATTEMPTS
    interval = interval if interval is not None else settings.POLL_INTERVAL_SECONDS

    for attempt in range(1, max_attempts + 1):
        logger.debug("Polling attempt %d/%d for %s", attempt, max_attempts, description)
        try:
            result = check()
        except retry_on as e:
            logger.warning("Error polling %s (attempt %d/%d): %s", description, attempt, max_attempts, e)
            if attempt >= max_attempts:
                raise
        else:
            if result is not None:
                return result

        if attempt < max_attempts:
            sleep(interval)

    raise PollingTimeoutError(
        f"{description} timed out after {max_attempts * interval:g} seconds"
    )
