"""Retry logic with exponential backoff"""

import time
from typing import Any, Callable, Tuple, Type

from spendwatch.utils.errors import SpendWatchError
from spendwatch.utils.logging import get_logger

logger = get_logger(__name__)


def retry_with_exponential_backoff(
    func: Callable,
    *args,
    max_retries: int = 3,
    base_delay: float = 2,
    max_delay: float = 60,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    **kwargs
) -> Any:
    """
    Retry function with exponential backoff

    Args:
        func: Function to retry
        *args, **kwargs: Arguments to pass to func
        max_retries: Maximum attempts (including the first)
        base_delay: Delay before the second attempt, doubled each time
        max_delay: Delay cap in seconds
        retry_on: Exception types that trigger a retry; anything else propagates
        sleep: Sleep function (swapped out in tests)

    Returns:
        Function result

    Raises:
        SpendWatchError: If all retries exhausted, chained from the last failure
    """
    for attempt in range(max_retries):
        try:
            return func(*args, **kwargs)

        except retry_on as e:
            if attempt == max_retries - 1:
                logger.error(
                    f"All {max_retries} retry attempts exhausted",
                    function=getattr(func, '__name__', repr(func)),
                    error=str(e)
                )
                raise SpendWatchError(f"Failed after {max_retries} attempts: {e}") from e

            delay = min(base_delay * (2 ** attempt), max_delay)
            logger.warning(f"Attempt {attempt + 1} failed, retrying in {delay}s: {e}")
            sleep(delay)

    raise SpendWatchError("max_retries must be at least 1")
