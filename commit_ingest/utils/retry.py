"""Backoff for git commands that talk to a remote."""

import logging
import subprocess
from functools import wraps
from typing import Callable, TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# A failed clone or fetch exits non-zero; both that and a hung command are retried
RETRYABLE_EXCEPTIONS = (
    subprocess.TimeoutExpired,
    subprocess.CalledProcessError,
    ConnectionError,
    TimeoutError,
)

F = TypeVar("F", bound=Callable)


def with_retry(max_attempts: int, min_delay: float, max_delay: float) -> Callable[[F], F]:
    """Retry ``func`` on RETRYABLE_EXCEPTIONS; ``max_attempts`` counts the first call."""

    def decorator(func: F) -> F:
        retrying = retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(min=min_delay, max=max_delay),
            retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return wraps(func)(retrying(func))  # type: ignore

    return decorator
