"""Polling utilities for operations the remote service completes asynchronously"""

import logging
import threading
import time
from typing import Callable, Optional, TypeVar

from medialive_resources.utils.backoff import ConstantBackoff

LOG = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableError(Exception):
    """raise from a polled operation to signal that the awaited condition is not met yet"""

    pass


class PollTimeoutError(Exception):
    """the polled condition was not met within the time budget (or the wait was cancelled)"""

    def __init__(self, message: str, last_error: Optional[Exception] = None, cancelled: bool = False):
        super().__init__(message)
        self.last_error = last_error
        self.cancelled = cancelled


def is_retryable_error(e: Exception) -> bool:
    return isinstance(e, RetryableError)


def retry_until(
    operation: Callable[[], T],
    is_retryable: Callable[[Exception], bool] = is_retryable_error,
    interval: float = 2.0,
    timeout: float = 30.0,
    cancel_event: Optional[threading.Event] = None,
    deadline: Optional[float] = None,
) -> T:
    """
    Calls ``operation`` until it returns, waiting ``interval`` seconds between two attempts.

    Errors for which ``is_retryable`` returns True mean "not done yet" and trigger another attempt, any other
    error is raised immediately. Polling stops with a ``PollTimeoutError`` once ``timeout`` seconds have elapsed,
    ``cancel_event`` is set, or the monotonic ``deadline`` has passed, whichever comes first.

    :param operation: the operation to call, its return value is returned once it does not raise
    :param is_retryable: predicate deciding whether an error raised by the operation warrants another attempt
    :param interval: seconds to wait between two attempts
    :param timeout: total time budget in seconds
    :param cancel_event: optional event which cancels the wait when set
    :param deadline: optional ``time.monotonic()`` timestamp after which no further attempt is made
    :return: the result of the first successful call of ``operation``
    """
    backoff = ConstantBackoff(interval=interval, max_time_elapsed=timeout)
    backoff.reset()

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise PollTimeoutError("polling cancelled", cancelled=True)

        try:
            return operation()
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error = e

        wait = backoff.next_backoff()
        if deadline is not None:
            wait = min(wait, deadline - time.monotonic())
        if wait <= 0:
            raise PollTimeoutError(
                f"condition not met after {backoff.retries} attempts: {last_error}",
                last_error=last_error,
            )

        LOG.debug("Condition not met (%s), retrying in %.2fs", last_error, wait)
        if cancel_event is not None:
            if cancel_event.wait(wait):
                raise PollTimeoutError(
                    "polling cancelled", last_error=last_error, cancelled=True
                )
        else:
            time.sleep(wait)
