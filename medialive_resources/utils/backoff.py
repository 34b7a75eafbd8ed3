import time

from pydantic import Field
from pydantic.dataclasses import dataclass


@dataclass
class ConstantBackoff:
    """
    ConstantBackoff waits the same ``interval`` between two attempts until ``max_time_elapsed`` seconds
    have passed since the first attempt.

    next_backoff() returns the time to wait before the next attempt. The last wait is shortened so that
    the total never exceeds ``max_time_elapsed``, and once the budget is used up it returns 0, which
    means: stop retrying.

    For example, given `interval` = 2 and `max_time_elapsed` = 5 (and instantaneous attempts):

    | Request # | Elapsed (seconds) | Backoff (seconds) |
    |-----------|-------------------|-------------------|
    | 1         | 0                 | 2                 |
    | 2         | 2                 | 2                 |
    | 3         | 4                 | 1                 |
    | 4         | 5                 | 0                 |

    Note:
        - `max_time_elapsed` of -1 disables the time budget
        - The implementation is not thread-safe, use one instance per polling loop
    """

    interval: float = Field(2.0, title="Time to wait between two attempts in seconds", gt=0)
    max_time_elapsed: float = Field(-1, title="Max total time in seconds (-1 for unlimited)", ge=-1)

    def __post_init__(self):
        self.retries: int = 0
        self.start_time: float = 0.0

    @property
    def elapsed_duration(self) -> float:
        return max(time.monotonic() - self.start_time, 0)

    def reset(self) -> None:
        """Starts the clock, to be called right before the first attempt."""
        self.retries = 0
        self.start_time = time.monotonic()

    def next_backoff(self) -> float:
        if self.start_time == 0:
            self.start_time = time.monotonic()

        self.retries += 1

        if self.max_time_elapsed < 0:
            return self.interval

        remaining = self.max_time_elapsed - self.elapsed_duration
        if remaining <= 0:
            return 0
        return min(self.interval, remaining)
