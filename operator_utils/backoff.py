"""
Requeue delay computation.

There is no failure counter. The delay after a failure is twice the time
that elapsed since the previously recorded status transition, so the status
history itself is the backoff state:

    previous status          baseline
    none / zero / Success -> 1 unit
    Failure (or Unknown)  -> now - previous.last_update, rounded to the unit

    delay = min(2 * baseline, max_delay)

A pass re-invoked early (by a watch event rather than the requeue) sees a
shorter elapsed time, which shrinks the next delay.
"""

from datetime import datetime, timedelta
from typing import Optional

from .config import Settings
from .models import ReconcileOutcome, ReconcileStatus

ZERO = timedelta(0)


def round_to_unit(delta: timedelta, unit: timedelta) -> timedelta:
    """
    Round a duration to the nearest multiple of unit, halves away from zero.

    Args:
        delta: Duration to round
        unit: Rounding unit; a non-positive unit returns delta unchanged

    Returns:
        Rounded duration
    """
    if unit <= ZERO:
        return delta
    units, remainder = divmod(abs(delta), unit)
    if remainder * 2 >= unit:
        units += 1
    rounded = unit * units
    return rounded if delta >= ZERO else -rounded


class BackoffScheduler:
    """Derives requeue delays from the previous reconcile status."""

    def __init__(
        self,
        unit: timedelta = timedelta(seconds=1),
        max_delay: timedelta = timedelta(hours=6),
        status_retry: timedelta = timedelta(seconds=1),
    ):
        """
        Initialize scheduler.

        Args:
            unit: Baseline after a success or with no history, and rounding unit
            max_delay: Ceiling for any computed delay
            status_retry: Fixed delay when the status write itself failed
        """
        self.unit = unit
        self.max_delay = max_delay
        self.status_retry = status_retry

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackoffScheduler":
        return cls(
            unit=settings.backoff_unit,
            max_delay=settings.backoff_max,
            status_retry=settings.status_retry,
        )

    def baseline(self, now: datetime, previous: Optional[ReconcileStatus]) -> timedelta:
        """
        Seed for the next delay.

        Args:
            now: Time of the current status transition
            previous: Status recorded by the previous pass

        Returns:
            Baseline duration (never negative)
        """
        if previous is None or previous.is_zero or previous.status == ReconcileOutcome.SUCCESS:
            return self.unit
        elapsed = round_to_unit(now - previous.last_update, self.unit)
        # Clock skew between writers can put last_update in the future
        return max(elapsed, ZERO)

    def next_delay(self, baseline: timedelta) -> timedelta:
        """Double the baseline, capped at max_delay."""
        return min(baseline * 2, self.max_delay)

    def failure_delay(self, now: datetime, previous: Optional[ReconcileStatus]) -> timedelta:
        """Delay after a failure whose status was recorded at ``now``."""
        return self.next_delay(self.baseline(now, previous))

    def untracked_failure_delay(self) -> timedelta:
        """Delay after a failure on an object without status support."""
        return self.next_delay(self.unit)

    def status_error_delay(self) -> timedelta:
        """Delay when the status write failed."""
        return self.status_retry
