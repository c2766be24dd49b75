"""Deadline-bounded polling used while waiting on eventually-consistent API state."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


def run_while_false(
    condition: Callable[[], bool],
    timeout: float,
    interval: float,
    stop_event: threading.Event | None = None,
) -> bool:
    """
    Evaluate ``condition`` every ``interval`` seconds until it returns True or
    ``timeout`` seconds have elapsed. Returns the last result.

    The condition is checked once more at the deadline, so a condition that never
    holds returns after at least ``timeout`` and at most ``timeout + interval``.
    When ``stop_event`` is set the loop gives up early and returns False.
    """
    deadline = time.monotonic() + timeout
    while True:
        if condition():
            return True

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        wait = min(interval, remaining)
        if stop_event is not None:
            if stop_event.wait(wait):
                logger.debug("Polling cancelled")
                return False
        else:
            time.sleep(wait)
