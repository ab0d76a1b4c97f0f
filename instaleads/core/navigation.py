"""Classification and retry of transient navigation failures."""

import time
from typing import Awaitable, Callable, TypeVar

from instaleads.exceptions import NavigationError, TransientNavigationError
from instaleads.logging import get_logger

T = TypeVar("T")

# Races from the page navigating away while we evaluate or wait on it
TRANSIENT_NAVIGATION_ERRORS = (
    "execution context was destroyed",
    "cannot find context with specified id",
    "most likely because of a navigation",
    "frame was detached",
    "navigating frame was detached",
)

CLOSED_TARGET_ERRORS = (
    "target page, context or browser has been closed",
    "target closed",
    "page crashed",
    "browser has been closed",
    "browser has disconnected",
)

_log = get_logger("navigation")


def is_transient_navigation_message(message: str) -> bool:
    lowered = message.lower()
    return any(fragment in lowered for fragment in TRANSIENT_NAVIGATION_ERRORS)


def is_closed_target_message(message: str) -> bool:
    lowered = message.lower()
    return any(fragment in lowered for fragment in CLOSED_TARGET_ERRORS)


async def retry_transient(
    page,
    operation: Callable[[], Awaitable[T]],
    *,
    deadline_ms: int,
    settle_timeout_ms: int = 5000,
    label: str = "operation",
) -> T:
    """
    Run `operation`, retrying on transient navigation noise until a deadline.

    Between attempts the page is given a chance to settle by waiting for
    DOMContentLoaded. Non-transient errors propagate immediately; once the
    deadline passes the last TransientNavigationError is re-raised.

    Args:
        page: NavigablePage the operation runs against
        operation: Zero-argument coroutine factory
        deadline_ms: Overall budget for all attempts
        settle_timeout_ms: Bound on each stability wait
        label: Name used in log events

    Returns:
        Whatever `operation` returns
    """
    deadline = time.monotonic() + deadline_ms / 1000
    attempt = 0

    while True:
        attempt += 1
        try:
            return await operation()
        except TransientNavigationError as exc:
            if time.monotonic() >= deadline:
                _log.warning("transient_retry_exhausted", label=label, attempts=attempt)
                raise
            _log.debug("transient_navigation", label=label, attempt=attempt, error=str(exc))

        try:
            await page.wait_for_load_state("domcontentloaded", timeout=settle_timeout_ms)
        except NavigationError as exc:
            _log.debug("settle_wait_failed", label=label, error=str(exc))
