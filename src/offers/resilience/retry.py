"""Resilient call decorator with tenacity retry and failure notification.

Transient failures are retried with exponential backoff and jitter.  Domain
errors (:class:`~offers.domain.errors.OfferError`) are never retried: a
rejected transition will be rejected again.  Cancellation is never retried.
On final failure the error is logged, the configured notifier is told
(unless the caller reports failures itself), and the original exception is
re-raised.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from offers.domain.errors import OfferError

logger = structlog.get_logger()

# Module-level notifier for error reporting
_notifier: Any = None

F = TypeVar("F", bound=Callable[..., Any])


def configure_error_notifier(notifier: Any) -> None:
    """Set the module-level notifier for error reporting.

    Args:
        notifier: An object with a ``notify(text, level)`` method, or
            ``None`` to disable notifications.
    """
    global _notifier
    _notifier = notifier


def _notify_on_final_failure(retry_state: RetryCallState) -> Any:
    """Log and notify after retries are exhausted, then re-raise the error."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    api_name = getattr(retry_state.fn, "_api_name", "unknown") if retry_state.fn else "unknown"

    logger.error(
        "call_failed_after_retries",
        api_name=api_name,
        attempts=retry_state.attempt_number,
        exception=str(exception),
    )

    if _notifier is not None and getattr(retry_state.fn, "_notify", True):
        try:
            _notifier.notify(f"{api_name} failed after {retry_state.attempt_number} attempts", "error")
        except Exception:
            logger.exception("error_notification_failed", api_name=api_name)

    # Re-raise the original exception rather than returning a value
    return retry_state.outcome.result() if retry_state.outcome else None


def _before_sleep_log(retry_state: RetryCallState) -> None:
    """Log a warning before each retry attempt."""
    api_name = getattr(retry_state.fn, "_api_name", "unknown") if retry_state.fn else "unknown"
    logger.warning(
        "retrying_call",
        api_name=api_name,
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep if retry_state.next_action else 0,
    )


def resilient_call(
    api_name: str,
    attempts: int = 3,
    wait_initial: float = 1,
    wait_max: float = 30,
    jitter: float = 5,
    notify: bool = True,
) -> Callable[[F], F]:
    """Create a retry decorator for a persistence or network call.

    Works for both plain and ``async`` functions.

    Args:
        api_name: Human-readable name used in logs and notifications.
        attempts: Maximum number of attempts, including the first.
        wait_initial: Initial backoff in seconds.
        wait_max: Backoff ceiling in seconds.
        jitter: Maximum random jitter added to each wait, in seconds.
        notify: Tell the module-level notifier on final failure.  Pass
            ``False`` when the caller surfaces the failure itself.

    Returns:
        A decorator that wraps the function with retry logic.
    """

    def decorator(func: F) -> F:
        func._api_name = api_name  # type: ignore[attr-defined]
        func._notify = notify  # type: ignore[attr-defined]

        wrapped = retry(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential_jitter(initial=wait_initial, max=wait_max, jitter=jitter),
            retry=retry_if_exception_type(Exception) & retry_if_not_exception_type(OfferError),
            before_sleep=_before_sleep_log,
            retry_error_callback=_notify_on_final_failure,
            reraise=True,
        )(func)

        return wrapped

    return decorator
