"""Resilience infrastructure for persistence calls with retry and error notification."""

from offers.resilience.retry import configure_error_notifier, resilient_call

__all__ = [
    "configure_error_notifier",
    "resilient_call",
]
