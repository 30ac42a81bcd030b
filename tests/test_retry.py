"""Tests for the resilient_call retry decorator."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import anyio
import pytest

from offers.domain.errors import InvalidTransitionError
from offers.domain.types import OfferStatus
from offers.resilience.retry import configure_error_notifier, resilient_call


class RecordingNotifier:
    def __init__(self) -> None:
        self.notices: list[tuple[str, str]] = []

    def notify(self, text: str, level: str) -> None:
        self.notices.append((text, level))


def _no_wait(api_name: str, attempts: int = 3) -> Callable[[Any], Any]:
    return resilient_call(api_name, attempts=attempts, wait_initial=0, wait_max=0, jitter=0)


class TestResilientCall:
    def test_returns_on_success(self) -> None:
        @_no_wait("ok")
        def call() -> str:
            return "done"

        assert call() == "done"

    def test_retries_transient_errors(self) -> None:
        attempts: list[int] = []

        @_no_wait("flaky")
        def call() -> str:
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("reset")
            return "done"

        assert call() == "done"
        assert len(attempts) == 3

    def test_reraises_after_exhaustion_and_notifies(self) -> None:
        notifier = RecordingNotifier()
        configure_error_notifier(notifier)

        @_no_wait("respond_to_offer", attempts=2)
        def call() -> None:
            raise TimeoutError("slow")

        with pytest.raises(TimeoutError):
            call()
        assert notifier.notices == [("respond_to_offer failed after 2 attempts", "error")]

    def test_caller_can_opt_out_of_notification(self) -> None:
        notifier = RecordingNotifier()
        configure_error_notifier(notifier)

        @resilient_call(
            "respond_to_offer", attempts=2, wait_initial=0, wait_max=0, jitter=0, notify=False
        )
        def call() -> None:
            raise TimeoutError("slow")

        with pytest.raises(TimeoutError):
            call()
        assert notifier.notices == []

    def test_domain_errors_are_not_retried(self) -> None:
        attempts: list[int] = []

        @_no_wait("respond_to_offer")
        def call() -> None:
            attempts.append(1)
            raise InvalidTransitionError(OfferStatus.ACCEPTED, "reject")

        with pytest.raises(InvalidTransitionError):
            call()
        assert len(attempts) == 1

    def test_notifier_failure_does_not_mask_error(self) -> None:
        class BrokenNotifier:
            def notify(self, text: str, level: str) -> None:
                raise RuntimeError("notifier down")

        configure_error_notifier(BrokenNotifier())

        @_no_wait("make_offer", attempts=1)
        def call() -> None:
            raise ConnectionError("reset")

        with pytest.raises(ConnectionError):
            call()

    @pytest.mark.anyio()
    async def test_cancellation_is_not_retried(self) -> None:
        attempts: list[int] = []

        @_no_wait("slow_call")
        async def call() -> None:
            attempts.append(1)
            await anyio.sleep(10)

        with anyio.move_on_after(0.05) as scope:
            await call()

        assert scope.cancelled_caught
        assert len(attempts) == 1

    @pytest.mark.anyio()
    async def test_async_functions(self) -> None:
        attempts: list[int] = []

        @_no_wait("async_call")
        async def call() -> int:
            attempts.append(1)
            if len(attempts) < 2:
                raise ConnectionError("reset")
            return 42

        assert await call() == 42
        assert len(attempts) == 2
