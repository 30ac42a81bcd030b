"""Response dispatcher: the client-side boundary of offer negotiation.

Given a message id and a response kind, the dispatcher

1. re-validates the action with the state machine (hidden controls are a
   convenience, not the guard),
2. tags the record in flight so a second click is rejected,
3. persists the response through the configured backend, retrying
   transient failures,
4. updates the transcript only from the backend's confirmed result.

On failure the record keeps its prior status, the user is notified once, and
a :class:`~offers.domain.errors.DispatchError` (or the backend's domain error)
is raised.  A cancelled dispatch also drops the in-flight tag.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any, Protocol

import structlog

from offers.config import Settings, get_settings
from offers.domain.errors import (
    DispatchError,
    InvalidOfferAmountError,
    MessageNotFoundError,
    OfferError,
)
from offers.domain.models import ChatMessage, OfferResponseResult
from offers.domain.types import ResponseKind, ViewerRole
from offers.entry import INVALID_PRICE_MESSAGE, EntryMode, OfferEntry
from offers.resilience.retry import resilient_call
from offers.state_machine.machine import resolve_transition
from offers.state_machine.transitions import (
    ACTION_FOR_RESPONSE,
    DEFAULT_COUNTER_ROLES,
    counter_roles,
)
from offers.store.store import OfferStore
from offers.transcript import Transcript

logger = structlog.get_logger()


class OfferBackend(Protocol):
    """Persistence collaborator for offers and responses."""

    async def make_offer(
        self, conversation_id: str, role: ViewerRole, offer_price: int
    ) -> ChatMessage: ...

    async def respond_to_offer(
        self,
        conversation_id: str,
        message_id: int,
        kind: ResponseKind,
        role: ViewerRole,
        counter_price: int | None = None,
    ) -> OfferResponseResult: ...


class Notifier(Protocol):
    """Surface for user-visible notices (toasts)."""

    def notify(self, text: str, level: str) -> None: ...


class StoreBackend:
    """Run an in-process :class:`OfferStore` off the event loop."""

    def __init__(self, store: OfferStore) -> None:
        self._store = store

    async def make_offer(
        self, conversation_id: str, role: ViewerRole, offer_price: int
    ) -> ChatMessage:
        return await asyncio.to_thread(self._store.make_offer, conversation_id, role, offer_price)

    async def respond_to_offer(
        self,
        conversation_id: str,
        message_id: int,
        kind: ResponseKind,
        role: ViewerRole,
        counter_price: int | None = None,
    ) -> OfferResponseResult:
        return await asyncio.to_thread(
            self._store.respond_to_offer,
            conversation_id,
            message_id,
            kind,
            role,
            counter_price,
        )


class ResponseDispatcher:
    """Send offers and responses for one viewer in one conversation.

    Args:
        transcript: The chat view's local transcript.
        backend: Persistence collaborator (store or HTTP client).
        role: The viewer's role, from the session collaborator.
        counter_roles: Roles allowed to counter.
        notifier: Optional toast surface for success/failure notices.
        audit_logger: Optional audit logger for dispatch failures.
            Without either, exhausted retries go to the module-level error
            notifier instead.
        max_attempts: Attempts per persistence call, including the first.
        retry_wait: Initial backoff in seconds (0 disables waiting).
    """

    def __init__(
        self,
        transcript: Transcript,
        backend: OfferBackend,
        role: ViewerRole,
        counter_roles: Iterable[ViewerRole] = DEFAULT_COUNTER_ROLES,
        notifier: Notifier | None = None,
        audit_logger: Any = None,
        max_attempts: int = 3,
        retry_wait: float = 1,
    ) -> None:
        self._transcript = transcript
        self._backend = backend
        self._role = role
        self._counter_roles = frozenset(counter_roles)
        self._notifier = notifier
        self._audit_logger = audit_logger

        retry_kwargs: dict[str, float] = {"wait_initial": retry_wait}
        if retry_wait == 0:
            retry_kwargs.update(wait_max=0, jitter=0)
        # Exhaustion is reported by this dispatcher when it has a surface for it.
        global_notify = notifier is None and audit_logger is None

        async def _respond(
            message_id: int, kind: ResponseKind, counter_price: int | None
        ) -> OfferResponseResult:
            return await backend.respond_to_offer(
                transcript.conversation_id, message_id, kind, role, counter_price
            )

        async def _make_offer(offer_price: int) -> ChatMessage:
            return await backend.make_offer(transcript.conversation_id, role, offer_price)

        self._persist_response = resilient_call(
            "respond_to_offer", attempts=max_attempts, notify=global_notify, **retry_kwargs
        )(_respond)
        self._persist_offer = resilient_call(
            "make_offer", attempts=max_attempts, notify=global_notify, **retry_kwargs
        )(_make_offer)

    @classmethod
    def from_settings(
        cls,
        transcript: Transcript,
        backend: OfferBackend,
        role: ViewerRole,
        settings: Settings | None = None,
        notifier: Notifier | None = None,
        audit_logger: Any = None,
        retry_wait: float = 1,
    ) -> ResponseDispatcher:
        """Build a dispatcher using the configured counter policy and attempt budget.

        Pair with :meth:`offers.api.client.OfferApiClient.from_settings` to
        dispatch against a remote offer service.
        """
        if settings is None:
            settings = get_settings()
        return cls(
            transcript,
            backend,
            role,
            counter_roles=counter_roles(settings.buyer_counter_enabled),
            notifier=notifier,
            audit_logger=audit_logger,
            max_attempts=settings.dispatch_max_attempts,
            retry_wait=retry_wait,
        )

    @property
    def role(self) -> ViewerRole:
        return self._role

    def _notify(self, text: str, level: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(text, level)
        except Exception:
            logger.exception("notifier_failed", text=text)

    def open_offer_entry(self, on_submit: Any) -> OfferEntry:
        """Open an amount entry for a new offer on this conversation's listing."""
        return OfferEntry(
            on_submit=on_submit,
            mode=EntryMode.OFFER,
            listing_price=self._transcript.listing_price,
        )

    async def send_offer(self, offer_price: int) -> ChatMessage:
        """Persist a new pending offer and append it to the transcript.

        Raises:
            InvalidOfferAmountError: If the amount is not positive (no call
                is made).
            DispatchError: If persistence fails.
        """
        if offer_price <= 0:
            raise InvalidOfferAmountError(INVALID_PRICE_MESSAGE)

        try:
            message = await self._persist_offer(offer_price)
        except OfferError:
            self._notify("Could not send your offer", "error")
            raise
        except Exception as exc:
            logger.error(
                "offer_send_failed",
                conversation_id=self._transcript.conversation_id,
                error=str(exc),
            )
            self._notify("Could not send your offer", "error")
            raise DispatchError(f"Could not send offer: {exc}") from exc

        self._transcript.append(message)
        return message

    async def respond(
        self,
        message_id: int,
        kind: ResponseKind,
        counter_price: int | None = None,
    ) -> OfferResponseResult:
        """Persist a response to one offer record and reflect it locally.

        Args:
            message_id: The offer message being answered.
            kind: ``accepted``, ``rejected`` or ``countered``.
            counter_price: New amount; required when *kind* is ``countered``.

        Returns:
            The confirmed :class:`OfferResponseResult`.

        Raises:
            InvalidOfferAmountError: Missing/invalid counter price (no call made).
            MessageNotFoundError: Unknown offer message (no call made).
            InvalidTransitionError: Record not pending (no call made).
            NotRecipientError: Viewer is not the recipient (no call made).
            CounterNotAllowedError: Viewer may not counter (no call made).
            OfferInFlightError: A response for this record is already in flight.
            DispatchError: Persistence failed; the record keeps its prior status.
        """
        if kind == ResponseKind.COUNTERED:
            if counter_price is None or counter_price <= 0:
                raise InvalidOfferAmountError(INVALID_PRICE_MESSAGE)
        elif counter_price is not None:
            raise InvalidOfferAmountError(f"counter_price is only valid for counters, not {kind}")

        message = self._transcript.offer_message(message_id)
        if message.payload is None:
            raise MessageNotFoundError(message_id)

        transition = resolve_transition(
            message.payload.status,
            message.sender,
            self._role,
            ACTION_FOR_RESPONSE[kind],
            self._counter_roles,
        )
        self._transcript.begin(message_id, kind, counter_price)

        log = logger.bind(
            conversation_id=self._transcript.conversation_id,
            message_id=message_id,
            kind=kind.value,
        )
        log.info("offer_response_dispatched", offer_event=transition.event.value)

        try:
            result = await self._persist_response(message_id, kind, counter_price)
        except Exception as exc:
            self._transcript.settle(message_id)
            log.error("offer_dispatch_failed", error=str(exc))
            self._notify(f"Could not record your response: {exc}", "error")
            if self._audit_logger is not None:
                self._audit_logger.log_dispatch_failure(
                    conversation_id=self._transcript.conversation_id,
                    message_id=message_id,
                    kind=kind.value,
                    error=str(exc),
                )
            if isinstance(exc, OfferError):
                raise
            raise DispatchError(f"Could not record {kind} for message {message_id}: {exc}") from exc
        except BaseException:
            # Cancelled mid-call; a repeated response is replayed by the store.
            self._transcript.settle(message_id)
            log.warning("offer_dispatch_cancelled")
            raise

        self._transcript.apply(result)
        log.info("offer_response_confirmed", replayed=result.replayed)
        self._notify(f"Offer {kind} successfully", "success")
        return result

    async def counter(self, message_id: int, counter_price: int) -> OfferResponseResult:
        """Shorthand for ``respond(message_id, COUNTERED, counter_price)``."""
        return await self.respond(message_id, ResponseKind.COUNTERED, counter_price)
