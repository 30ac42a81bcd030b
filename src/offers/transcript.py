"""In-memory chat transcript held by a chat view.

The transcript is the only shared mutable state on the client side.  Offer
records in it change only through :meth:`Transcript.apply`, which takes a
response the store has already confirmed.  While a response is being
dispatched the record is tagged :class:`~offers.domain.models.InFlight`.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import cast

from offers.domain.errors import MessageNotFoundError, OfferInFlightError
from offers.domain.models import (
    ChatMessage,
    Conversation,
    InFlight,
    OfferPayload,
    OfferPhase,
    OfferResponseResult,
    Settled,
)
from offers.domain.types import ResponseKind, ViewerRole
from offers.render import OfferView, render_offer_message
from offers.state_machine.transitions import DEFAULT_COUNTER_ROLES


class Transcript:
    """Local copy of one conversation plus per-record dispatch phases."""

    def __init__(self, conversation: Conversation) -> None:
        self._conversation = conversation.model_copy(deep=True)
        self._in_flight: dict[int, InFlight] = {}

    @property
    def conversation(self) -> Conversation:
        """Return a copy of the current conversation."""
        return self._conversation.model_copy(deep=True)

    @property
    def conversation_id(self) -> str:
        return self._conversation.id

    @property
    def listing_price(self) -> int | None:
        return self._conversation.vehicle_price

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._conversation.messages)

    def offer_message(self, message_id: int) -> ChatMessage:
        """Return the offer message with *message_id*.

        Raises:
            MessageNotFoundError: If the id is unknown or not an offer.
        """
        message = self._conversation.find_message(message_id)
        if message is None or message.payload is None:
            raise MessageNotFoundError(message_id)
        return message

    def phase(self, message_id: int) -> OfferPhase:
        """Return the record's dispatch phase: in flight, or settled at its status."""
        if message_id in self._in_flight:
            return self._in_flight[message_id]
        payload = cast(OfferPayload, self.offer_message(message_id).payload)
        return Settled(status=payload.status)

    def is_in_flight(self, message_id: int) -> bool:
        return message_id in self._in_flight

    def begin(
        self,
        message_id: int,
        response: ResponseKind,
        counter_price: int | None = None,
    ) -> InFlight:
        """Tag a record as having a response in flight.

        Raises:
            MessageNotFoundError: If the record is unknown.
            OfferInFlightError: If a response is already in flight.
        """
        if message_id in self._in_flight:
            raise OfferInFlightError(message_id)
        payload = cast(OfferPayload, self.offer_message(message_id).payload)
        flight = InFlight(
            prior_status=payload.status,
            response=response,
            counter_price=counter_price,
        )
        self._in_flight[message_id] = flight
        return flight

    def settle(self, message_id: int) -> None:
        """Drop the in-flight tag, leaving the record at its prior status."""
        self._in_flight.pop(message_id, None)

    def append(self, message: ChatMessage) -> None:
        """Add a confirmed message, replacing any local copy with the same id."""
        for index, existing in enumerate(self._conversation.messages):
            if existing.id == message.id:
                self._conversation.messages[index] = message
                break
        else:
            self._conversation.messages.append(message)
        if message.timestamp > self._conversation.last_message_at:
            self._conversation.last_message_at = message.timestamp

    def apply(self, result: OfferResponseResult) -> None:
        """Reflect a confirmed response into the transcript.

        Replaces the responded-to record, adds the spawned counter record
        and the notice message, and clears the in-flight tag.
        """
        self.append(result.record)
        if result.counter_record is not None:
            self.append(result.counter_record)
        self.append(result.notice)
        self.settle(result.record.id)

    def render(
        self,
        viewer_role: ViewerRole,
        counter_roles: Iterable[ViewerRole] = DEFAULT_COUNTER_ROLES,
    ) -> list[OfferView]:
        """Render every offer message for *viewer_role* in transcript order."""
        return [
            render_offer_message(message, viewer_role, self.phase(message.id), counter_roles)
            for message in self._conversation.offer_messages()
        ]
