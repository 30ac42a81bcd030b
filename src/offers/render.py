"""View-model builder for offer messages in a chat transcript.

Pure functions that turn an offer message plus the viewer's role into the
data a chat surface needs: headline, amounts, status chip, and the action
controls the viewer is allowed to see.  No side effects, easy to test.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict

from offers.domain.models import ChatMessage, InFlight, OfferPhase, Settled
from offers.domain.types import OfferStatus, Sender, ViewerRole
from offers.entry import EntryMode, OfferEntry
from offers.pricing.currency import format_inr
from offers.state_machine.machine import allowed_actions
from offers.state_machine.transitions import DEFAULT_COUNTER_ROLES

STATUS_LABELS: dict[OfferStatus, str] = {
    OfferStatus.PENDING: "Pending",
    OfferStatus.ACCEPTED: "Accepted",
    OfferStatus.REJECTED: "Rejected",
    OfferStatus.COUNTERED: "Countered",
    OfferStatus.CONFIRMED: "Confirmed",
}


class OfferView(BaseModel):
    """Everything needed to draw one offer message."""

    model_config = ConfigDict(frozen=True)

    message_id: int
    heading: str
    amount_text: str
    previous_amount_text: str | None = None
    strike_previous: bool = False
    status: OfferStatus
    status_label: str
    controls: list[str] = []
    busy: bool = False


def render_offer_message(
    message: ChatMessage,
    viewer_role: ViewerRole,
    phase: OfferPhase | None = None,
    counter_roles: Iterable[ViewerRole] = DEFAULT_COUNTER_ROLES,
) -> OfferView:
    """Build the view model for an offer message as seen by *viewer_role*.

    Controls are shown only to the record's relational recipient while the
    record is pending and no response is in flight.  Accept/Reject act
    directly; Counter opens an entry in counter mode.

    Args:
        message: An ``offer`` chat message.
        viewer_role: Role of the person looking at the transcript.
        phase: The record's local dispatch phase.  Defaults to settled at
            the payload's status.
        counter_roles: Roles allowed to counter.

    Returns:
        The :class:`OfferView` for the message.

    Raises:
        ValueError: If *message* carries no offer record.
    """
    payload = message.payload
    if payload is None:
        raise ValueError(f"message {message.id} is not an offer message")

    if phase is None:
        phase = Settled(status=payload.status)

    busy = isinstance(phase, InFlight)
    status = phase.prior_status if isinstance(phase, InFlight) else phase.status
    controls: list[str] = []
    if not busy:
        controls = [
            str(action)
            for action in allowed_actions(status, message.sender, viewer_role, counter_roles)
        ]

    previous: str | None = None
    if payload.counter_price:
        previous = f"Original: {format_inr(payload.counter_price)}"

    return OfferView(
        message_id=message.id,
        heading="Offer Made" if message.sender == Sender.USER else "Counter-Offer",
        amount_text=format_inr(payload.offer_price),
        previous_amount_text=previous,
        strike_previous=previous is not None,
        status=status,
        status_label=STATUS_LABELS[status],
        controls=controls,
        busy=busy,
    )


def open_counter_entry(
    view: OfferView,
    on_submit: Callable[[int, int], object],
    listing_price: int | None = None,
) -> OfferEntry:
    """Open an amount entry in counter mode for the message behind *view*.

    Args:
        view: A rendered offer view whose controls include ``"counter"``.
        on_submit: Called with ``(message_id, counter_price)`` on a valid
            submission.
        listing_price: Listing price to show above the input.

    Returns:
        A fresh :class:`OfferEntry`.

    Raises:
        ValueError: If the view does not expose the counter control.
    """
    if "counter" not in view.controls:
        raise ValueError(f"counter is not available on message {view.message_id}")
    return OfferEntry(
        on_submit=lambda price: on_submit(view.message_id, price),
        mode=EntryMode.COUNTER,
        listing_price=listing_price,
    )
