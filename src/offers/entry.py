"""Number-only amount entry used for initial offers and counter-offers.

The entry keeps only the digits a user types, shows them with lakh/crore
grouping, and on submit hands a positive integer to a caller-supplied
callback.  Invalid input sets an inline message and never reaches the
callback.  Closing the entry surface is the consumer's job.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

import structlog

from offers.domain.errors import InvalidOfferAmountError
from offers.pricing.currency import format_inr, group_indian, strip_non_digits

logger = structlog.get_logger()

INVALID_PRICE_MESSAGE = "Please enter a valid price."


class EntryMode(StrEnum):
    """Whether the entry opens a new offer or answers one."""

    OFFER = "offer"
    COUNTER = "counter"


ENTRY_TITLES: dict[EntryMode, str] = {
    EntryMode.OFFER: "Make an Offer",
    EntryMode.COUNTER: "Make a Counter-Offer",
}


def parse_offer_amount(text: str) -> int:
    """Parse user input into a positive whole-rupee amount.

    Non-digit characters are ignored, so ``"₹4,50,000"`` parses as
    ``450000``.

    Args:
        text: Raw input.

    Returns:
        The amount as a positive integer.

    Raises:
        InvalidOfferAmountError: If no digits remain or the value is zero.
    """
    digits = strip_non_digits(text)
    if not digits or int(digits) <= 0:
        raise InvalidOfferAmountError(INVALID_PRICE_MESSAGE)
    return int(digits)


def offer_message_text(price: int) -> str:
    """Return the chat text that accompanies a new offer record."""
    return f"Offer: {price}"


class OfferEntry:
    """State of one open amount-entry surface.

    Usage::

        entry = OfferEntry(on_submit=send_offer, listing_price=500000)
        entry.input("4,50,000")
        entry.display      # "4,50,000"
        entry.submit()     # calls send_offer(450000)
    """

    def __init__(
        self,
        on_submit: Callable[[int], object],
        mode: EntryMode = EntryMode.OFFER,
        listing_price: int | None = None,
    ) -> None:
        self._on_submit = on_submit
        self.mode = mode
        self.listing_price = listing_price
        self._digits = ""
        self.error = ""

    @property
    def title(self) -> str:
        """Heading shown above the input."""
        return ENTRY_TITLES[self.mode]

    @property
    def listing_price_text(self) -> str | None:
        """``"Listing Price: ₹X"`` when the listing price is known."""
        if not self.listing_price:
            return None
        return f"Listing Price: {format_inr(self.listing_price)}"

    @property
    def digits(self) -> str:
        """The stored value: digits only."""
        return self._digits

    @property
    def display(self) -> str:
        """The stored digits with lakh/crore grouping."""
        return group_indian(self._digits)

    def input(self, text: str) -> str:
        """Replace the field contents with *text*, keeping digits only.

        Args:
            text: The full field value after a keystroke or paste.

        Returns:
            The grouped display value.
        """
        self._digits = strip_non_digits(text)
        return self.display

    def submit(self) -> int | None:
        """Validate the stored digits and invoke the callback.

        Returns:
            The submitted amount, or ``None`` when validation failed (the
            inline ``error`` message is set and the callback is not called).
        """
        try:
            amount = parse_offer_amount(self._digits)
        except InvalidOfferAmountError as exc:
            self.error = str(exc)
            logger.debug("offer_entry_rejected", mode=self.mode.value, digits=self._digits)
            return None

        self.error = ""
        self._on_submit(amount)
        return amount
