"""Tests for the number-only offer entry."""

from __future__ import annotations

import pytest

from offers.domain.errors import InvalidOfferAmountError
from offers.entry import (
    INVALID_PRICE_MESSAGE,
    EntryMode,
    OfferEntry,
    offer_message_text,
    parse_offer_amount,
)


class TestParseOfferAmount:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("450000", 450000),
            ("4,50,000", 450000),
            ("₹4,75,000", 475000),
            ("007", 7),
            ("1", 1),
        ],
    )
    def test_valid(self, text: str, expected: int) -> None:
        assert parse_offer_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "0", "000", "₹"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(InvalidOfferAmountError, match=INVALID_PRICE_MESSAGE):
            parse_offer_amount(text)


def test_offer_message_text() -> None:
    assert offer_message_text(450000) == "Offer: 450000"


class TestOfferEntry:
    def test_offer_mode_title(self) -> None:
        entry = OfferEntry(on_submit=lambda _: None)
        assert entry.title == "Make an Offer"
        assert entry.mode == EntryMode.OFFER

    def test_counter_mode_title(self) -> None:
        entry = OfferEntry(on_submit=lambda _: None, mode=EntryMode.COUNTER)
        assert entry.title == "Make a Counter-Offer"

    def test_listing_price_text(self) -> None:
        assert OfferEntry(on_submit=lambda _: None, listing_price=500000).listing_price_text == (
            "Listing Price: ₹5,00,000"
        )
        assert OfferEntry(on_submit=lambda _: None).listing_price_text is None

    def test_input_keeps_digits_and_groups_display(self) -> None:
        entry = OfferEntry(on_submit=lambda _: None)
        assert entry.input("4a5b0000") == "4,50,000"
        assert entry.digits == "450000"
        assert entry.display == "4,50,000"

    def test_input_replaces_previous_value(self) -> None:
        entry = OfferEntry(on_submit=lambda _: None)
        entry.input("450000")
        entry.input("47")
        assert entry.digits == "47"

    def test_submit_calls_back_with_integer(self) -> None:
        submitted: list[int] = []
        entry = OfferEntry(on_submit=submitted.append)
        entry.input("4,50,000")

        assert entry.submit() == 450000
        assert submitted == [450000]
        assert entry.error == ""

    @pytest.mark.parametrize("text", ["", "0", "abc"])
    def test_invalid_submit_sets_error_and_skips_callback(self, text: str) -> None:
        submitted: list[int] = []
        entry = OfferEntry(on_submit=submitted.append)
        entry.input(text)

        assert entry.submit() is None
        assert submitted == []
        assert entry.error == INVALID_PRICE_MESSAGE

    def test_error_clears_after_valid_submit(self) -> None:
        entry = OfferEntry(on_submit=lambda _: None)
        entry.submit()
        entry.input("475000")
        entry.submit()
        assert entry.error == ""
