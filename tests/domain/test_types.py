"""Tests for domain enumerations and the sender/recipient relation."""

import pytest

from offers.domain.types import (
    MessageType,
    OfferStatus,
    ResponseKind,
    Sender,
    ViewerRole,
    is_recipient,
    recipient_role,
    sender_for_role,
)


class TestEnumValues:
    """Wire values of the domain enums."""

    def test_offer_status_values(self) -> None:
        assert {s.value for s in OfferStatus} == {
            "pending",
            "accepted",
            "rejected",
            "countered",
            "confirmed",
        }

    def test_response_kind_values(self) -> None:
        assert {k.value for k in ResponseKind} == {"accepted", "rejected", "countered"}

    def test_message_type_values(self) -> None:
        assert {t.value for t in MessageType} == {"text", "test_drive_request", "offer"}

    def test_str_enum_compares_to_plain_string(self) -> None:
        assert OfferStatus.PENDING == "pending"
        assert f"{ResponseKind.COUNTERED}" == "countered"


class TestRecipientRelation:
    """Which viewer role answers which sender."""

    @pytest.mark.parametrize(
        ("sender", "expected"),
        [
            (Sender.USER, ViewerRole.SELLER),
            (Sender.SELLER, ViewerRole.CUSTOMER),
            (Sender.SYSTEM, None),
        ],
    )
    def test_recipient_role(self, sender: Sender, expected: ViewerRole | None) -> None:
        assert recipient_role(sender) == expected

    @pytest.mark.parametrize(
        ("role", "sender", "expected"),
        [
            (ViewerRole.SELLER, Sender.USER, True),
            (ViewerRole.CUSTOMER, Sender.SELLER, True),
            (ViewerRole.CUSTOMER, Sender.USER, False),
            (ViewerRole.SELLER, Sender.SELLER, False),
            (ViewerRole.ADMIN, Sender.USER, False),
            (ViewerRole.ADMIN, Sender.SELLER, False),
            (ViewerRole.SELLER, Sender.SYSTEM, False),
        ],
    )
    def test_is_recipient(self, role: ViewerRole, sender: Sender, expected: bool) -> None:
        assert is_recipient(role, sender) is expected


class TestSenderForRole:
    def test_customer_writes_as_user(self) -> None:
        assert sender_for_role(ViewerRole.CUSTOMER) == Sender.USER

    def test_seller_writes_as_seller(self) -> None:
        assert sender_for_role(ViewerRole.SELLER) == Sender.SELLER

    def test_admin_cannot_author(self) -> None:
        with pytest.raises(ValueError, match="cannot author"):
            sender_for_role(ViewerRole.ADMIN)
