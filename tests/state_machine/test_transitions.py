"""Tests for the offer transition map and its companion tables."""

from offers.domain.types import OfferStatus, ResponseKind, ViewerRole
from offers.state_machine.transitions import (
    ACTION_FOR_RESPONSE,
    DEFAULT_COUNTER_ROLES,
    EVENTS,
    RESPONSE_FOR_ACTION,
    SPAWNING_ACTIONS,
    TERMINAL_STATUSES,
    TRANSITIONS,
    OfferAction,
    OfferEvent,
    counter_roles,
)


class TestTransitionMap:
    def test_exactly_three_transitions(self) -> None:
        assert len(TRANSITIONS) == 3

    def test_only_pending_records_move(self) -> None:
        assert {status for status, _ in TRANSITIONS} == {OfferStatus.PENDING}

    def test_targets(self) -> None:
        assert TRANSITIONS[(OfferStatus.PENDING, OfferAction.ACCEPT)] == OfferStatus.ACCEPTED
        assert TRANSITIONS[(OfferStatus.PENDING, OfferAction.REJECT)] == OfferStatus.REJECTED
        assert TRANSITIONS[(OfferStatus.PENDING, OfferAction.COUNTER)] == OfferStatus.COUNTERED

    def test_nothing_produces_confirmed(self) -> None:
        assert OfferStatus.CONFIRMED not in TRANSITIONS.values()

    def test_terminal_statuses_have_no_outgoing_edges(self) -> None:
        for status, _ in TRANSITIONS:
            assert status not in TERMINAL_STATUSES


class TestCompanionTables:
    def test_every_action_emits_an_event(self) -> None:
        assert set(EVENTS) == set(OfferAction)
        assert EVENTS[OfferAction.COUNTER] == OfferEvent.OFFER_COUNTERED

    def test_only_counter_spawns_a_record(self) -> None:
        assert SPAWNING_ACTIONS == frozenset({OfferAction.COUNTER})

    def test_response_action_tables_are_inverse(self) -> None:
        for kind, action in ACTION_FOR_RESPONSE.items():
            assert RESPONSE_FOR_ACTION[action] == kind
        assert ACTION_FOR_RESPONSE[ResponseKind.ACCEPTED] == OfferAction.ACCEPT


class TestCounterRoles:
    def test_seller_only_by_default(self) -> None:
        assert counter_roles() == DEFAULT_COUNTER_ROLES == frozenset({ViewerRole.SELLER})

    def test_buyer_counter_switch(self) -> None:
        assert counter_roles(buyer_counter_enabled=True) == frozenset(
            {ViewerRole.SELLER, ViewerRole.CUSTOMER}
        )

    def test_admin_never_counters(self) -> None:
        assert ViewerRole.ADMIN not in counter_roles(buyer_counter_enabled=True)
