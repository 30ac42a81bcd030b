"""OfferStateMachine class with role-aware trigger, history, and allowed_actions."""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

from offers.domain.errors import CounterNotAllowedError, InvalidTransitionError, NotRecipientError
from offers.domain.types import OfferStatus, Sender, ViewerRole, is_recipient
from offers.state_machine.transitions import (
    DEFAULT_COUNTER_ROLES,
    EVENTS,
    SPAWNING_ACTIONS,
    TERMINAL_STATUSES,
    TRANSITIONS,
    OfferAction,
    OfferEvent,
)


class Transition(NamedTuple):
    """Outcome of applying one action to an offer record."""

    from_status: OfferStatus
    action: str
    to_status: OfferStatus
    event: OfferEvent
    spawns_record: bool


def resolve_transition(
    status: OfferStatus,
    sender: Sender,
    role: ViewerRole,
    action: str,
    counter_roles: Iterable[ViewerRole] = DEFAULT_COUNTER_ROLES,
) -> Transition:
    """Map (status, viewer role, action) onto the next status and emitted event.

    This is a pure function: it validates and describes the transition but
    mutates nothing.

    Args:
        status: Current status of the offer record.
        sender: Side that originated the record.
        role: Role of the actor.
        action: The action string (e.g. ``"accept"``).
        counter_roles: Roles allowed to counter when they are the recipient.

    Returns:
        The resolved :class:`Transition`.

    Raises:
        InvalidTransitionError: If the record is terminal or the pair is not
            in the transition map.
        NotRecipientError: If *role* is not the record's recipient.
        CounterNotAllowedError: If *role* may not counter.
    """
    if status in TERMINAL_STATUSES:
        raise InvalidTransitionError(status, action)

    key = (status, action)
    if key not in TRANSITIONS:
        raise InvalidTransitionError(status, action)

    if not is_recipient(role, sender):
        raise NotRecipientError(role)

    if action == OfferAction.COUNTER and role not in set(counter_roles):
        raise CounterNotAllowedError(role)

    return Transition(
        from_status=status,
        action=action,
        to_status=TRANSITIONS[key],
        event=EVENTS[action],
        spawns_record=action in SPAWNING_ACTIONS,
    )


def allowed_actions(
    status: OfferStatus,
    sender: Sender,
    role: ViewerRole,
    counter_roles: Iterable[ViewerRole] = DEFAULT_COUNTER_ROLES,
) -> list[str]:
    """Return the actions *role* may take on a record, in display order.

    Returns an empty list for non-recipients and non-pending records.
    """
    if status != OfferStatus.PENDING or not is_recipient(role, sender):
        return []
    counters = set(counter_roles)
    return [
        action
        for action in (OfferAction.ACCEPT, OfferAction.REJECT, OfferAction.COUNTER)
        if (status, action) in TRANSITIONS
        and (action != OfferAction.COUNTER or role in counters)
    ]


class OfferStateMachine:
    """Finite state machine for a single offer record.

    Tracks the record's status, validates actions against the transition map
    and the actor's relation to the record, and keeps a history of every
    applied transition.

    Usage::

        sm = OfferStateMachine(sender=Sender.USER)
        sm.trigger("counter", ViewerRole.SELLER)   # -> COUNTERED
    """

    def __init__(
        self,
        sender: Sender,
        initial_status: OfferStatus = OfferStatus.PENDING,
        counter_roles: Iterable[ViewerRole] = DEFAULT_COUNTER_ROLES,
    ) -> None:
        self._sender = sender
        self._status: OfferStatus = initial_status
        self._counter_roles = frozenset(counter_roles)
        self._history: list[tuple[OfferStatus, str, OfferStatus]] = []

    @classmethod
    def from_snapshot(
        cls,
        sender: Sender,
        status: OfferStatus,
        history: list[tuple[OfferStatus, str, OfferStatus]],
        counter_roles: Iterable[ViewerRole] = DEFAULT_COUNTER_ROLES,
    ) -> OfferStateMachine:
        """Reconstruct a machine at *status* with *history* without replaying it."""
        instance = cls(sender, initial_status=status, counter_roles=counter_roles)
        instance._history = list(history)
        return instance

    @property
    def status(self) -> OfferStatus:
        """Return the current record status."""
        return self._status

    @property
    def sender(self) -> Sender:
        """Return the side that originated the record."""
        return self._sender

    @property
    def is_terminal(self) -> bool:
        """Return True if the record is accepted, rejected, or confirmed."""
        return self._status in TERMINAL_STATUSES

    @property
    def history(self) -> list[tuple[OfferStatus, str, OfferStatus]]:
        """Return a copy of the ``(from_status, action, to_status)`` history."""
        return list(self._history)

    def trigger(self, action: str, role: ViewerRole) -> Transition:
        """Apply *action* on behalf of *role* and move to the next status.

        Args:
            action: The action string (e.g. ``"reject"``).
            role: The acting viewer role.

        Returns:
            The applied :class:`Transition`.

        Raises:
            InvalidTransitionError: If the action is not allowed from the
                current status.
            NotRecipientError: If *role* is not the record's recipient.
            CounterNotAllowedError: If *role* may not counter.
        """
        transition = resolve_transition(
            self._status, self._sender, role, action, self._counter_roles
        )
        self._history.append((transition.from_status, action, transition.to_status))
        self._status = transition.to_status
        return transition

    def get_allowed_actions(self, role: ViewerRole) -> list[str]:
        """Return the actions *role* may take from the current status."""
        return allowed_actions(self._status, self._sender, role, self._counter_roles)
