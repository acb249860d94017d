"""
Referral status state machine.

The single place where status transitions are decided.
"""

from enum import StrEnum

from referral_ledger.models.enums import ReferralStatus
from referral_ledger.utils.exceptions import InvalidStatusTransition


class StatusEvent(StrEnum):
    """Events that may move a referral forward."""

    DEPOSIT_RECORDED = "deposit_recorded"
    PAYMENT_RECORDED = "payment_recorded"
    PROGRAM_COMPLETED = "program_completed"


# event -> {from: to}; states missing from the map are left unchanged
_TRANSITIONS: dict[StatusEvent, dict[ReferralStatus, ReferralStatus]] = {
    StatusEvent.DEPOSIT_RECORDED: {
        ReferralStatus.PENDING: ReferralStatus.DEPOSITED,
    },
    StatusEvent.PAYMENT_RECORDED: {
        ReferralStatus.PENDING: ReferralStatus.EARNING,
        ReferralStatus.DEPOSITED: ReferralStatus.EARNING,
    },
    StatusEvent.PROGRAM_COMPLETED: {
        ReferralStatus.EARNING: ReferralStatus.COMPLETED,
    },
}

# Events that must apply, not silently no-op
_STRICT_EVENTS = frozenset({StatusEvent.PROGRAM_COMPLETED})


def next_status(current: ReferralStatus | str, event: StatusEvent | str) -> ReferralStatus:
    """
    Compute the status after an event.

    Args:
        current: Current status
        event: Event that occurred

    Returns:
        New status (equal to current when the event does not apply)

    Raises:
        InvalidStatusTransition: Completing a program that is not earning

    Examples:
        >>> next_status("pending", "deposit_recorded")
        <ReferralStatus.DEPOSITED: 'deposited'>
        >>> next_status("earning", "deposit_recorded")
        <ReferralStatus.EARNING: 'earning'>
    """
    current = ReferralStatus(current)
    event = StatusEvent(event)

    target = _TRANSITIONS[event].get(current)
    if target is not None:
        return target

    if event in _STRICT_EVENTS:
        raise InvalidStatusTransition(
            f"Cannot apply {event.value} to a referral in status {current.value}"
        )
    return current
