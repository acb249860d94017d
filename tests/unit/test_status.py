"""Unit tests for the referral status state machine."""

import pytest

from referral_ledger.models.enums import ReferralStatus
from referral_ledger.services.referral.status import StatusEvent, next_status
from referral_ledger.utils.exceptions import InvalidStatusTransition

ORDER = [
    ReferralStatus.PENDING,
    ReferralStatus.DEPOSITED,
    ReferralStatus.EARNING,
    ReferralStatus.COMPLETED,
]


class TestDepositRecorded:
    """Tests for the deposit_recorded event."""

    def test_pending_becomes_deposited(self):
        """First deposit moves a pending referral forward."""
        assert next_status(ReferralStatus.PENDING, StatusEvent.DEPOSIT_RECORDED) == (
            ReferralStatus.DEPOSITED
        )

    @pytest.mark.parametrize(
        "status",
        [ReferralStatus.DEPOSITED, ReferralStatus.EARNING, ReferralStatus.COMPLETED],
    )
    def test_later_states_unchanged(self, status):
        """Further deposits never move a referral backwards."""
        assert next_status(status, StatusEvent.DEPOSIT_RECORDED) == status


class TestPaymentRecorded:
    """Tests for the payment_recorded event."""

    @pytest.mark.parametrize("status", [ReferralStatus.PENDING, ReferralStatus.DEPOSITED])
    def test_moves_to_earning(self, status):
        """A payment means the referral is earning, even without a deposit."""
        assert next_status(status, StatusEvent.PAYMENT_RECORDED) == ReferralStatus.EARNING

    @pytest.mark.parametrize("status", [ReferralStatus.EARNING, ReferralStatus.COMPLETED])
    def test_earning_and_completed_unchanged(self, status):
        """Payments after completion keep the program closed."""
        assert next_status(status, StatusEvent.PAYMENT_RECORDED) == status


class TestProgramCompleted:
    """Tests for the program_completed event."""

    def test_earning_becomes_completed(self):
        """Only an earning program can be completed."""
        assert next_status(ReferralStatus.EARNING, StatusEvent.PROGRAM_COMPLETED) == (
            ReferralStatus.COMPLETED
        )

    @pytest.mark.parametrize(
        "status",
        [ReferralStatus.PENDING, ReferralStatus.DEPOSITED, ReferralStatus.COMPLETED],
    )
    def test_other_states_rejected(self, status):
        """Completing from any other state is an error, not a no-op."""
        with pytest.raises(InvalidStatusTransition):
            next_status(status, StatusEvent.PROGRAM_COMPLETED)


class TestMonotonicity:
    """Transitions never move backwards."""

    @pytest.mark.parametrize("status", ORDER)
    @pytest.mark.parametrize(
        "event", [StatusEvent.DEPOSIT_RECORDED, StatusEvent.PAYMENT_RECORDED]
    )
    def test_never_regresses(self, status, event):
        """Result is never earlier in the lifecycle than the input."""
        result = next_status(status, event)
        assert ORDER.index(result) >= ORDER.index(status)

    def test_accepts_plain_strings(self):
        """Values read from the database are plain strings."""
        assert next_status("pending", "deposit_recorded") == ReferralStatus.DEPOSITED

    def test_unknown_status_rejected(self):
        """Garbage status is a ValueError."""
        with pytest.raises(ValueError):
            next_status("archived", StatusEvent.DEPOSIT_RECORDED)
