"""
Enumerations shared by ledger models and services.
"""

from enum import StrEnum


class ReferralStatus(StrEnum):
    """Referral program lifecycle. Ordered; transitions only move forward."""

    PENDING = "pending"  # Link generated, no deposit yet
    DEPOSITED = "deposited"  # A referred user made a qualifying deposit
    EARNING = "earning"  # At least one commission payment recorded
    COMPLETED = "completed"  # Closed by an administrator


class AuditAction(StrEnum):
    """Administrator-triggered mutations recorded in the audit trail."""

    PAYMENT_RECORDED = "payment_recorded"
    STATUS_OVERRIDE = "status_override"
    STATUS_COMPLETED = "status_completed"
    ACTIVATION_CHANGED = "activation_changed"
