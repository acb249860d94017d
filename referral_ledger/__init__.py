"""Referral and commission ledger."""

__version__ = "1.0.0"
