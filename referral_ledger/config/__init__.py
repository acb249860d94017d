"""
Configuration package.

Settings, business constants, database and logging setup.
"""

from referral_ledger.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
