"""
HTTP API package.

aiohttp application exposing the ledger service.
"""

from referral_ledger.api.app import create_app

__all__ = ["create_app"]
