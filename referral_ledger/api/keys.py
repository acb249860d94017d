"""Typed application keys shared by the app factory and handlers."""

from collections.abc import Callable

from aiohttp import web
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from referral_ledger.services.ledger_service import ReferralLedgerService

SESSION_MAKER_KEY = web.AppKey("session_maker", async_sessionmaker)
SERVICE_FACTORY_KEY = web.AppKey(
    "service_factory", Callable[[AsyncSession], ReferralLedgerService]
)
