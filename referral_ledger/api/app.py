"""
HTTP application factory.

Builds the aiohttp application exposing the ledger service.
"""

from collections.abc import Callable

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from referral_ledger.api import handlers
from referral_ledger.api.errors import error_middleware
from referral_ledger.api.keys import SERVICE_FACTORY_KEY, SESSION_MAKER_KEY
from referral_ledger.services.ledger_service import ReferralLedgerService


def setup_routes(app: web.Application) -> None:
    """Register ledger routes."""
    router = app.router
    router.add_get("/health", handlers.health)

    # Signup flow and deposit notifications
    router.add_post("/api/referrals/link", handlers.generate_link)
    router.add_post("/api/referrals/signups", handlers.record_signup)
    router.add_post(
        r"/api/referrals/signups/{signup_id:\d+}/deposit", handlers.record_deposit
    )
    router.add_get("/api/referrals/summary/{user_id}", handlers.get_summary)

    # Admin back office
    router.add_get("/api/admin/referrals", handlers.list_referrals)
    router.add_get("/api/admin/referrals/stats", handlers.program_stats)
    router.add_get(
        "/api/admin/referrals/export/{kind:referrals|payments|signups}",
        handlers.export_csv,
    )
    router.add_get(r"/api/admin/referrals/{referral_id:\d+}", handlers.get_referral)
    router.add_get(r"/api/admin/referrals/{referral_id:\d+}/audit", handlers.audit_trail)
    router.add_post(
        r"/api/admin/referrals/{referral_id:\d+}/payments", handlers.record_payment
    )
    router.add_post(r"/api/admin/referrals/{referral_id:\d+}/active", handlers.set_active)
    router.add_post(
        r"/api/admin/referrals/{referral_id:\d+}/complete", handlers.complete_program
    )
    router.add_post(
        r"/api/admin/referrals/{referral_id:\d+}/status", handlers.override_status
    )


def create_app(
    session_maker: async_sessionmaker[AsyncSession],
    service_factory: Callable[[AsyncSession], ReferralLedgerService] = ReferralLedgerService,
) -> web.Application:
    """
    Create the ledger HTTP application.

    Args:
        session_maker: Session factory; one session is opened per request
        service_factory: Builds the service bound to a request's session

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=[error_middleware])
    app[SESSION_MAKER_KEY] = session_maker
    app[SERVICE_FACTORY_KEY] = service_factory
    setup_routes(app)

    logger.info(f"Ledger API configured with {len(app.router.routes())} routes")
    return app
