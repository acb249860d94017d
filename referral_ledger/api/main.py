"""
Ledger API entry point.

Usage:
    referral-ledger-api
    python -m referral_ledger.api.main
"""

from aiohttp import web
from loguru import logger

from referral_ledger.api.app import create_app
from referral_ledger.config.database import create_engine, create_session_maker
from referral_ledger.config.logging import setup_logging
from referral_ledger.config.settings import settings


def build_app() -> web.Application:
    """Create the application together with its database engine."""
    engine = create_engine()
    app = create_app(create_session_maker(engine))

    async def dispose_engine(app: web.Application) -> None:
        await engine.dispose()
        logger.info("Database connections closed")

    app.on_cleanup.append(dispose_engine)
    return app


def main() -> None:
    """Run the API server."""
    setup_logging("api")
    web.run_app(
        build_app(),
        host=settings.api_host,
        port=settings.api_port,
        print=None,
    )


if __name__ == "__main__":
    main()
