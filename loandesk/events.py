import logging

from fastapi import FastAPI

from loandesk.core.settings import settings
from loandesk.db.session import build_engine, build_sessionmaker
from loandesk.services.loan_store import LoanRecordStore
from loandesk.services.payments import StripeGateway

logger = logging.getLogger(__name__)


def register_event_handlers(app: FastAPI) -> None:
    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("Application startup")
        engine = build_engine(settings)
        app.state.db_engine = engine
        app.state.loan_store = LoanRecordStore(build_sessionmaker(engine))
        app.state.payment_gateway = StripeGateway.from_settings(settings)
        if not settings.stripe_webhook_secret:
            logger.warning("STRIPE_WEBHOOK_SECRET is not set; webhook deliveries will be rejected")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Application shutdown")
        engine = getattr(app.state, "db_engine", None)
        if engine is not None:
            await engine.dispose()
