from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from loandesk.core.settings import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.resolved_database_url,
        future=True,
        echo=False,
        pool_size=settings.db_pool_size,
        pool_pre_ping=True,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
