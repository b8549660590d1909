import asyncio
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from status_hub.config import settings

connect_args = {"ssl": "require"} if settings.DB_SSL else {}

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    connect_args=connect_args
)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

Base = declarative_base()

async def get_db():
    async with AsyncSessionLocal() as session:
        yield session

async def init_db(retries=None, delay=None):
    """Creates missing tables, waiting for Postgres to accept connections."""
    from status_hub import models  # noqa: F401 registers tables on Base

    retries = retries or settings.DB_INIT_RETRIES
    delay = settings.DB_INIT_DELAY if delay is None else delay

    for attempt in range(1, retries + 1):
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            if attempt == retries:
                logger.error(f"Giving up on {engine.url.host} after {retries} attempts: {e}")
                raise
            logger.warning(f"Postgres at {engine.url.host} unavailable ({e}), attempt {attempt}/{retries}, next in {delay}s")
            await asyncio.sleep(delay)
            delay *= 2
        else:
            logger.info("Tables statuses/logs ready")
            return

async def close_db():
    await engine.dispose()
