import os
import logging
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from windfarm.app.errors import PersistenceError

logger = logging.getLogger(__name__)

# USER: postgres, PASS: windfarm_dev, DB: windfarm
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASS = os.getenv("POSTGRES_PASSWORD", "windfarm_dev")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")
DB_PORT = os.getenv("POSTGRES_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "windfarm")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

engine = create_async_engine(DATABASE_URL, echo=False)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

class Base(DeclarativeBase):
    pass

async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session

async def commit(session: AsyncSession):
    """Commit, rolling back and raising PersistenceError on any database failure."""
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError(str(e)) from e

async def init_db(bind=None):
    """Initializes tables and, on PostgreSQL, the TimescaleDB hypertable."""
    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if bind.dialect.name != "postgresql":
        return

    # Hypertable conversion is optional; plain tables still work without the extension
    try:
        async with bind.begin() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS timescaledb;"))
            await conn.execute(text(
                "SELECT create_hypertable('telemetry', 'recorded_at', if_not_exists => TRUE, migrate_data => TRUE);"
            ))
    except Exception as e:
        logger.warning("Hypertable notice (safe to ignore): %s", e)
