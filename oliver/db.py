import asyncio
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from databases import Database

from oliver.config import settings
from oliver.logging_config import get_logger

logger = get_logger(__name__)

# SQLAlchemy Base for models
Base = declarative_base()


def _engine_options(url: str) -> dict:
    # SQLite (tests, local runs) uses a single static connection
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "echo": False,
    }


# Async SQLAlchemy engine with connection pooling
engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Async database instance used for startup and health checks
database = Database(
    settings.DATABASE_URL,
    **({} if settings.DATABASE_URL.startswith("sqlite") else {"min_size": 1, "max_size": 5})
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session per request"""
    async with AsyncSessionLocal() as session:
        yield session


async def check_database_connection() -> bool:
    """Check if database connection is healthy"""
    try:
        await database.fetch_one("SELECT 1")
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


async def connect_with_retry(max_retries: int = 3, delay: float = 1.0):
    """Connect to database with retry logic"""
    for attempt in range(max_retries):
        try:
            await database.connect()
            logger.info("Database connected successfully")
            return True
        except Exception as e:
            logger.warning(f"Database connection attempt {attempt + 1} failed: {e}")
            if attempt < max_retries - 1:
                await asyncio.sleep(delay)
            else:
                logger.error("Failed to connect to database after all retries")
                raise
    return False
