from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from reminder_engine.core.config import settings
import os

# Only echo SQL in development mode
is_dev_mode = os.getenv("ENV", "production").lower() in ["dev", "development", "local"]
engine = create_async_engine(
    str(settings.DATABASE_URL),
    echo=is_dev_mode,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)