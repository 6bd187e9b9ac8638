from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from homeease.core.config import settings


def _normalize_url(url: str) -> str:
    return url.replace("postgresql://", "postgresql+asyncpg://").replace("postgres://", "postgresql+asyncpg://")


DATABASE_URL = _normalize_url(settings.DATABASE_URL)

if DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(DATABASE_URL)
else:
    engine = create_async_engine(
        DATABASE_URL,
        pool_size=5,
        max_overflow=5,
        # Neon requires SSL; ignore locally
        connect_args={"ssl": "require"} if "neon.tech" in DATABASE_URL else {},
    )

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db():
    """FastAPI dependency that provides a database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Create all tables. Called at app startup."""
    from homeease.db.db_models import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Dispose engine. Called at app shutdown."""
    await engine.dispose()
