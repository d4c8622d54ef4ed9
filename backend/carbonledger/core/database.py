from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from carbonledger.core.config import settings

# Create Async Engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# Create SessionLocal
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Base class for models
Base = declarative_base()


# Dependency for FastAPI routes
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


def import_models():
    """Register every mapped class on ``Base.metadata``."""
    import carbonledger.models.user  # noqa: F401
    import carbonledger.models.emissions  # noqa: F401
    import carbonledger.models.supplier  # noqa: F401
    import carbonledger.models.report  # noqa: F401


# Called on app startup
async def init_db(bind=None):
    import_models()

    async with (bind or engine).begin() as conn:
        if settings.ENVIRONMENT in ("development", "test"):
            await conn.run_sync(Base.metadata.create_all)
