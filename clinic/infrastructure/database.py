from typing import AsyncGenerator, List, Tuple, Any
import logging
import uuid

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from clinic.core.config import settings

logger = logging.getLogger(__name__)

# Check if using SQLite
is_sqlite = "sqlite" in settings.DATABASE_URL.lower()

if is_sqlite:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        connect_args={"check_same_thread": False}
    )
else:
    engine = create_async_engine(
        settings.DATABASE_URL,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.DEBUG
    )

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

# Base model
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def import_models() -> None:
    """Register every mapped class on ``Base.metadata``"""
    from clinic.domain.auth import models as auth_models  # noqa: F401
    from clinic.domain.doctors import models as doctor_models  # noqa: F401
    from clinic.domain.patients import models as patient_models  # noqa: F401
    from clinic.domain.appointments import models as appointment_models  # noqa: F401
    from clinic.domain.prescriptions import models as prescription_models  # noqa: F401
    from clinic.domain.medicines import models as medicine_models  # noqa: F401
    from clinic.domain.messages import models as message_models  # noqa: F401


async def init_db():
    """Initialize database tables"""
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def close_db():
    """Close database connections"""
    await engine.dispose()


async def fetch_page(
    db: AsyncSession,
    query: Select,
    skip: int,
    limit: int,
    *options: Any
) -> Tuple[List[Any], int]:
    """One page of ``query`` plus the unpaginated row count.

    Loader ``options`` are applied to the page query only.
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await db.scalar(count_query)
    result = await db.execute(query.options(*options).offset(skip).limit(limit))
    return list(result.scalars().all()), total or 0


def gen_uuid() -> str:
    return str(uuid.uuid4())


def enum_values(enum_cls) -> list:
    """Persist enum values ("in-progress") rather than member names"""
    return [member.value for member in enum_cls]
