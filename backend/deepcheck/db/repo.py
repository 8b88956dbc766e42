"""Data access / repository layer (async SQLAlchemy)."""
from __future__ import annotations

import json
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from deepcheck.core.config import get_settings
from deepcheck.core.logging import get_logger
from deepcheck.core.scoring import JobStatus
from deepcheck.db.models import Base, Analysis

logger = get_logger(__name__)
settings = get_settings()

# ---------------------------------------------------------------------------
# Engine / Session
# ---------------------------------------------------------------------------
engine = create_async_engine(settings.DATABASE_URL, echo=False, future=True)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("DB tables initialised")


async def get_session() -> AsyncSession:      # noqa: D401
    async with AsyncSessionLocal() as session:
        yield session


# ---------------------------------------------------------------------------
# Analysis helpers
# ---------------------------------------------------------------------------
async def create_analysis(session: AsyncSession, **kwargs) -> Analysis:
    a = Analysis(status=JobStatus.PROCESSING.value, **kwargs)
    session.add(a)
    await session.commit()
    await session.refresh(a)
    return a


async def get_analysis(session: AsyncSession, analysis_id: str) -> Optional[Analysis]:
    result = await session.execute(select(Analysis).where(Analysis.id == analysis_id))
    return result.scalar_one_or_none()


async def _settle(session: AsyncSession, analysis_id: str, status: JobStatus,
                  result: Optional[dict] = None, error: Optional[str] = None) -> bool:
    """processing -> terminal, exactly once. Returns False if already settled."""
    a = await get_analysis(session, analysis_id)
    if a is None or a.status != JobStatus.PROCESSING.value:
        return False
    a.status = status.value
    a.result_json = json.dumps(result) if result is not None else None
    a.error = error
    await session.commit()
    return True


async def complete_analysis(session: AsyncSession, analysis_id: str, result: dict) -> bool:
    return await _settle(session, analysis_id, JobStatus.COMPLETE, result=result)


async def fail_analysis(session: AsyncSession, analysis_id: str, error: str) -> bool:
    return await _settle(session, analysis_id, JobStatus.FAILED, error=error)


async def list_analyses(session: AsyncSession, user_id: str) -> list[Analysis]:
    result = await session.execute(
        select(Analysis).where(Analysis.user_id == user_id).order_by(Analysis.created_at.desc())
    )
    return result.scalars().all()
