from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shared.contracts import Base, EventORM


def build_engine(postgres_dsn: str) -> AsyncEngine:
    return create_async_engine(postgres_dsn, echo=False, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = build_session_factory(engine)
    async with session_factory() as session:
        await _seed_events(session)
        await session.commit()


async def _seed_events(session: AsyncSession) -> None:
    existing = await session.execute(select(EventORM.event_id).limit(1))
    if existing.scalar_one_or_none():
        return
    session.add_all(
        [
            EventORM(event_id="evt-nairobi-jazz", title="Nairobi Jazz Night", price=Decimal("1000")),
            EventORM(event_id="evt-tech-summit", title="Tech Summit", price=Decimal("2500.50")),
            EventORM(event_id="evt-community-run", title="Community Fun Run", price=None),
        ]
    )
