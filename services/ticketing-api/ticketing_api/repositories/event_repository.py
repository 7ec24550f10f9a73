from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.contracts import EventORM


class EventRepository:
    """Read-only view of the event catalogue; the price stored here is authoritative."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, event_id: str) -> EventORM | None:
        stmt = select(EventORM).where(EventORM.event_id == event_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
