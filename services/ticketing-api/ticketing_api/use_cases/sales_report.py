from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.contracts import (
    SalesBucket,
    SalesReportQuery,
    SalesReportResponse,
    StatusSummaryResponse,
)
from shared.utils import day_bounds
from ticketing_api.repositories.intent_repository import IntentRepository


class SalesReportUseCase:
    """Read-only rollups over settled intents."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def sales(self, query: SalesReportQuery) -> SalesReportResponse:
        start, end = day_bounds(query.start, query.end)
        async with self._session_factory() as session:
            rows = await self._build_repository(session).sum_successful_amounts(
                start, end, query.group_by
            )
        return SalesReportResponse(
            start=query.start,
            end=query.end,
            group_by=query.group_by,
            data=[
                SalesBucket(period=row.period, total_amount=row.total_amount, payments=row.payments)
                for row in rows
            ],
        )

    async def status_summary(self) -> StatusSummaryResponse:
        async with self._session_factory() as session:
            counts = await self._build_repository(session).aggregate_by_state()
        return StatusSummaryResponse(counts=counts, total=sum(counts.values()))

    def _build_repository(self, session: AsyncSession) -> IntentRepository:
        return IntentRepository(session)
