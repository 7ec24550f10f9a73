from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError

from shared.contracts import (
    ReportGrouping,
    SalesReportQuery,
    SalesReportResponse,
    StatusSummaryResponse,
)
from ticketing_api.api.dependencies import enforce_api_auth, get_sales_report_use_case
from ticketing_api.core.errors import InvalidRequestError
from ticketing_api.use_cases.sales_report import SalesReportUseCase

router = APIRouter(prefix="/reports", tags=["reports"], dependencies=[Depends(enforce_api_auth)])


@router.get("/sales")
async def sales_report(
    use_case: Annotated[SalesReportUseCase, Depends(get_sales_report_use_case)],
    start: Annotated[date, Query(alias="from")],
    end: Annotated[date, Query(alias="to")],
    group_by: ReportGrouping = ReportGrouping.MONTH,
) -> SalesReportResponse:
    try:
        query = SalesReportQuery(start=start, end=end, group_by=group_by)
    except ValidationError as exc:
        raise InvalidRequestError("from must not be after to") from exc
    return await use_case.sales(query)


@router.get("/payments/status-summary")
async def status_summary(
    use_case: Annotated[SalesReportUseCase, Depends(get_sales_report_use_case)],
) -> StatusSummaryResponse:
    return await use_case.status_summary()
