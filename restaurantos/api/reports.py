"""
Sales Report Endpoints (manager only)

JSON report, CSV download and an Excel workbook written to the data
directory.
"""

import asyncio
import logging
from dataclasses import asdict
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.core.security import require_roles
from restaurantos.database import get_db
from restaurantos.models import OrderStatus, User, UserRole
from restaurantos.schemas import ErrorResponse, ExportResponse, SalesReportResponse
from restaurantos.services.excel_manager import ExcelManager
from restaurantos.services.reports import (
    SalesReport,
    bill_rows,
    bills_to_csv,
    daily_rows,
    load_sales_report,
    report_filename,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Reports"])

manager_only = require_roles(UserRole.MANAGER)

DEFAULT_RANGE_DAYS = 7
STATUS_FILTERS = ["all"] + [status.value for status in OrderStatus]


async def _report(
    db: AsyncSession,
    start_date: Optional[date],
    end_date: Optional[date],
    status: str,
) -> SalesReport:
    end_date = end_date or date.today()
    start_date = start_date or end_date - timedelta(days=DEFAULT_RANGE_DAYS)
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="Start date must not be after the end date")
    if status not in STATUS_FILTERS:
        raise HTTPException(status_code=400, detail=f"Invalid status. Must be one of: {STATUS_FILTERS}")
    return await load_sales_report(db, start_date, end_date, status)


@router.get("/sales", response_model=SalesReportResponse, responses={400: {"model": ErrorResponse}})
async def sales_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: str = Query("all"),
    user: User = Depends(manager_only),
    db: AsyncSession = Depends(get_db),
) -> SalesReportResponse:
    """Bills, daily totals and headline stats for an inclusive date range."""
    report = await _report(db, start_date, end_date, status)
    return SalesReportResponse.model_validate(asdict(report))


@router.get("/sales.csv", responses={200: {"content": {"text/csv": {}}}, 400: {"model": ErrorResponse}})
async def sales_report_csv(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: str = Query("all"),
    user: User = Depends(manager_only),
    db: AsyncSession = Depends(get_db),
) -> Response:
    report = await _report(db, start_date, end_date, status)
    filename = report_filename(report.start_date, report.end_date, "csv")
    return Response(
        content=bills_to_csv(report.bills),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/export-excel", response_model=ExportResponse, responses={400: {"model": ErrorResponse}})
async def sales_report_excel(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: str = Query("all"),
    user: User = Depends(manager_only),
    db: AsyncSession = Depends(get_db),
) -> ExportResponse:
    """Write the report workbook (Bills and Daily sheets) to the data directory."""
    report = await _report(db, start_date, end_date, status)
    result = await asyncio.to_thread(
        ExcelManager.export_sales_report,
        bill_rows(report.bills),
        daily_rows(report.daily),
        report_filename(report.start_date, report.end_date, "xlsx"),
    )
    if not result["success"]:
        logger.error(f"Excel export failed: {result['message']}")
    return ExportResponse(**result)
