"""
Sales Reports

Bill and daily summaries for an inclusive date range, headline stats and
growth against the preceding period of the same length, plus CSV and
Excel exports of the bills.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.models import Order, OrderStatus
from restaurantos.services.orders import list_orders

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Date", "Time", "Bill Number", "Customer", "Table", "Items", "Total", "Status"]


@dataclass
class BillSummary:
    id: str
    date: date
    time: str
    bill_number: str
    customer_name: str
    table_number: Optional[int]
    item_count: int
    total: float
    status: OrderStatus


@dataclass
class DailySummary:
    date: date
    bill_count: int
    revenue: float
    average_bill: float


@dataclass
class SalesStats:
    total_bills: int = 0
    total_revenue: float = 0.0
    average_bill: float = 0.0
    today_bills: int = 0
    today_revenue: float = 0.0
    growth_rate: float = 0.0


@dataclass
class SalesReport:
    start_date: date
    end_date: date
    status: str
    stats: SalesStats
    bills: list[BillSummary] = field(default_factory=list)
    daily: list[DailySummary] = field(default_factory=list)


# =============================================================================
# PERIODS
# =============================================================================

def period_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Datetime range covering ``start`` through ``end`` inclusive."""
    return datetime.combine(start, time.min), datetime.combine(end + timedelta(days=1), time.min)


def previous_period(start: date, end: date) -> tuple[datetime, datetime]:
    """The same number of days immediately before ``start``."""
    length = (end - start).days + 1
    period_start = datetime.combine(start - timedelta(days=length), time.min)
    return period_start, datetime.combine(start, time.min)


def growth_rate(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


# =============================================================================
# SUMMARIES
# =============================================================================

def summarize_bill(order: Order) -> BillSummary:
    return BillSummary(
        id=order.id,
        date=order.created_at.date(),
        time=order.created_at.strftime("%H:%M"),
        bill_number=f"#{order.id[:8]}",
        customer_name=order.customer_name or "",
        table_number=order.table_number,
        item_count=sum(item.quantity for item in order.items),
        total=float(order.total),
        status=order.status,
    )


def summarize_days(bills: Sequence[BillSummary]) -> list[DailySummary]:
    days: "OrderedDict[date, list[BillSummary]]" = OrderedDict()
    for bill in bills:
        days.setdefault(bill.date, []).append(bill)

    summaries = []
    for day, day_bills in days.items():
        revenue = sum(bill.total for bill in day_bills)
        summaries.append(DailySummary(
            date=day,
            bill_count=len(day_bills),
            revenue=revenue,
            average_bill=revenue / len(day_bills),
        ))
    return sorted(summaries, key=lambda summary: summary.date)


def build_sales_report(
    orders: Sequence[Order],
    start: date,
    end: date,
    status: str,
    previous_revenue: float,
    today: Optional[date] = None,
) -> SalesReport:
    """
    Assemble the report from already filtered orders.

    Bills come out newest first and days oldest first.
    """
    today = today or date.today()
    bills = sorted(
        (summarize_bill(order) for order in orders),
        key=lambda bill: (bill.date, bill.time),
        reverse=True,
    )
    total_revenue = sum(bill.total for bill in bills)
    today_bills = [bill for bill in bills if bill.date == today]

    stats = SalesStats(
        total_bills=len(bills),
        total_revenue=total_revenue,
        average_bill=total_revenue / len(bills) if bills else 0.0,
        today_bills=len(today_bills),
        today_revenue=sum(bill.total for bill in today_bills),
        growth_rate=growth_rate(total_revenue, previous_revenue),
    )
    return SalesReport(
        start_date=start,
        end_date=end,
        status=status,
        stats=stats,
        bills=bills,
        daily=summarize_days(bills),
    )


async def load_sales_report(
    db: AsyncSession,
    start: date,
    end: date,
    status: str = "all",
) -> SalesReport:
    """
    Query orders in the range (optionally one status) and build the report.

    The previous-period revenue always covers every status.
    """
    since, until = period_bounds(start, end)
    statuses = None if status == "all" else [OrderStatus(status)]
    orders = await list_orders(db, statuses=statuses, since=since, until=until)

    prev_since, prev_until = previous_period(start, end)
    result = await db.execute(
        select(func.coalesce(func.sum(Order.total), 0.0))
        .where(Order.created_at >= prev_since, Order.created_at < prev_until)
    )
    previous_revenue = float(result.scalar_one())

    logger.info(f"Sales report {start} → {end} ({status}): {len(orders)} bills")
    return build_sales_report(orders, start, end, status, previous_revenue)


# =============================================================================
# EXPORTS
# =============================================================================

def bill_rows(bills: Sequence[BillSummary]) -> list[dict]:
    return [
        {
            "Date": bill.date.isoformat(),
            "Time": bill.time,
            "Bill Number": bill.bill_number,
            "Customer": bill.customer_name,
            "Table": bill.table_number if bill.table_number else "N/A",
            "Items": bill.item_count,
            "Total": f"{bill.total:.2f}",
            "Status": bill.status.value,
        }
        for bill in bills
    ]


def daily_rows(daily: Sequence[DailySummary]) -> list[dict]:
    return [
        {
            "Date": day.date.isoformat(),
            "Bills": day.bill_count,
            "Revenue": round(day.revenue, 2),
            "Average Bill": round(day.average_bill, 2),
        }
        for day in daily
    ]


def bills_to_csv(bills: Sequence[BillSummary]) -> str:
    frame = pd.DataFrame(bill_rows(bills), columns=CSV_COLUMNS)
    return frame.to_csv(index=False, lineterminator="\n")


def report_filename(start: date, end: date, extension: str) -> str:
    return f"sales-report-{start.isoformat()}-to-{end.isoformat()}.{extension}"
