import unittest
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from restaurantos.models import OrderStatus
from restaurantos.services.reports import (
    CSV_COLUMNS,
    bills_to_csv,
    build_sales_report,
    growth_rate,
    period_bounds,
    previous_period,
    report_filename,
)


@dataclass
class Line:
    quantity: int


@dataclass
class FakeOrder:
    id: str
    created_at: datetime
    total: float
    customer_name: str = "Anna"
    table_number: Optional[int] = None
    status: OrderStatus = OrderStatus.COMPLETED
    items: list = field(default_factory=list)


ORDERS = [
    FakeOrder("aaaaaaaa-1111", datetime(2026, 10, 17, 12, 15), 30.0, table_number=3, items=[Line(2), Line(1)]),
    FakeOrder("bbbbbbbb-2222", datetime(2026, 10, 19, 9, 5), 12.5, items=[Line(1)]),
    FakeOrder("cccccccc-3333", datetime(2026, 10, 17, 19, 40), 20.0, status=OrderStatus.SERVED, items=[Line(4)]),
]


class PeriodTests(unittest.TestCase):
    def test_bounds_are_inclusive_of_end_day(self):
        since, until = period_bounds(date(2026, 10, 13), date(2026, 10, 19))
        self.assertEqual(since, datetime(2026, 10, 13))
        self.assertEqual(until, datetime(2026, 10, 20))

    def test_previous_period_has_same_length(self):
        since, until = previous_period(date(2026, 10, 13), date(2026, 10, 19))
        self.assertEqual(since, datetime(2026, 10, 6))
        self.assertEqual(until, datetime(2026, 10, 13))

        since, until = previous_period(date(2026, 10, 19), date(2026, 10, 19))
        self.assertEqual(since, datetime(2026, 10, 18))

    def test_growth_rate(self):
        self.assertEqual(growth_rate(150.0, 100.0), 50.0)
        self.assertEqual(growth_rate(50.0, 100.0), -50.0)
        self.assertEqual(growth_rate(80.0, 0.0), 0.0)


class BuildSalesReportTests(unittest.TestCase):
    def setUp(self):
        self.report = build_sales_report(
            ORDERS,
            date(2026, 10, 13),
            date(2026, 10, 19),
            "all",
            previous_revenue=50.0,
            today=date(2026, 10, 19),
        )

    def test_stats(self):
        stats = self.report.stats
        self.assertEqual(stats.total_bills, 3)
        self.assertAlmostEqual(stats.total_revenue, 62.5)
        self.assertAlmostEqual(stats.average_bill, 62.5 / 3)
        self.assertEqual(stats.today_bills, 1)
        self.assertAlmostEqual(stats.today_revenue, 12.5)
        self.assertAlmostEqual(stats.growth_rate, 25.0)

    def test_bills_newest_first(self):
        self.assertEqual(
            [bill.bill_number for bill in self.report.bills],
            ["#bbbbbbbb", "#cccccccc", "#aaaaaaaa"],
        )
        first = self.report.bills[-1]
        self.assertEqual(first.time, "12:15")
        self.assertEqual(first.item_count, 3)
        self.assertEqual(first.table_number, 3)

    def test_daily_summaries_oldest_first(self):
        daily = self.report.daily
        self.assertEqual([day.date for day in daily], [date(2026, 10, 17), date(2026, 10, 19)])
        self.assertEqual(daily[0].bill_count, 2)
        self.assertAlmostEqual(daily[0].revenue, 50.0)
        self.assertAlmostEqual(daily[0].average_bill, 25.0)

    def test_empty_report(self):
        report = build_sales_report([], date(2026, 10, 19), date(2026, 10, 19), "pending", 0.0)
        self.assertEqual(report.stats.total_bills, 0)
        self.assertEqual(report.stats.average_bill, 0.0)
        self.assertEqual(report.daily, [])


class ExportTests(unittest.TestCase):
    def test_csv_rows(self):
        report = build_sales_report(
            ORDERS, date(2026, 10, 13), date(2026, 10, 19), "all", 0.0, today=date(2026, 10, 19)
        )
        lines = bills_to_csv(report.bills).strip().split("\n")

        self.assertEqual(lines[0], ",".join(CSV_COLUMNS))
        self.assertEqual(lines[1], "2026-10-19,09:05,#bbbbbbbb,Anna,N/A,1,12.50,completed")
        self.assertEqual(lines[3], "2026-10-17,12:15,#aaaaaaaa,Anna,3,3,30.00,completed")
        self.assertEqual(len(lines), 4)

    def test_csv_without_bills_has_header_only(self):
        self.assertEqual(bills_to_csv([]).strip(), ",".join(CSV_COLUMNS))

    def test_filename(self):
        self.assertEqual(
            report_filename(date(2026, 10, 1), date(2026, 10, 19), "csv"),
            "sales-report-2026-10-01-to-2026-10-19.csv",
        )


if __name__ == "__main__":
    unittest.main()
