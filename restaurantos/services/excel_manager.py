"""
Excel File Manager with Concurrency Control

Process-safe Excel operations for:
- The sales ledger (one row per created order, appended by a Celery task)
- Sales report workbooks (bills and daily summaries) built on demand
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

import pandas as pd
from filelock import FileLock, Timeout

from restaurantos.core.config import get_settings
import logging

logger = logging.getLogger(__name__)


def _data_dir() -> Path:
    return Path(get_settings().data_directory)


class ExcelManager:
    """File-locked Excel writer for ledgers and reports."""

    LEDGER_COLUMNS = [
        "order_id",
        "order_number",
        "date_time",
        "customer_name",
        "table_number",
        "items",
        "item_count",
        "total",
        "status",
        "source",
        "exported_at",
    ]

    BILL_COLUMNS = [
        "Date",
        "Time",
        "Bill Number",
        "Customer",
        "Table",
        "Items",
        "Total",
        "Status",
    ]

    DAILY_COLUMNS = ["Date", "Bills", "Revenue", "Average Bill"]

    @classmethod
    def ledger_file(cls) -> Path:
        return _data_dir() / get_settings().sales_ledger_filename

    @classmethod
    def _lock_for(cls, file_path: Path) -> FileLock:
        return FileLock(str(file_path) + ".lock", timeout=get_settings().file_lock_timeout)

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        data_dir = _data_dir()
        if not data_dir.exists():
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {data_dir}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path, columns: list) -> pd.DataFrame:
        """Load existing file or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
                return pd.DataFrame(columns=columns)
        return pd.DataFrame(columns=columns)

    @classmethod
    def export_order(cls, order_data: dict[str, Any]) -> dict[str, Any]:
        """Append an order to the sales ledger with file locking."""
        cls._ensure_data_dir()

        order_id = order_data.get("order_id", "")
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }
        ledger = cls.ledger_file()

        try:
            with cls._lock_for(ledger):
                logger.debug(f"Lock acquired for order {order_id}")

                df = cls._load_or_create_df(ledger, cls.LEDGER_COLUMNS)

                export_time = datetime.now().isoformat()
                new_row = {
                    "order_id": order_id,
                    "order_number": order_data.get("order_number"),
                    "date_time": order_data.get("created_at", export_time),
                    "customer_name": order_data.get("customer_name"),
                    "table_number": order_data.get("table_number"),
                    "items": order_data.get("items"),
                    "item_count": order_data.get("item_count", 0),
                    "total": order_data.get("total"),
                    "status": order_data.get("status"),
                    "source": order_data.get("source", "manual"),
                    "exported_at": export_time,
                }

                df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_excel(str(ledger), index=False, engine="openpyxl")

                logger.info(f"Order {order_id} exported to sales ledger")

                result["success"] = True
                result["message"] = f"Order {order_id} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for order {order_id}")

        except Timeout:
            result["message"] = f"Lock timeout ({get_settings().file_lock_timeout}s)"
            logger.error(f"Lock timeout for order {order_id}")

        except Exception as e:
            result["message"] = str(e)
            logger.exception(f"Error exporting order {order_id}")

        return result

    @classmethod
    def export_sales_report(
        cls,
        bills: Sequence[dict[str, Any]],
        daily: Sequence[dict[str, Any]],
        filename: str,
    ) -> dict[str, Any]:
        """
        Write a report workbook with a "Bills" and a "Daily" sheet.

        Args:
            bills: Rows keyed by ``BILL_COLUMNS``
            daily: Rows keyed by ``DAILY_COLUMNS``
            filename: File name inside the data directory
        """
        cls._ensure_data_dir()
        target = _data_dir() / filename
        result = {"success": False, "message": "", "path": None, "rows": len(bills)}

        try:
            with cls._lock_for(target):
                with pd.ExcelWriter(str(target), engine="openpyxl") as writer:
                    pd.DataFrame(list(bills), columns=cls.BILL_COLUMNS).to_excel(
                        writer, sheet_name="Bills", index=False
                    )
                    pd.DataFrame(list(daily), columns=cls.DAILY_COLUMNS).to_excel(
                        writer, sheet_name="Daily", index=False
                    )
            logger.info(f"Sales report written to {target} ({len(bills)} bills)")
            result["success"] = True
            result["message"] = f"Exported {len(bills)} bills"
            result["path"] = str(target)

        except Timeout:
            result["message"] = f"Lock timeout ({get_settings().file_lock_timeout}s)"
            logger.error(f"Lock timeout for {target}")

        except Exception as e:
            result["message"] = str(e)
            logger.exception(f"Error writing sales report {target}")

        return result

    @classmethod
    def get_all_orders(cls) -> list[dict[str, Any]]:
        """Get all rows of the sales ledger."""
        ledger = cls.ledger_file()
        if not ledger.exists():
            return []

        try:
            df = pd.read_excel(ledger, engine="openpyxl")
            return df.to_dict("records")
        except Exception as e:
            logger.error(f"Error reading sales ledger: {e}")
            return []
