"""
Service for exporting reports to CSV.
"""

from __future__ import annotations

import csv
from io import StringIO
from typing import Any

from cafeqr_shared.logging_config import get_logger

logger = get_logger(__name__)

CSV_COLUMNS = (
    "order_id",
    "created_at",
    "tenant",
    "table_number",
    "items",
    "payment_method",
    "payment_verified",
    "status",
    "subtotal",
    "unique_code",
    "total_amount",
)


class ReportExportService:
    """Turns a report from report_service.build_report into a CSV download."""

    @staticmethod
    def _items_summary(items: list[dict[str, Any]]) -> str:
        return "; ".join(f"{item['quantity']}x {item['name']}" for item in items)

    @staticmethod
    def export_report_to_csv(report: dict[str, Any]) -> bytes:
        buffer = StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_COLUMNS)
        for order in report["orders"]:
            writer.writerow(
                [
                    order["id"],
                    order["created_at"],
                    order.get("tenant_name") or order.get("tenant_id"),
                    order["table_number"],
                    ReportExportService._items_summary(order["order_items"]),
                    order["payment_method"],
                    "ya" if order["payment_verified"] else "tidak",
                    order["status"],
                    order["subtotal"],
                    order["unique_code"] if order["unique_code"] is not None else "",
                    order["total_amount"],
                ]
            )
        writer.writerow([])
        writer.writerow(["total_transactions", report["total_transactions"]])
        writer.writerow(["total_revenue", report["total_revenue"]])
        logger.info(f"CSV export generated with {report['total_transactions']} orders")
        return buffer.getvalue().encode("utf-8")

    @staticmethod
    def filename(prefix: str, period_label: str) -> str:
        return f"laporan-{prefix}-{period_label}.csv"
