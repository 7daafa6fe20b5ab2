from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import ValidationError

from music_admin.core.logger import logger
from music_admin.models.admin_models import ActivityLog, DashboardStats, RevenueReport
from music_admin.services.api_client import ApiClient, api_client
from music_admin.services.query_cache import QueryCache, query_cache, query_key
from music_admin.services.responses import normalize_list_response, unwrap

REVENUE_COLUMNS = ["period", "total_revenue", "booking_count", "course_revenue", "average_per_booking"]


def _date_range(date_from: Optional[str], date_to: Optional[str]) -> Dict[str, str]:
    params = {}
    if date_from:
        params["from"] = date_from
    if date_to:
        params["to"] = date_to
    return params


def _parse_rows(rows: List[Any], model, kind: str) -> list:
    parsed = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"⚠️ Skipping malformed {kind} row: {e.errors()[0].get('msg')}")
    return parsed


class ReportService:
    """Read-only financial and activity reports."""

    def __init__(self, client: Optional[ApiClient] = None, cache: Optional[QueryCache] = None):
        self.client = client or api_client
        self.cache = cache or query_cache

    def summary(self) -> DashboardStats:
        def _fetch():
            data = unwrap(self.client.get("/admin/dashboard/stats", fallback="Failed to load statistics"))
            return DashboardStats.model_validate(data or {})

        return self.cache.fetch(query_key("dashboard-stats"), _fetch)

    def revenue(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> List[RevenueReport]:
        def _fetch():
            body = self.client.get("/admin/reports/revenue", params=_date_range(date_from, date_to),
                                   fallback="Failed to load revenue report")
            return _parse_rows(normalize_list_response(body, "reports").data, RevenueReport, "revenue")

        return self.cache.fetch(query_key("revenue-report", date_from or "", date_to or ""), _fetch)

    def activity(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> List[ActivityLog]:
        def _fetch():
            body = self.client.get("/admin/activity-logs", params=_date_range(date_from, date_to),
                                   fallback="Failed to load activity logs")
            return _parse_rows(normalize_list_response(body, "logs").data, ActivityLog, "activity log")

        return self.cache.fetch(query_key("activity-logs", date_from or "", date_to or ""), _fetch)


def revenue_frame(reports: List[RevenueReport]) -> pd.DataFrame:
    """Revenue rows as a DataFrame, plus a TOTAL row when there is any data."""
    df = pd.DataFrame([r.model_dump() for r in reports], columns=REVENUE_COLUMNS)
    if df.empty:
        return df

    bookings = int(df["booking_count"].sum())
    revenue = float(df["total_revenue"].sum())
    total = {
        "period": "TOTAL",
        "total_revenue": revenue,
        "booking_count": bookings,
        "course_revenue": float(df["course_revenue"].sum()),
        "average_per_booking": revenue / bookings if bookings else 0.0,
    }
    return pd.concat([df, pd.DataFrame([total])], ignore_index=True)


def format_currency(amount: float) -> str:
    """IDR, no decimals, dot as thousands separator: Rp 1.250.000"""
    return "Rp " + f"{amount:,.0f}".replace(",", ".")

report_service = ReportService()
