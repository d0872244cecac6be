"""Query string helpers shared by the admin blueprints."""

from __future__ import annotations

from datetime import date, datetime

from flask import current_app, request

from cafeqr_shared.services.report_service import period_bounds, today_local
from cafeqr_shared.validation import ValidationError


def query_int(name: str, default: int | None = None) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"Parameter {name} harus berupa angka", {name: "Harus berupa angka"}) from exc


def query_date(name: str, default: date) -> date:
    raw = request.args.get(name)
    if not raw:
        return default
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError("Tanggal tidak valid", {name: "Gunakan format YYYY-MM-DD"}) from exc


def report_timezone() -> str:
    return current_app.config["CAFEQR_CONFIG"].report_timezone


def report_period(default_period: str, allowed: tuple[str, ...]) -> tuple[str, str, datetime, datetime]:
    """
    Read ``period`` (+ ``date`` or ``year``/``month``) from the query string.

    Returns (period, label, start, end) where label is "2024-05-01", "2024-05"
    or "2024". Defaults to the current day/month/year in the report timezone.
    """
    tz_name = report_timezone()
    period = request.args.get("period", default_period)
    if period not in allowed:
        raise ValidationError("Periode tidak valid", {"period": f"Gunakan {', '.join(allowed)}"})

    today = today_local(tz_name)
    if period == "day":
        day = query_date("date", today)
        start, end = period_bounds("day", day.year, day.month, day.day, tz_name)
        label = day.isoformat()
    else:
        year = query_int("year", today.year)
        if not 2000 <= year <= 9998:
            raise ValidationError("Tahun tidak valid", {"year": "Tahun tidak valid"})
        month = query_int("month", today.month) if period == "month" else None
        start, end = period_bounds(period, year, month, tz_name=tz_name)
        label = f"{year:04d}-{month:02d}" if month else f"{year:04d}"
    return period, label, start, end
