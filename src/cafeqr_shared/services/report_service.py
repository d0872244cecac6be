"""
Sales reports, order pagination and dashboards.

Period bounds are computed in the report timezone and converted to the naive
UTC datetimes stored on orders. Both ends are inclusive. Totals are summed
over the fetched orders, not aggregated in SQL.
"""

from __future__ import annotations

import base64
import binascii
import calendar
import json
import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from cafeqr_shared.constants import DEFAULT_PAGE_SIZE
from cafeqr_shared.datetime_utils import to_local, to_naive_utc, utcnow
from cafeqr_shared.db import get_session
from cafeqr_shared.models import AdminProfile, Menu, Order, Table, Tenant
from cafeqr_shared.serializers import serialize_order, serialize_tenant
from cafeqr_shared.services.tenant_service import admin_url, get_tenant_row
from cafeqr_shared.validation import ValidationError, validate_page_size

logger = logging.getLogger(__name__)

DEFAULT_REPORT_TIMEZONE = "Asia/Jakarta"

_ONE_TICK = timedelta(microseconds=1)


@contextmanager
def _calendar_range():
    """Dates past the ends of the calendar are a bad request, not a crash."""
    try:
        yield
    except (ValueError, OverflowError) as exc:
        raise ValidationError("Tanggal di luar jangkauan", {"date": str(exc)}) from exc


def _local_bounds(start_day: date, end_day_exclusive: date, tz_name: str) -> tuple[datetime, datetime]:
    tz = ZoneInfo(tz_name)
    start = datetime.combine(start_day, time.min, tzinfo=tz)
    end = datetime.combine(end_day_exclusive, time.min, tzinfo=tz) - _ONE_TICK
    return to_naive_utc(start), to_naive_utc(end)


def day_bounds(day: date, tz_name: str = DEFAULT_REPORT_TIMEZONE) -> tuple[datetime, datetime]:
    """Start and end (inclusive) of ``day`` in the report timezone."""
    with _calendar_range():
        return _local_bounds(day, day + timedelta(days=1), tz_name)


def month_bounds(year: int, month: int, tz_name: str = DEFAULT_REPORT_TIMEZONE) -> tuple[datetime, datetime]:
    if not 1 <= month <= 12:
        raise ValidationError("Bulan tidak valid", {"month": "Bulan harus 1-12"})
    with _calendar_range():
        last_day = calendar.monthrange(year, month)[1]
        return _local_bounds(date(year, month, 1), date(year, month, last_day) + timedelta(days=1), tz_name)


def year_bounds(year: int, tz_name: str = DEFAULT_REPORT_TIMEZONE) -> tuple[datetime, datetime]:
    with _calendar_range():
        return _local_bounds(date(year, 1, 1), date(year + 1, 1, 1), tz_name)


def today_local(tz_name: str = DEFAULT_REPORT_TIMEZONE) -> date:
    return to_local(utcnow(), tz_name).date()


def period_bounds(
    period: str,
    year: int,
    month: int | None = None,
    day: int | None = None,
    tz_name: str = DEFAULT_REPORT_TIMEZONE,
) -> tuple[datetime, datetime]:
    if period == "year":
        return year_bounds(year, tz_name)
    if period == "month":
        if month is None:
            raise ValidationError("Bulan wajib diisi", {"month": "Bulan wajib diisi"})
        return month_bounds(year, month, tz_name)
    if period == "day":
        if month is None or day is None:
            raise ValidationError("Tanggal wajib diisi", {"date": "Tanggal wajib diisi"})
        try:
            return day_bounds(date(year, month, day), tz_name)
        except ValueError as exc:
            raise ValidationError("Tanggal tidak valid", {"date": str(exc)}) from exc
    raise ValidationError("Periode tidak valid", {"period": "Gunakan day, month atau year"})


def _range_filter(stmt, tenant_id: str | None, start: datetime, end: datetime):
    stmt = stmt.where(Order.created_at >= start, Order.created_at <= end)
    if tenant_id:
        stmt = stmt.where(Order.tenant_id == tenant_id)
    return stmt


def _summarize(orders: list[Order]) -> dict[str, int]:
    return {
        "total_revenue": sum(order.total_amount for order in orders),
        "total_transactions": len(orders),
    }


def build_report(tenant_id: str | None, start: datetime, end: datetime) -> dict[str, Any]:
    """
    Orders created in [start, end], newest first, with revenue and count.
    ``tenant_id=None`` covers every tenant.
    """
    with get_session() as session:
        stmt = _range_filter(select(Order), tenant_id, start, end).order_by(
            Order.created_at.desc(), Order.id.desc()
        )
        orders = list(session.execute(stmt).scalars())
        names = dict(session.execute(select(Tenant.id, Tenant.name)).all()) if tenant_id is None else {}
        rows = []
        for order in orders:
            row = serialize_order(order)
            if tenant_id is None:
                row["tenant_name"] = names.get(order.tenant_id)
            rows.append(row)
        return {
            "tenant_id": tenant_id,
            "start": start.isoformat(),
            "end": end.isoformat(),
            **_summarize(orders),
            "orders": rows,
        }


def encode_cursor(order: Order) -> str:
    raw = json.dumps({"c": order.created_at.isoformat(), "i": order.id}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> tuple[datetime, str]:
    try:
        padded = token + "=" * (-len(token) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        return datetime.fromisoformat(data["c"]), str(data["i"])
    except (binascii.Error, ValueError, KeyError, TypeError, UnicodeError) as exc:
        raise ValidationError("Cursor tidak valid", {"cursor": "Cursor tidak valid"}) from exc


def _older_than(created_at: datetime, order_id: str):
    return or_(Order.created_at < created_at, and_(Order.created_at == created_at, Order.id < order_id))


def _newer_than(created_at: datetime, order_id: str):
    return or_(Order.created_at > created_at, and_(Order.created_at == created_at, Order.id > order_id))


def _exists_beyond(session: Session, base, condition) -> bool:
    """One-row lookahead past the page boundary."""
    return session.execute(base.where(condition).limit(1)).first() is not None


def paginate_orders(
    tenant_id: str,
    start: datetime,
    end: datetime,
    page_size: int = DEFAULT_PAGE_SIZE,
    after: str | None = None,
    before: str | None = None,
) -> dict[str, Any]:
    """
    One page of the tenant's orders in [start, end], newest first.

    ``after`` continues past the last order of the previous page, ``before``
    goes back to the page ending just before the first order seen.
    """
    if after and before:
        raise ValidationError("Gunakan after atau before, bukan keduanya", {"cursor": "Ambigu"})
    page_size = validate_page_size(page_size)

    with get_session() as session:
        base = _range_filter(select(Order), tenant_id, start, end)
        probe = _range_filter(select(Order.id), tenant_id, start, end)

        if before:
            created_at, order_id = decode_cursor(before)
            stmt = base.where(_newer_than(created_at, order_id)).order_by(
                Order.created_at.asc(), Order.id.asc()
            )
            orders = list(reversed(list(session.execute(stmt.limit(page_size)).scalars())))
        else:
            stmt = base.order_by(Order.created_at.desc(), Order.id.desc())
            if after:
                created_at, order_id = decode_cursor(after)
                stmt = stmt.where(_older_than(created_at, order_id))
            orders = list(session.execute(stmt.limit(page_size)).scalars())

        if orders:
            first, last = orders[0], orders[-1]
            has_next = _exists_beyond(session, probe, _older_than(last.created_at, last.id))
            has_prev = _exists_beyond(session, probe, _newer_than(first.created_at, first.id))
        else:
            has_next = bool(before)
            has_prev = bool(after)

        return {
            "orders": [serialize_order(order) for order in orders],
            "page_size": page_size,
            "has_next": has_next,
            "has_prev": has_prev,
            "next_cursor": encode_cursor(orders[-1]) if orders and has_next else None,
            "prev_cursor": encode_cursor(orders[0]) if orders and has_prev else None,
        }


def tenant_dashboard(tenant_id: str, tz_name: str = DEFAULT_REPORT_TIMEZONE) -> dict[str, Any]:
    """Landing page of the tenant admin panel."""
    start, end = day_bounds(today_local(tz_name), tz_name)
    with get_session() as session:
        tenant = get_tenant_row(session, tenant_id)
        todays = list(session.execute(_range_filter(select(Order), tenant_id, start, end)).scalars())
        menu_count = session.execute(
            select(func.count()).select_from(Menu).where(Menu.tenant_id == tenant_id)
        ).scalar_one()
        table_count = session.execute(
            select(func.count()).select_from(Table).where(Table.tenant_id == tenant_id)
        ).scalar_one()
        return {
            "tenant": serialize_tenant(tenant),
            "today": _summarize(todays),
            "menu_count": menu_count,
            "table_count": table_count,
            "links": {
                page: admin_url(tenant.slug, page)
                for page in ("orders", "menus", "categories", "tables", "reports", "settings")
            },
        }


def super_admin_dashboard() -> dict[str, int]:
    with get_session() as session:

        def count(model) -> int:
            return session.execute(select(func.count()).select_from(model)).scalar_one()

        return {
            "total_tenants": count(Tenant),
            "total_users": count(AdminProfile),
            "total_menus": count(Menu),
            "total_orders": count(Order),
        }
