from datetime import date, datetime, timedelta

import pytest

from cafeqr_shared.services import tenant_service
from cafeqr_shared.services.report_export_service import ReportExportService
from cafeqr_shared.services.report_service import (
    build_report,
    day_bounds,
    decode_cursor,
    month_bounds,
    paginate_orders,
    period_bounds,
    year_bounds,
)
from cafeqr_shared.validation import ValidationError


@pytest.fixture
def tenant():
    return tenant_service.create_tenant("Kopi Laporan")


def test_day_bounds_follow_jakarta_time():
    start, end = day_bounds(date(2024, 5, 1))
    assert start == datetime(2024, 4, 30, 17, 0)
    assert end == datetime(2024, 5, 1, 16, 59, 59, 999999)


def test_month_bounds_handle_leap_years():
    start, end = month_bounds(2024, 2)
    assert start == datetime(2024, 1, 31, 17, 0)
    assert end == datetime(2024, 2, 29, 16, 59, 59, 999999)


def test_year_bounds():
    start, end = year_bounds(2024)
    assert start == datetime(2023, 12, 31, 17, 0)
    assert end == datetime(2024, 12, 31, 16, 59, 59, 999999)


@pytest.mark.parametrize(
    ("period", "args"),
    [("month", (2024, 13)), ("month", (2024, None)), ("day", (2024, 2, 30)), ("week", (2024,))],
)
def test_invalid_periods(period, args):
    with pytest.raises(ValidationError):
        period_bounds(period, *args)


@pytest.mark.parametrize(
    ("period", "args"),
    [("day", (9999, 12, 31)), ("day", (1, 1, 1)), ("month", (9999, 12)), ("year", (9999,))],
)
def test_periods_at_the_edge_of_the_calendar_are_rejected(period, args):
    with pytest.raises(ValidationError) as exc_info:
        period_bounds(period, *args)
    assert "date" in exc_info.value.fields


def test_report_bounds_are_inclusive(tenant, make_order):
    start, end = day_bounds(date(2024, 5, 1))
    make_order(tenant["id"], start - timedelta(microseconds=1), total=1000)
    make_order(tenant["id"], start, total=2000)
    make_order(tenant["id"], end, total=3000)
    make_order(tenant["id"], end + timedelta(microseconds=1), total=4000)

    report = build_report(tenant["id"], start, end)
    assert report["total_transactions"] == 2
    assert report["total_revenue"] == 5000
    assert [order["total_amount"] for order in report["orders"]] == [3000, 2000]


def test_all_tenant_report_names_each_order(tenant, make_order):
    other = tenant_service.create_tenant("Kopi Seberang")
    start, end = month_bounds(2024, 5)
    make_order(tenant["id"], datetime(2024, 5, 2, 5), total=1000)
    make_order(other["id"], datetime(2024, 5, 3, 5), total=2000)

    everything = build_report(None, start, end)
    assert everything["total_revenue"] == 3000
    assert {o["tenant_name"] for o in everything["orders"]} == {"Kopi Laporan", "Kopi Seberang"}

    single = build_report(other["id"], start, end)
    assert single["total_transactions"] == 1
    assert "tenant_name" not in single["orders"][0]


def test_pagination_walks_forward_and_back(tenant, make_order):
    base = datetime(2024, 5, 1, 2, 0)
    ids = [make_order(tenant["id"], base + timedelta(minutes=i)) for i in range(22)]
    # Three orders share one timestamp; the id breaks the tie.
    ids += [make_order(tenant["id"], base + timedelta(minutes=5)) for _ in range(3)]
    start, end = day_bounds(date(2024, 5, 1))

    first = paginate_orders(tenant["id"], start, end, page_size=10)
    assert len(first["orders"]) == 10
    assert first["has_next"] is True
    assert first["has_prev"] is False
    assert first["prev_cursor"] is None

    second = paginate_orders(tenant["id"], start, end, page_size=10, after=first["next_cursor"])
    assert second["has_prev"] is True
    assert second["has_next"] is True

    third = paginate_orders(tenant["id"], start, end, page_size=10, after=second["next_cursor"])
    assert len(third["orders"]) == 5
    assert third["has_next"] is False
    assert third["next_cursor"] is None

    seen = [o["id"] for page in (first, second, third) for o in page["orders"]]
    assert sorted(seen) == sorted(ids)
    assert len(set(seen)) == 25

    back = paginate_orders(tenant["id"], start, end, page_size=10, before=third["prev_cursor"])
    assert [o["id"] for o in back["orders"]] == [o["id"] for o in second["orders"]]

    newest_first = [o["created_at"] for o in first["orders"]]
    assert newest_first == sorted(newest_first, reverse=True)


def test_pagination_rejects_bad_cursors(tenant):
    start, end = day_bounds(date(2024, 5, 1))
    with pytest.raises(ValidationError):
        paginate_orders(tenant["id"], start, end, after="bukan-cursor")
    with pytest.raises(ValidationError):
        paginate_orders(tenant["id"], start, end, after="a", before="b")
    with pytest.raises(ValidationError):
        decode_cursor("%%%")


def test_pagination_clamps_page_size(tenant, make_order):
    start, end = day_bounds(date(2024, 5, 1))
    make_order(tenant["id"], datetime(2024, 5, 1, 2))
    assert paginate_orders(tenant["id"], start, end, page_size=0)["page_size"] == 10
    assert paginate_orders(tenant["id"], start, end, page_size=1000)["page_size"] == 100


def test_csv_export_lists_orders_and_totals(tenant, make_order):
    make_order(tenant["id"], datetime(2024, 5, 1, 2), total=15000)
    start, end = day_bounds(date(2024, 5, 1))
    csv_text = ReportExportService.export_report_to_csv(build_report(None, start, end)).decode("utf-8")
    rows = csv_text.splitlines()

    assert rows[1].split(",")[2:5] == ["Kopi Laporan", "1", "1x Kopi Susu"]
    assert rows[-1] == "total_revenue,15000"
    assert ReportExportService.filename("semua-kafe", "2024") == "laporan-semua-kafe-2024.csv"
