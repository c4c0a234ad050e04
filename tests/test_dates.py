from datetime import date, timedelta

import pytest

from availability.dates import (
    MAX_SEARCH_DAYS,
    date_range_text,
    month_start_param,
    months_to_query,
    normalize_anchor_month,
    normalize_dates,
)
from availability.models import DateWindow, RunContext

TODAY = date(2025, 7, 14)


# ── Effective dates ────────────────────────────────────────────────────────────

def test_duration_used_when_both_bounds_empty():
    window, _ = normalize_dates("", "", 30, "", today=TODAY)
    assert window == DateWindow(TODAY, TODAY + timedelta(days=30))


def test_no_bounds_no_duration_leaves_window_open():
    window, anchor = normalize_dates("", "", None, "", today=TODAY)
    assert window.is_open
    assert anchor == "2025-07-01"


def test_start_only_gets_40_day_window():
    window, _ = normalize_dates("2025-07-01", "", 30, "", today=TODAY)
    assert window == DateWindow(date(2025, 7, 1), date(2025, 8, 9))


def test_end_only_gets_40_day_window():
    window, _ = normalize_dates("", "2025-08-09", None, "", today=TODAY)
    assert window == DateWindow(date(2025, 7, 1), date(2025, 8, 9))


def test_both_bounds_within_limit_kept():
    window, _ = normalize_dates("2025-07-01", "2025-07-10", 30, "", today=TODAY)
    assert window == DateWindow(date(2025, 7, 1), date(2025, 7, 10))


def test_both_bounds_over_limit_capped():
    ctx = RunContext()
    window, _ = normalize_dates("2025-07-01", "2025-09-30", None, "", today=TODAY, ctx=ctx)
    assert window.end == date(2025, 8, 9)
    assert ctx.notes


def test_exactly_40_days_not_capped():
    window, _ = normalize_dates("2025-07-01", "2025-08-09", None, "", today=TODAY)
    assert window.end == date(2025, 8, 9)


def test_explicit_bound_ignores_duration():
    window, _ = normalize_dates("2025-07-01", "", 5, "", today=TODAY)
    assert (window.end - window.start).days == MAX_SEARCH_DAYS - 1


@pytest.mark.parametrize(
    "start,end,duration",
    [
        ("", "", 90),
        ("2025-01-01", "2025-12-31", None),
        ("2025-07-01", "", None),
        ("", "2025-07-01", None),
        ("", "", 1),
    ],
)
def test_window_never_exceeds_40_days(start, end, duration):
    window, _ = normalize_dates(start, end, duration, "", today=TODAY)
    assert (window.end - window.start).days <= MAX_SEARCH_DAYS - 1


def test_malformed_date_treated_as_absent():
    ctx = RunContext()
    window, _ = normalize_dates("not-a-date", "2025-07-10", None, "", today=TODAY, ctx=ctx)
    assert window.start == date(2025, 6, 1)
    assert any("malformed" in note for note in ctx.notes)


def test_anchor_month_from_encoded_timestamp():
    assert normalize_anchor_month("2025-07-15T00%3A00%3A00.000Z") == "2025-07-01"


def test_anchor_month_defaults_to_current_month():
    assert normalize_anchor_month("", today=TODAY) == "2025-07-01"


# ── Months to query ────────────────────────────────────────────────────────────

def test_single_month():
    window = DateWindow(date(2025, 7, 1), date(2025, 7, 10))
    assert months_to_query(window, "2025-01-01") == ["2025-07-01"]


def test_spans_two_months():
    window = DateWindow(date(2025, 7, 20), date(2025, 8, 5))
    assert months_to_query(window, "2025-01-01") == ["2025-07-01", "2025-08-01"]


def test_wraps_year_boundary():
    window = DateWindow(date(2025, 12, 15), date(2026, 1, 20))
    assert months_to_query(window, "2025-01-01") == ["2025-12-01", "2026-01-01"]


def test_open_window_falls_back_to_anchor():
    assert months_to_query(DateWindow(), "2025-03-01") == ["2025-03-01"]


def test_end_only_seeds_from_anchor():
    window = DateWindow(None, date(2025, 5, 2))
    assert months_to_query(window, "2025-03-01") == ["2025-03-01", "2025-04-01", "2025-05-01"]


@pytest.mark.parametrize("offset", [0, 1, 17, 39, 200])
def test_months_are_contiguous(offset):
    start = date(2025, 11, 28)
    window = DateWindow(start, start + timedelta(days=offset))
    months = months_to_query(window, "2025-01-01")
    assert months[0] == "2025-11-01"
    assert months[-1] == f"{window.end.year:04d}-{window.end.month:02d}-01"
    assert len(months) == len(set(months))
    for prev, nxt in zip(months, months[1:]):
        y, m = int(prev[:4]), int(prev[5:7])
        expected = f"{y + 1:04d}-01-01" if m == 12 else f"{y:04d}-{m + 1:02d}-01"
        assert nxt == expected


def test_month_start_param():
    assert month_start_param("2025-07-01") == "2025-07-01T00:00:00.000Z"


def test_date_range_text():
    window = DateWindow(date(2025, 7, 1), date(2025, 7, 10))
    assert date_range_text(window, "2025-07-01") == "Showing availability from 07-01-2025 to 07-10-2025."
    assert "onwards" in date_range_text(DateWindow(date(2025, 7, 1), None), "2025-07-01")


def test_date_range_text_open_window_uses_anchor():
    assert date_range_text(DateWindow(), "2025-07-01") == (
        "Showing availability for the default month (starting around 07-01-2025)."
    )
    assert date_range_text(DateWindow(None, date(2025, 7, 10)), "2025-07-01") == (
        "Showing availability up to 07-10-2025."
    )
