import logging
from datetime import date, datetime, timedelta, timezone

from .models import DateWindow, RunContext

logger = logging.getLogger(__name__)

MAX_SEARCH_DAYS = 40


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_filter_date(raw, ctx: RunContext | None = None, label: str = "date") -> date | None:
    """Parse a YYYY-MM-DD (or ISO timestamp) filter bound. Empty or malformed -> None."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw).strip().replace("%3A", ":")
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.warning("Ignoring malformed %s %r", label, raw)
        if ctx is not None:
            ctx.note(f"Ignored malformed {label}: {raw!r}")
        return None


def first_of_month(day: date) -> date:
    return day.replace(day=1)


def month_token(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}-01"


def normalize_anchor_month(raw, today: date | None = None, ctx: RunContext | None = None) -> str:
    """Empty -> first of the current UTC month, otherwise the first of the given month."""
    parsed = parse_filter_date(raw, ctx, label="start month")
    if parsed is None:
        parsed = today or utc_today()
    return month_token(parsed)


def normalize_dates(
    filter_start=None,
    filter_end=None,
    duration_days: int | None = None,
    anchor_month=None,
    today: date | None = None,
    ctx: RunContext | None = None,
) -> tuple[DateWindow, str]:
    """Resolve raw filter inputs into a concrete window capped at MAX_SEARCH_DAYS.

    Rules, first match wins:
      1. no bounds, positive duration -> today .. today + duration
      2. start only -> start .. start + 39
      3. end only   -> end - 39 .. end
      4. both       -> kept, end capped to start + 39 when the span exceeds 40 days
    Once either bound is given the duration is ignored.
    """
    today = today or utc_today()
    anchor = normalize_anchor_month(anchor_month, today=today, ctx=ctx)
    start = parse_filter_date(filter_start, ctx, label="filter start date")
    end = parse_filter_date(filter_end, ctx, label="filter end date")
    span = timedelta(days=MAX_SEARCH_DAYS - 1)

    if start is None and end is None:
        if isinstance(duration_days, int) and duration_days > 0:
            start = today
            end = today + timedelta(days=duration_days)
            logger.debug("No filter dates, using %d-day duration: %s..%s", duration_days, start, end)
    elif end is None:
        end = start + span
        logger.debug("Filter end date empty, set to %s", end)
    elif start is None:
        start = end - span
        logger.debug("Filter start date empty, set to %s", start)

    if start is not None and end is not None and (end - start).days + 1 > MAX_SEARCH_DAYS:
        capped = start + span
        logger.warning(
            "Date range of %d days exceeds %d days, capping end date to %s",
            (end - start).days + 1, MAX_SEARCH_DAYS, capped,
        )
        if ctx is not None:
            ctx.note(f"Capped end date from {end} to {capped}")
        end = capped

    return DateWindow(start=start, end=end), anchor


def months_to_query(window: DateWindow, anchor_month: str) -> list[str]:
    """Ordered, unique YYYY-MM-01 tokens covering the window (at least one)."""
    if window.start is not None:
        current = first_of_month(window.start)
    else:
        current = first_of_month(date.fromisoformat(anchor_month[:10]))

    months = {month_token(current): None}
    if window.end is not None:
        last = first_of_month(window.end)
        while current < last:
            if current.month == 12:
                current = current.replace(year=current.year + 1, month=1)
            else:
                current = current.replace(month=current.month + 1)
            months[month_token(current)] = None
    return list(months)


def month_start_param(token: str) -> str:
    return f"{token[:10]}T00:00:00.000Z"


def date_range_text(window: DateWindow, anchor_month: str) -> str:
    fmt = "%m-%d-%Y"
    if window.is_open:
        anchor = date.fromisoformat(anchor_month[:10])
        return f"Showing availability for the default month (starting around {anchor.strftime(fmt)})."
    if window.start and window.end:
        return f"Showing availability from {window.start.strftime(fmt)} to {window.end.strftime(fmt)}."
    if window.start:
        return f"Showing availability from {window.start.strftime(fmt)} onwards."
    return f"Showing availability up to {window.end.strftime(fmt)}."
