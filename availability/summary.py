from collections import Counter
from typing import Iterable

from .models import AvailabilitySummary, AvailabilityStatus, CampsiteRecord, Row

SUMMARY_DISPLAY_ORDER = [
    AvailabilityStatus.AVAILABLE,
    AvailabilityStatus.NOT_RESERVABLE,
    AvailabilityStatus.OPEN,
    AvailabilityStatus.RESERVED,
    AvailabilityStatus.NOT_YET_RELEASED,
    AvailabilityStatus.CLOSED,
    AvailabilityStatus.NOT_AVAILABLE_CUTOFF,
    AvailabilityStatus.UNKNOWN,
]

COMPACT_SUMMARY_ICONS = {
    AvailabilityStatus.AVAILABLE: "✅",
    AvailabilityStatus.NOT_RESERVABLE: "\U0001f6b6",
    AvailabilityStatus.OPEN: "➡️",
    AvailabilityStatus.NOT_AVAILABLE_CUTOFF: "❌",
}

# Dict order is the compact display order
COMPACT_SUMMARY_DISPLAY_ORDER = list(COMPACT_SUMMARY_ICONS)


def _ordered(counter: Counter) -> dict[AvailabilityStatus, int]:
    return {status: counter[status] for status in SUMMARY_DISPLAY_ORDER if counter[status]}


def count_statuses(rows: Iterable[Row]) -> dict[AvailabilityStatus, int]:
    return _ordered(Counter(row.status for row in rows))


def full_calendar_counts(calendar: dict[str, CampsiteRecord]) -> dict[AvailabilityStatus, int]:
    """Counts over every fetched date, ignoring the filter window."""
    return _ordered(
        Counter(status for record in calendar.values() for status in record.availabilities.values())
    )


def compact_summary(counts: dict[AvailabilityStatus, int]) -> str:
    """E.g. "✅3 | 🚶2"; empty when none of the compact statuses occur."""
    parts = [
        f"{COMPACT_SUMMARY_ICONS[status]}{counts[status]}"
        for status in COMPACT_SUMMARY_DISPLAY_ORDER
        if counts.get(status, 0) > 0
    ]
    return " | ".join(parts)


def compact_tooltip(counts: dict[AvailabilityStatus, int]) -> str:
    return "\n".join(
        f"{status.label}: {counts[status]} day(s)"
        for status in COMPACT_SUMMARY_DISPLAY_ORDER
        if counts.get(status, 0) > 0
    )


def summarize(rows: Iterable[Row]) -> AvailabilitySummary:
    counts = count_statuses(rows)
    return AvailabilitySummary(counts=counts, compact=compact_summary(counts), tooltip=compact_tooltip(counts))


def per_site_summaries(rows: Iterable[Row]) -> dict[str, AvailabilitySummary]:
    by_site: dict[str, list[Row]] = {}
    for row in rows:
        by_site.setdefault(row.site, []).append(row)
    return {site: summarize(site_rows) for site, site_rows in by_site.items()}
