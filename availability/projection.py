import logging
import re
from typing import Callable, Iterable

from .models import AvailabilityStatus, CampsiteRecord, DateWindow, Row

logger = logging.getLogger(__name__)

MAX_SITES_TO_FILTER = 30

_SITE_PARTS = re.compile(r"^(\D*)(\d+).*$")
_NUMERIC = re.compile(r"^\d+$")

StatusPredicate = Callable[[AvailabilityStatus], bool]


# ── Site names ─────────────────────────────────────────────────────────────────

def normalize_site_name(name) -> str:
    """Case-folded lookup key; purely numeric names lose leading zeros ("007" == 7)."""
    text = str(name).strip().upper()
    if _NUMERIC.match(text):
        return str(int(text))
    return text


def site_parts(name) -> tuple[str, int]:
    """Split "A035" into ("A", 35). Numeric names -> ("", n), alphabetic -> (name, 0)."""
    text = str(name or "")
    match = _SITE_PARTS.match(text)
    if match:
        return match.group(1), int(match.group(2))
    return text, 0


def natural_key(name) -> tuple[str, int, str]:
    prefix, number = site_parts(name)
    return prefix, number, str(name)


def row_sort_key(row: Row, primary_sort_key: str = "date") -> tuple:
    if primary_sort_key == "site":
        return site_parts(row.site), row.date
    return row.date, site_parts(row.site)


def sort_rows(rows: Iterable[Row], primary_sort_key: str = "date") -> list[Row]:
    return sorted(rows, key=lambda row: row_sort_key(row, primary_sort_key))


def sanitize_site_filter(raw, limit: int = MAX_SITES_TO_FILTER) -> list[str]:
    """Accepts a list or a comma separated string of site names.

    Returns trimmed, de-duplicated names in natural order, truncated to limit.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    elif not isinstance(raw, (list, tuple, set)):
        raw = [raw]

    by_key: dict[str, str] = {}
    for item in raw:
        text = str(item).strip()
        if text:
            by_key.setdefault(normalize_site_name(text), text)

    names = sorted(by_key.values(), key=natural_key)
    if len(names) > limit:
        logger.warning(
            "%d sites requested, more than the maximum of %d. Truncating the list.", len(names), limit
        )
        names = names[:limit]
    return names


# ── Status predicates ──────────────────────────────────────────────────────────

WALK_UP_STATUSES = frozenset({AvailabilityStatus.NOT_RESERVABLE, AvailabilityStatus.OPEN})


def any_status(_status: AvailabilityStatus) -> bool:
    return True


def available_predicate(include_not_reservable: bool = False) -> StatusPredicate:
    def predicate(status: AvailabilityStatus) -> bool:
        return status is AvailabilityStatus.AVAILABLE or (
            include_not_reservable and status is AvailabilityStatus.NOT_RESERVABLE
        )
    return predicate


def filtered_sites_predicate(show_all_statuses: bool = False) -> StatusPredicate:
    if show_all_statuses:
        return any_status

    def predicate(status: AvailabilityStatus) -> bool:
        return status is AvailabilityStatus.AVAILABLE or status in WALK_UP_STATUSES
    return predicate


# ── Projection ─────────────────────────────────────────────────────────────────

def project_rows(
    calendar: dict[str, CampsiteRecord],
    window: DateWindow,
    site_filter: list[str] | None = None,
    predicate: StatusPredicate = any_status,
    primary_sort_key: str = "date",
) -> list[Row]:
    wanted = {normalize_site_name(name) for name in site_filter or []}
    rows = []
    for record in calendar.values():
        if wanted and normalize_site_name(record.site) not in wanted:
            continue
        for day, status in record.availabilities.items():
            if window.contains(day) and predicate(status):
                rows.append(
                    Row(
                        site=record.site,
                        date=day,
                        status=status,
                        quantity=record.quantities.get(day),
                        campsite_id=record.campsite_id,
                    )
                )
    return sort_rows(rows, primary_sort_key)
