import logging
import re
from concurrent.futures import Executor
from dataclasses import dataclass

from adapters.base import BaseAdapter

from .models import AvailabilityStatus, CampsiteRecord, DetailSelection, Row, RunContext
from .projection import WALK_UP_STATUSES, normalize_site_name

logger = logging.getLogger(__name__)

MAX_DETAILS_TO_FETCH = 50

_FIRST_NUMBER = re.compile(r"\d+")


@dataclass
class DetailPolicy:
    fetch_all_filtered: bool = False
    include_available_only: bool = False


def site_number(name) -> int:
    match = _FIRST_NUMBER.search(str(name or ""))
    return int(match.group()) if match else 0


def select_detail_ids(
    policy: DetailPolicy,
    site_filter: list[str],
    rows: list[Row],
    calendar: dict[str, CampsiteRecord],
    ctx: RunContext | None = None,
    cap: int = MAX_DETAILS_TO_FETCH,
) -> DetailSelection:
    """Pick the campsite ids worth a campsite-details fetch.

    With fetch_all_filtered and a site filter, every requested site is taken
    regardless of status; otherwise a site qualifies through its rows
    (Available, or Not Reservable / Open unless include_available_only).
    The result is ordered by site number and cut to cap.
    """
    selected: dict[str, None] = {}
    unresolved = []

    if policy.fetch_all_filtered and site_filter:
        by_name = {normalize_site_name(record.site): record.campsite_id for record in calendar.values()}
        for name in site_filter:
            campsite_id = by_name.get(normalize_site_name(name))
            if campsite_id is None:
                unresolved.append(name)
                logger.warning(
                    "Site %r (normalized %r) from the filter list is not in the availability data; skipping details",
                    name, normalize_site_name(name),
                )
                if ctx is not None:
                    ctx.note(f"Site {name} not found in availability data")
                continue
            selected[campsite_id] = None
    else:
        for row in rows:
            if row.status is AvailabilityStatus.AVAILABLE:
                selected[row.campsite_id] = None
            elif not policy.include_available_only and row.status in WALK_UP_STATUSES:
                selected[row.campsite_id] = None

    numbers = {record.campsite_id: site_number(record.site) for record in calendar.values()}
    ordered = sorted(selected, key=lambda cid: numbers.get(cid, 0))

    capped = len(ordered) > cap
    if capped:
        logger.warning("Capping site detail fetches from %d to %d", len(ordered), cap)
        if ctx is not None:
            ctx.note(f"Details limited to the first {cap} of {len(ordered)} matching sites")

    return DetailSelection(
        campsite_ids=ordered[:cap],
        capped=capped,
        total_candidates=len(ordered),
        unresolved=unresolved,
    )


class DetailFetcher:
    """Fetches campsite details at most once per campsite id for the life of one run."""

    def __init__(self, adapter: BaseAdapter, ctx: RunContext):
        self.adapter = adapter
        self.ctx = ctx
        self.cache: dict[str, dict | None] = {}

    def fetch(self, facility_id: str, campsite_id: str) -> dict | None:
        if campsite_id not in self.cache:
            self.cache[campsite_id] = self.adapter.fetch_campsite_details(facility_id, campsite_id, self.ctx)
        return self.cache[campsite_id]

    def fetch_many(self, facility_id: str, campsite_ids: list[str], executor: Executor) -> dict[str, dict]:
        pending = [cid for cid in dict.fromkeys(campsite_ids) if cid not in self.cache]
        for future in [executor.submit(self.fetch, facility_id, cid) for cid in pending]:
            future.result()
        return {cid: self.cache[cid] for cid in campsite_ids if self.cache.get(cid) is not None}
