import logging
from concurrent.futures import Executor, Future

from adapters.base import BaseAdapter

from .models import CampsiteRecord, MonthlyAvailability, RunContext, TotalDataUnavailable

logger = logging.getLogger(__name__)


def submit_monthly_fetches(
    adapter: BaseAdapter,
    campground_id: str,
    months: list[str],
    ctx: RunContext,
    executor: Executor,
) -> list[Future]:
    """Submit one availability fetch per month without waiting, so callers can batch
    other upstream calls alongside them."""
    return [
        executor.submit(adapter.fetch_monthly_availability, campground_id, month, ctx)
        for month in months
    ]


def collect_monthly_results(months: list[str], futures: list[Future]) -> list[MonthlyAvailability | None]:
    results = []
    for month, future in zip(months, futures):
        monthly = MonthlyAvailability.from_json(month, future.result())
        if monthly is None or not monthly.campsites:
            logger.error("Failed to fetch availability for month starting %s", month)
        results.append(monthly)
    return results


def fetch_monthly_availability(
    adapter: BaseAdapter,
    campground_id: str,
    months: list[str],
    ctx: RunContext,
    executor: Executor,
) -> list[MonthlyAvailability | None]:
    futures = submit_monthly_fetches(adapter, campground_id, months, ctx, executor)
    return collect_monthly_results(months, futures)


def merge_months(
    results: list[MonthlyAvailability | None],
    months: list[str] | None = None,
) -> dict[str, CampsiteRecord]:
    """Union the per-month grids into one record per campsite.

    Dates that fall outside every requested month are dropped. If two months
    ever report the same date the one merged later wins.
    """
    if months is None:
        months = [monthly.month for monthly in results if monthly is not None]
    requested = {token[:7] for token in months}
    calendar: dict[str, CampsiteRecord] = {}
    for monthly in results:
        if monthly is None:
            continue
        for campsite_id, record in monthly.campsites.items():
            merged = calendar.get(campsite_id)
            if merged is None:
                merged = CampsiteRecord(campsite_id=record.campsite_id, site=record.site, loop=record.loop)
                calendar[campsite_id] = merged
            for day, status in record.availabilities.items():
                if day.isoformat()[:7] in requested:
                    merged.availabilities[day] = status
            for day, qty in record.quantities.items():
                if day.isoformat()[:7] in requested:
                    merged.quantities[day] = qty
    return calendar


def merge_or_raise(results: list[MonthlyAvailability | None], months: list[str]) -> dict[str, CampsiteRecord]:
    calendar = merge_months(results, months)
    if not calendar and not any(monthly and monthly.campsites for monthly in results):
        raise TotalDataUnavailable(
            f"All availability fetches failed or returned no data for months: {', '.join(months)}"
        )
    return calendar
