import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone

from adapters.base import BaseAdapter

from .config import RunConfig
from .dates import months_to_query, normalize_dates
from .detail import DetailFetcher, DetailPolicy, select_detail_ids
from .merge import collect_monthly_results, merge_or_raise, submit_monthly_fetches
from .models import AggregationResult, FacilityDetails, RunContext
from .projection import available_predicate, filtered_sites_predicate, project_rows
from .resolver import IdentifierResolver, gather, submit_rec_area_fetches
from .summary import full_calendar_counts, summarize

logger = logging.getLogger(__name__)


def aggregate_availability(
    config: RunConfig,
    adapter: BaseAdapter,
    today: date | None = None,
    ctx: RunContext | None = None,
) -> AggregationResult:
    """
    Fetch, merge, filter and summarize availability for one campground.

    Month fetches start first and run while the campground identifiers are
    resolved; facility details, the search summary and rec area data follow
    in the same thread pool. Individual upstream failures only show up as
    None fields and call log entries.

    Raises:
        TotalDataUnavailable: every month fetch failed and nothing merged.
    """
    ctx = ctx or RunContext()
    ctx.mark("start")
    behavior = config.behavior

    window, anchor = normalize_dates(
        config.dates.filter_start,
        config.dates.filter_end,
        config.dates.duration_days,
        config.dates.start_month,
        today=today,
        ctx=ctx,
    )
    months = months_to_query(window, anchor)
    ctx.months_to_fetch = months
    ctx.mark("config_prepared")
    logger.info(
        "Checking campground %s from %s to %s (%d month(s))",
        config.campground_id, window.start, window.end, len(months),
    )

    requested_at = datetime.now(timezone.utc)
    wants_rec_area = behavior.fetch_events or behavior.fetch_media
    resolver = IdentifierResolver(adapter, ctx)

    with ThreadPoolExecutor(max_workers=config.http.max_workers) as executor:
        ctx.mark("fetch_start")
        month_futures = submit_monthly_fetches(adapter, config.campground_id, months, ctx, executor)
        search_future = executor.submit(adapter.fetch_search_summary, config.campground_id, ctx)

        bundle, metadata = resolver.resolve(config.campground_id)

        facility_future = executor.submit(adapter.fetch_facility_details, bundle.facility_id, ctx)
        rec_area_futures = {}
        if bundle.has_rec_area:
            rec_area_futures = submit_rec_area_fetches(
                adapter, bundle.rec_area_id, ctx, executor,
                events=behavior.fetch_events, media=behavior.fetch_media,
            )

        monthly = collect_monthly_results(months, month_futures)
        facility = FacilityDetails.from_json(facility_future.result())
        search_summary = search_future.result()
        rec_area = gather(rec_area_futures)

        resolver.correct_facility_id(bundle, facility)
        if wants_rec_area and resolver.second_chance(bundle, facility):
            rec_area = gather(
                submit_rec_area_fetches(
                    adapter, bundle.rec_area_id, ctx, executor,
                    events=behavior.fetch_events, media=behavior.fetch_media,
                )
            )
        ctx.mark("fetch_complete")

        calendar = merge_or_raise(monthly, months)

        rows = project_rows(
            calendar, window, config.sites,
            filtered_sites_predicate(behavior.show_all_statuses),
            config.primary_sort_key,
        )
        available_rows = project_rows(
            calendar, window,
            predicate=available_predicate(behavior.include_not_reservable),
            primary_sort_key=config.primary_sort_key,
        )
        summary = summarize(project_rows(calendar, window))

        policy = DetailPolicy(
            fetch_all_filtered=behavior.fetch_all_filtered,
            include_available_only=behavior.details_available_only,
        )
        selection = select_detail_ids(policy, config.sites, rows, calendar, ctx)
        details = {}
        # Without a site filter details are left for the caller to load on demand
        if config.sites and selection.campsite_ids:
            fetcher = DetailFetcher(adapter, ctx)
            details = fetcher.fetch_many(bundle.facility_id, selection.campsite_ids, executor)

    ctx.mark("end")
    return AggregationResult(
        calendar=calendar,
        identifiers=bundle,
        window=window,
        anchor_month=anchor,
        rows=rows,
        available_rows=available_rows,
        summary=summary,
        full_summary=full_calendar_counts(calendar),
        detail_selection=selection,
        details=details,
        context=ctx,
        requested_at=requested_at,
        campground_metadata=metadata,
        facility_details=facility,
        rec_area_details=rec_area.get("details"),
        rec_area_events=rec_area.get("events"),
        rec_area_media=rec_area.get("media"),
        search_summary=search_summary,
        events_requested=behavior.fetch_events,
    )
