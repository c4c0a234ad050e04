from datetime import datetime

import pytz

from availability.dates import date_range_text
from availability.models import AggregationResult, ResolutionStatus, api_summary
from availability.projection import natural_key
from availability.summary import SUMMARY_DISPLAY_ORDER, per_site_summaries

EVENT_STATUS_MESSAGES = {
    ResolutionStatus.INCOMPLETE_DATA: (
        "Could not check for events. The parent Recreation Area could not be automatically identified."
    ),
    ResolutionStatus.FETCH_FAILED: (
        "Could not check for events. The initial metadata request to identify the Recreation Area failed."
    ),
}


def format_timestamp(moment: datetime, timezone_str: str = "UTC") -> str:
    """Render an aware UTC datetime in the given timezone."""
    tz = pytz.timezone(timezone_str)
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S %Z")


def format_counts(counts: dict) -> list[str]:
    return [
        f"{status.label}: {counts[status]}"
        for status in SUMMARY_DISPLAY_ORDER
        if counts.get(status)
    ]


def api_badge(call_log) -> str:
    summary = api_summary(call_log)
    if summary["total_calls"] == 0:
        return ""
    if summary["failed_calls"]:
        return f"API: {summary['failed_calls']} Failed"
    return "API: OK"


def events_section(result: AggregationResult) -> list[str]:
    if not result.events_requested:
        return ["Events were not requested for this run."]
    status = result.identifiers.resolution_status
    if status in EVENT_STATUS_MESSAGES:
        return [EVENT_STATUS_MESSAGES[status]]
    if result.rec_area_events is None:
        return ["Could not retrieve event information. The API call for events failed."]
    if not result.rec_area_events:
        return ["No upcoming events found for this area."]
    return [f"• {event.get('EventName', 'Unnamed event')}" for event in result.rec_area_events]


def format_report(result: AggregationResult, timezone_str: str = "UTC", show_campsite_id: bool = False) -> str:
    name = result.campground_metadata.name if result.campground_metadata else None
    lines = [
        f"Campground {result.identifiers.campground_id}" + (f" - {name}" if name else ""),
        date_range_text(result.window, result.anchor_month),
        f"Requested at {format_timestamp(result.requested_at, timezone_str)}",
    ]
    badge = api_badge(result.call_log)
    if badge:
        lines.append(badge)

    lines.append("")
    lines.append("Overall Availability Counts")
    counts = format_counts(result.summary.counts)
    if counts:
        lines.extend(f"  {line}" for line in counts)
    else:
        lines.append("  No availability data to summarize for the selected period.")

    lines.append("")
    lines.append("Filtered Sites")
    site_summaries = per_site_summaries(result.rows)
    for site in sorted(site_summaries, key=natural_key):
        compact = site_summaries[site].compact
        lines.append(f"  {site}" + (f" | {compact}" if compact else ""))

    lines.append("")
    for row in result.rows:
        cells = [row.site, row.date.strftime("%m/%d"), row.status.label]
        if show_campsite_id:
            cells.append(row.campsite_id)
        lines.append("  " + "  ".join(cells))
    if not result.rows:
        lines.append("  No matching dates.")

    selection = result.detail_selection
    if selection.capped:
        lines.append("")
        lines.append(
            f"Note: details are shown for the first {len(selection.campsite_ids)} "
            f"of {selection.total_candidates} matching sites."
        )

    lines.append("")
    lines.append("Upcoming Events")
    lines.extend(f"  {line}" for line in events_section(result))
    return "\n".join(lines)
