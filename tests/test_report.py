import copy
import json
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from adapters.fixture import FixtureAdapter
from availability.config import Behavior, DateFilters, RunConfig
from availability.engine import aggregate_availability
from availability.models import CallLogEntry, ResolutionStatus
from report import api_badge, events_section, format_report, format_timestamp

FIXTURE = json.loads((Path(__file__).parent.parent / "fixtures" / "sample_availability.json").read_text())


@pytest.fixture
def result():
    config = RunConfig(
        campground_id="232448",
        dates=DateFilters(filter_start="2025-07-01", filter_end="2025-07-10"),
        sites=["A035", "A040"],
    )
    return aggregate_availability(config, FixtureAdapter(copy.deepcopy(FIXTURE)), today=date(2025, 6, 15))


def test_format_timestamp_converts_timezone():
    moment = datetime(2025, 7, 1, 19, 0, tzinfo=timezone.utc)
    assert format_timestamp(moment, "America/Los_Angeles") == "2025-07-01 12:00:00 PDT"
    assert format_timestamp(datetime(2025, 7, 1, 19, 0)) == "2025-07-01 19:00:00 UTC"


def test_api_badge():
    assert api_badge([]) == ""
    assert api_badge([CallLogEntry("a", "u", 200)]) == "API: OK"
    assert api_badge([CallLogEntry("a", "u", 200), CallLogEntry("b", "u", 500)]) == "API: 1 Failed"


def test_report_contents(result):
    text = format_report(result)
    assert "Campground 232448 - TUOLUMNE MEADOWS" in text
    assert "Showing availability from 07-01-2025 to 07-10-2025." in text
    assert "API: OK" in text
    assert "  Reserved: 2" in text
    assert "  A035 | ✅1 | 🚶1" in text
    assert "  A040  07/06  Extend Only" in text
    assert "No upcoming events found for this area." in text


def test_report_campsite_ids(result):
    assert "A035  07/05  Available  1001" in format_report(result, show_campsite_id=True)


def test_report_without_rec_area(result):
    result.identifiers.resolution_status = ResolutionStatus.INCOMPLETE_DATA
    assert "could not be automatically identified" in format_report(result)


def test_events_not_requested_is_not_a_failure():
    config = RunConfig(
        campground_id="232448",
        dates=DateFilters(filter_start="2025-07-01", filter_end="2025-07-10"),
        behavior=Behavior(fetch_events=False),
    )
    result = aggregate_availability(config, FixtureAdapter(copy.deepcopy(FIXTURE)), today=date(2025, 6, 15))
    assert result.events_requested is False
    assert events_section(result) == ["Events were not requested for this run."]
    assert "API call for events failed" not in format_report(result)


def test_failed_events_call_is_reported(result):
    result.rec_area_events = None
    assert events_section(result) == ["Could not retrieve event information. The API call for events failed."]
