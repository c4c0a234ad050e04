from concurrent.futures import ThreadPoolExecutor
from datetime import date
from unittest.mock import MagicMock

from availability.detail import DetailFetcher, DetailPolicy, select_detail_ids, site_number
from availability.models import AvailabilityStatus, CampsiteRecord, Row, RunContext

A = AvailabilityStatus


def calendar_of(*sites):
    return {f"id-{site}": CampsiteRecord(f"id-{site}", site) for site in sites}


def row(site, status):
    return Row(site, date(2025, 7, 1), status, None, f"id-{site}")


def test_site_number():
    assert site_number("A035") == 35
    assert site_number("Loop 2 Site 14") == 2
    assert site_number("WALKUP") == 0


def test_filtered_sites_missing_from_data_are_skipped():
    ctx = RunContext()
    policy = DetailPolicy(fetch_all_filtered=True)
    selection = select_detail_ids(policy, ["A1", "A2"], [], calendar_of("A1", "B7"), ctx)
    assert selection.campsite_ids == ["id-A1"]
    assert selection.unresolved == ["A2"]
    assert any("A2" in note for note in ctx.notes)


def test_filtered_sites_ignore_status():
    policy = DetailPolicy(fetch_all_filtered=True)
    selection = select_detail_ids(policy, ["007"], [], calendar_of("7"))
    assert selection.campsite_ids == ["id-7"]


def test_selection_from_rows_by_status():
    rows = [row("3", A.RESERVED), row("2", A.NOT_RESERVABLE), row("1", A.AVAILABLE), row("4", A.OPEN)]
    calendar = calendar_of("1", "2", "3", "4")
    assert select_detail_ids(DetailPolicy(), [], rows, calendar).campsite_ids == ["id-1", "id-2", "id-4"]
    only_available = DetailPolicy(include_available_only=True)
    assert select_detail_ids(only_available, [], rows, calendar).campsite_ids == ["id-1"]


def test_selection_is_sorted_and_capped():
    sites = [str(n) for n in range(60, 0, -1)]
    rows = [row(site, A.AVAILABLE) for site in sites]
    ctx = RunContext()
    selection = select_detail_ids(DetailPolicy(), [], rows, calendar_of(*sites), ctx)
    assert len(selection.campsite_ids) == 50
    assert selection.campsite_ids[0] == "id-1"
    assert selection.campsite_ids[-1] == "id-50"
    assert selection.capped is True
    assert selection.total_candidates == 60
    assert ctx.notes


def test_fetcher_deduplicates_within_run():
    adapter = MagicMock()
    adapter.fetch_campsite_details.side_effect = lambda facility, cid, ctx: {"CampsiteID": cid}
    fetcher = DetailFetcher(adapter, RunContext())
    with ThreadPoolExecutor(max_workers=2) as executor:
        first = fetcher.fetch_many("F1", ["1", "2", "1"], executor)
        second = fetcher.fetch_many("F1", ["2", "3"], executor)
    assert first == {"1": {"CampsiteID": "1"}, "2": {"CampsiteID": "2"}}
    assert set(second) == {"2", "3"}
    assert adapter.fetch_campsite_details.call_count == 3
    assert fetcher.fetch("F1", "3") == {"CampsiteID": "3"}
    assert adapter.fetch_campsite_details.call_count == 3


def test_fetcher_drops_failed_details():
    adapter = MagicMock()
    adapter.fetch_campsite_details.return_value = None
    fetcher = DetailFetcher(adapter, RunContext())
    with ThreadPoolExecutor(max_workers=1) as executor:
        assert fetcher.fetch_many("F1", ["1"], executor) == {}
