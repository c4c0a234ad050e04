import json
from pathlib import Path

import pytest

from adapters.fixture import FixtureAdapter
from adapters.recreation_gov import RecreationGovAdapter
from availability.config import DateFilters, RunConfig
from main import build_adapter, run

FIXTURE = json.loads((Path(__file__).parent.parent / "fixtures" / "sample_availability.json").read_text())

CONFIG = RunConfig(
    campground_id="232448",
    dates=DateFilters(filter_start="2025-07-01", filter_end="2025-07-10"),
    sites=["A035"],
)


@pytest.fixture(autouse=True)
def use_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "fixtures").mkdir()
    (tmp_path / "fixtures" / "sample_availability.json").write_text(json.dumps(FIXTURE))


def test_run_prints_report(capsys):
    assert run(CONFIG, FixtureAdapter(FIXTURE)) == 0
    out = capsys.readouterr().out
    assert "Campground 232448" in out
    assert "A035  07/05  Available" in out


def test_run_total_failure_exits_nonzero(capsys):
    assert run(CONFIG, FixtureAdapter({})) == 1
    assert "ERROR:" in capsys.readouterr().err


def test_run_uses_display_settings(mocker):
    mock_format = mocker.patch("main.format_report", return_value="report")
    config = RunConfig(campground_id="232448", dates=CONFIG.dates)
    config.display.timezone = "America/Denver"
    config.display.show_campsite_id = True
    run(config, FixtureAdapter(FIXTURE))
    _, timezone_str, show_campsite_id = mock_format.call_args.args
    assert (timezone_str, show_campsite_id) == ("America/Denver", True)


def test_dry_run_reads_fixture():
    adapter = build_adapter(CONFIG, dry_run=True)
    assert isinstance(adapter, FixtureAdapter)
    assert adapter.data["campground"]["facility_id"] == "232448"


def test_live_adapter_uses_api_key(monkeypatch):
    monkeypatch.setenv("RIDB_API_KEY", "secret")
    adapter = build_adapter(CONFIG, dry_run=False)
    assert isinstance(adapter, RecreationGovAdapter)
    assert adapter.api_key == "secret"
    assert adapter.timeout == CONFIG.http.timeout_seconds
