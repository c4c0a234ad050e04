import argparse
import logging
import sys

from adapters.fixture import FixtureAdapter
from adapters.recreation_gov import RecreationGovAdapter
from availability.config import RunConfig, load_api_key, load_config, with_overrides
from availability.engine import aggregate_availability
from availability.models import AggregationError, TotalDataUnavailable
from report import format_report

logger = logging.getLogger("campsite_availability")

FIXTURE_FILE = "fixtures/sample_availability.json"


def run(config: RunConfig, adapter) -> int:
    """
    Core logic. Returns the process exit code.
    Separated from __main__ to allow unit testing without env vars or real files.
    """
    try:
        result = aggregate_availability(config, adapter)
    except TotalDataUnavailable as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(format_report(result, config.display.timezone, config.display.show_campsite_id))
    for note in result.context.notes:
        logger.info(note)
    return 0


def build_adapter(config: RunConfig, dry_run: bool):
    if dry_run:
        return FixtureAdapter.from_file(FIXTURE_FILE)
    api_key = load_api_key()
    if not api_key:
        logger.warning("RIDB_API_KEY is not set; RIDB requests will fail")
    return RecreationGovAdapter(api_key=api_key, timeout=config.http.timeout_seconds)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Campsite availability checker")
    parser.add_argument("--config", default="config.yaml", help="Path to the YAML run configuration")
    parser.add_argument("--campground", help="Override campground_id")
    parser.add_argument("--start", help="Filter start date (YYYY-MM-DD)")
    parser.add_argument("--end", help="Filter end date (YYYY-MM-DD)")
    parser.add_argument("--sites", help="Comma separated site names, e.g. A035,A040")
    parser.add_argument("--sort", choices=["site", "date"], help="Primary sort key")
    parser.add_argument("--dry-run", action="store_true", help="Serve upstream responses from the fixture file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        cfg = with_overrides(
            load_config(args.config),
            campground_id=args.campground,
            start=args.start,
            end=args.end,
            sites=args.sites,
            sort=args.sort,
        )
    except AggregationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    sys.exit(run(cfg, build_adapter(cfg, args.dry_run)))
