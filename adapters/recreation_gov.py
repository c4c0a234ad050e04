import json
import logging

import requests

from availability.dates import month_start_param
from availability.models import CallLogEntry, RunContext

from .base import BaseAdapter

logger = logging.getLogger(__name__)

RIDB_BASE = "https://ridb.recreation.gov/api/v1"
RECGOV_BASE = "https://www.recreation.gov/api"
AVAIL_BASE = f"{RECGOV_BASE}/camps/availability/campground"
CAMPGROUND_BASE = f"{RECGOV_BASE}/camps/campgrounds"
SEARCH_URL = f"{RECGOV_BASE}/search"
DEFAULT_TIMEOUT = 20.0


class RecreationGovAdapter(BaseAdapter):
    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    # ── Transport ──────────────────────────────────────────────────────────────

    def _get_json(self, url: str, context: str, ctx: RunContext, params: dict | None = None, ridb: bool = False):
        """GET url and return the decoded JSON, or None on any HTTP/network/JSON failure.

        Appends one CallLogEntry to ctx whatever happens.
        """
        entry = CallLogEntry(context=context, url=url)
        headers = {"apikey": self.api_key} if ridb else None
        logger.debug("Fetching %s from %s", context, url)
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            entry.url = resp.url or url
            entry.status = resp.status_code
            if not resp.ok:
                entry.error = f"HTTP error! Status: {resp.status_code}"
                logger.error("HTTP error fetching %s! Status: %s", context, resp.status_code)
                return None
            return resp.json()
        except (requests.RequestException, json.JSONDecodeError, ValueError) as e:
            entry.status = "Network/JSON Error"
            entry.error = str(e)
            ctx.record_error(f"fetch: {context}", str(e))
            logger.error("Network or JSON error fetching %s: %s", context, e)
            return None
        finally:
            ctx.record_call(entry)

    def _skipped(self, context: str, ctx: RunContext) -> None:
        ctx.record_call(CallLogEntry(context=context, url="", status="Skipped", error="Missing identifier"))
        logger.warning("Skipping %s: missing identifier", context)
        return None

    # ── recreation.gov ─────────────────────────────────────────────────────────

    def fetch_campground_metadata(self, campground_id: str, ctx: RunContext) -> dict | None:
        return self._get_json(
            f"{CAMPGROUND_BASE}/{campground_id}",
            f"Campground Metadata {campground_id}",
            ctx,
        )

    def fetch_monthly_availability(self, campground_id: str, month: str, ctx: RunContext) -> dict | None:
        return self._get_json(
            f"{AVAIL_BASE}/{campground_id}/month",
            f"Availability {campground_id} {month}",
            ctx,
            params={"start_date": month_start_param(month)},
        )

    def fetch_search_summary(self, campground_id: str, ctx: RunContext) -> dict | None:
        data = self._get_json(
            SEARCH_URL,
            f"Rec.gov Search Data {campground_id}",
            ctx,
            params={"fq": f"id:{campground_id}"},
        )
        if not isinstance(data, dict):
            return None
        results = data.get("results")
        if isinstance(results, list):
            return results[0] if results else None
        return data

    # ── RIDB ───────────────────────────────────────────────────────────────────

    def fetch_facility_details(self, facility_id: str, ctx: RunContext) -> dict | None:
        if not facility_id:
            return self._skipped("Facility Details", ctx)
        data = self._get_json(
            f"{RIDB_BASE}/facilities/{facility_id}",
            f"Facility Details {facility_id}",
            ctx,
            params={"full": "true"},
            ridb=True,
        )
        return data if isinstance(data, dict) else None

    def fetch_rec_area_details(self, rec_area_id: str, ctx: RunContext) -> dict | None:
        if not rec_area_id:
            return self._skipped("Rec Area Details", ctx)
        data = self._get_json(
            f"{RIDB_BASE}/recareas/{rec_area_id}",
            f"Rec Area Details {rec_area_id}",
            ctx,
            ridb=True,
        )
        return data if isinstance(data, dict) else None

    def fetch_rec_area_events(self, rec_area_id: str, ctx: RunContext) -> list | None:
        if not rec_area_id:
            return self._skipped("Rec Area Events", ctx)
        return self._recdata(
            self._get_json(
                f"{RIDB_BASE}/recareas/{rec_area_id}/events",
                f"Rec Area Events {rec_area_id}",
                ctx,
                ridb=True,
            )
        )

    def fetch_rec_area_media(self, rec_area_id: str, ctx: RunContext) -> list | None:
        if not rec_area_id:
            return self._skipped("Rec Area Media", ctx)
        return self._recdata(
            self._get_json(
                f"{RIDB_BASE}/recareas/{rec_area_id}/media",
                f"Rec Area Media {rec_area_id}",
                ctx,
                ridb=True,
            )
        )

    def fetch_campsite_details(self, facility_id: str, campsite_id: str, ctx: RunContext) -> dict | None:
        if not facility_id or not campsite_id:
            return self._skipped(f"Campsite Details {campsite_id}", ctx)
        data = self._get_json(
            f"{RIDB_BASE}/facilities/{facility_id}/campsites/{campsite_id}",
            f"Campsite Details {campsite_id}",
            ctx,
            ridb=True,
        )
        # RIDB wraps a single campsite in a list
        if isinstance(data, list):
            return data[0] if data else None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _recdata(data) -> list | None:
        if isinstance(data, dict):
            return data.get("RECDATA") or []
        if isinstance(data, list):
            return data
        return None
