import json
import logging

from availability.models import CallLogEntry, RunContext

from .base import BaseAdapter

logger = logging.getLogger(__name__)


class FixtureAdapter(BaseAdapter):
    """Serves canned upstream responses from a JSON file for --dry-run.

    File layout (every key optional):
        {
          "campground": {...},
          "availability": {"YYYY-MM-01": {"campsites": {...}}},
          "facility": {...},
          "rec_area": {...},
          "events": [...],
          "media": [...],
          "campsites": {"<campsite_id>": {...}},
          "search": {...}
        }
    """

    def __init__(self, data: dict):
        self.data = data

    @classmethod
    def from_file(cls, path: str) -> "FixtureAdapter":
        with open(path) as f:
            return cls(json.load(f))

    def _serve(self, context: str, ctx: RunContext, value):
        status = 200 if value is not None else 404
        ctx.record_call(
            CallLogEntry(
                context=context,
                url=f"fixture://{context}",
                status=status,
                error=None if value is not None else "Not in fixture",
            )
        )
        return value

    def fetch_campground_metadata(self, campground_id, ctx):
        value = self.data.get("campground")
        return self._serve("Campground Metadata", ctx, {"campground": value} if value else None)

    def fetch_monthly_availability(self, campground_id, month, ctx):
        return self._serve(f"Availability {month}", ctx, self.data.get("availability", {}).get(month))

    def fetch_facility_details(self, facility_id, ctx):
        return self._serve("Facility Details", ctx, self.data.get("facility"))

    def fetch_rec_area_details(self, rec_area_id, ctx):
        return self._serve("Rec Area Details", ctx, self.data.get("rec_area"))

    def fetch_rec_area_events(self, rec_area_id, ctx):
        return self._serve("Rec Area Events", ctx, self.data.get("events"))

    def fetch_rec_area_media(self, rec_area_id, ctx):
        return self._serve("Rec Area Media", ctx, self.data.get("media"))

    def fetch_campsite_details(self, facility_id, campsite_id, ctx):
        return self._serve(f"Campsite Details {campsite_id}", ctx, self.data.get("campsites", {}).get(campsite_id))

    def fetch_search_summary(self, campground_id, ctx):
        return self._serve("Rec.gov Search Data", ctx, self.data.get("search"))
