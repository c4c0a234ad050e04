from abc import ABC, abstractmethod

from availability.models import RunContext


class BaseAdapter(ABC):
    """Upstream data sources the availability engine reads from.

    Every method returns parsed JSON (dict or list) or None on any failure,
    and records exactly one CallLogEntry on ctx per call. None of them raise.
    """

    @abstractmethod
    def fetch_campground_metadata(self, campground_id: str, ctx: RunContext) -> dict | None:
        """Campground metadata; the response carries a "campground" object with facility_id
        and, usually, parent_rec_area_id."""
        raise NotImplementedError

    @abstractmethod
    def fetch_monthly_availability(self, campground_id: str, month: str, ctx: RunContext) -> dict | None:
        """
        Availability grid for one calendar month.

        Args:
            campground_id: public recreation.gov campground id
            month: month token "YYYY-MM-01"

        Returns:
            {"campsites": {id: {"site", "loop", "availabilities", "quantities"}}} or None
        """
        raise NotImplementedError

    @abstractmethod
    def fetch_facility_details(self, facility_id: str, ctx: RunContext) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    def fetch_rec_area_details(self, rec_area_id: str, ctx: RunContext) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    def fetch_rec_area_events(self, rec_area_id: str, ctx: RunContext) -> list | None:
        raise NotImplementedError

    @abstractmethod
    def fetch_rec_area_media(self, rec_area_id: str, ctx: RunContext) -> list | None:
        raise NotImplementedError

    @abstractmethod
    def fetch_campsite_details(self, facility_id: str, campsite_id: str, ctx: RunContext) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    def fetch_search_summary(self, campground_id: str, ctx: RunContext) -> dict | None:
        """Ratings, price range and coverage summary from the recreation.gov search API."""
        raise NotImplementedError
