"""Resolve a public campground id into RIDB facility and recreation-area ids.

The campground metadata endpoint is tried first. When it cannot name the
parent recreation area, the facility details record gets a second chance:
it carries either ParentRecAreaID or a nested RECAREA list.
"""

import logging
from concurrent.futures import Executor, Future

from adapters.base import BaseAdapter

from .models import (
    CampgroundMetadata,
    FacilityDetails,
    IdentifierBundle,
    ResolutionStatus,
    RunContext,
)

logger = logging.getLogger(__name__)


class IdentifierResolver:
    def __init__(self, adapter: BaseAdapter, ctx: RunContext):
        self.adapter = adapter
        self.ctx = ctx

    def resolve(self, campground_id: str) -> tuple[IdentifierBundle, CampgroundMetadata | None]:
        bundle = IdentifierBundle(campground_id=campground_id, facility_id=campground_id)
        metadata = CampgroundMetadata.from_json(
            self.adapter.fetch_campground_metadata(campground_id, self.ctx)
        )

        if metadata is None:
            bundle.failed()
            logger.warning("Campground metadata unavailable for %s; using it as the facility id", campground_id)
        elif metadata.parent_rec_area_id:
            bundle.found(metadata.facility_id or campground_id, metadata.parent_rec_area_id)
        else:
            bundle.incomplete(metadata.facility_id or campground_id)
            logger.info("Metadata for %s has no parent rec area id", campground_id)

        self.ctx.note(f"Identifier resolution: {bundle.resolution_status.value}")
        return bundle, metadata

    def correct_facility_id(self, bundle: IdentifierBundle, facility: FacilityDetails | None):
        """Facility details are the authoritative source of FacilityID."""
        if facility is None or not facility.facility_id:
            return
        if facility.facility_id != bundle.facility_id:
            logger.warning(
                "Correcting facility id: metadata gave %s, facility details gave %s",
                bundle.facility_id, facility.facility_id,
            )
            self.ctx.note(f"Facility id corrected from {bundle.facility_id} to {facility.facility_id}")
            bundle.facility_id = facility.facility_id

    def second_chance(self, bundle: IdentifierBundle, facility: FacilityDetails | None) -> bool:
        """Upgrade a degraded bundle from facility details. Returns True if upgraded."""
        if bundle.resolution_status is ResolutionStatus.ID_FOUND or facility is None:
            return False
        rec_area_id = facility.fallback_rec_area_id
        if not rec_area_id:
            return False
        logger.info("Metadata did not provide a rec area id; found fallback %s in facility details", rec_area_id)
        bundle.upgrade(rec_area_id)
        self.ctx.note(f"Rec area id {rec_area_id} recovered from facility details")
        return True


def submit_rec_area_fetches(
    adapter: BaseAdapter,
    rec_area_id: str,
    ctx: RunContext,
    executor: Executor,
    events: bool = True,
    media: bool = True,
) -> dict[str, Future]:
    """Submit details, events and media fetches for one rec area without waiting."""
    futures = {"details": executor.submit(adapter.fetch_rec_area_details, rec_area_id, ctx)}
    if events:
        futures["events"] = executor.submit(adapter.fetch_rec_area_events, rec_area_id, ctx)
    if media:
        futures["media"] = executor.submit(adapter.fetch_rec_area_media, rec_area_id, ctx)
    return futures


def gather(futures: dict[str, Future]) -> dict:
    return {name: future.result() for name, future in futures.items()}
