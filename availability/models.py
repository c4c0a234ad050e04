import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum


class AggregationError(Exception):
    """Base class for errors raised by the availability engine."""


class TotalDataUnavailable(AggregationError):
    """Every monthly availability fetch failed and nothing could be merged."""


class ConfigError(AggregationError):
    pass


class InvalidTransition(AggregationError):
    pass


# ── Availability statuses ──────────────────────────────────────────────────────

class AvailabilityStatus(Enum):
    AVAILABLE = "Available"
    RESERVED = "Reserved"
    CLOSED = "Closed"
    OPEN = "Open"
    NOT_YET_RELEASED = "NYR"
    NOT_RESERVABLE = "Not Reservable"
    NOT_AVAILABLE_CUTOFF = "Not Available Cutoff"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw) -> "AvailabilityStatus":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN

    @property
    def label(self) -> str:
        return _STATUS_LABELS.get(self, self.value)


_STATUS_LABELS = {
    AvailabilityStatus.NOT_RESERVABLE: "Walk-up (FCFS)",
    AvailabilityStatus.OPEN: "Extend Only",
    AvailabilityStatus.NOT_AVAILABLE_CUTOFF: "Cutoff (Walk-up)",
    AvailabilityStatus.NOT_YET_RELEASED: "Not Yet Released",
}


def parse_upstream_date(raw: str) -> date | None:
    """Upstream keys look like "2025-07-05T00:00:00Z"; only the UTC calendar day matters."""
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        return None


# ── Core records ───────────────────────────────────────────────────────────────

@dataclass
class CampsiteRecord:
    campsite_id: str
    site: str
    loop: str | None = None
    availabilities: dict[date, AvailabilityStatus] = field(default_factory=dict)
    quantities: dict[date, int] = field(default_factory=dict)

    @classmethod
    def from_json(cls, campsite_id: str, payload: dict) -> "CampsiteRecord":
        availabilities = {}
        for raw_date, raw_status in (payload.get("availabilities") or {}).items():
            day = parse_upstream_date(raw_date)
            if day is not None:
                availabilities[day] = AvailabilityStatus.parse(raw_status)
        quantities = {}
        for raw_date, qty in (payload.get("quantities") or {}).items():
            day = parse_upstream_date(raw_date)
            if day is not None:
                quantities[day] = qty
        return cls(
            campsite_id=str(payload.get("campsite_id") or campsite_id),
            site=str(payload.get("site") or f"Site {campsite_id}"),
            loop=payload.get("loop"),
            availabilities=availabilities,
            quantities=quantities,
        )


@dataclass(frozen=True)
class DateWindow:
    start: date | None = None
    end: date | None = None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None


@dataclass(frozen=True)
class Row:
    site: str
    date: date
    status: AvailabilityStatus
    quantity: int | None
    campsite_id: str


# ── Identifier resolution ──────────────────────────────────────────────────────

class ResolutionStatus(Enum):
    UNRESOLVED = "UNRESOLVED"
    ID_FOUND = "ID_FOUND"
    INCOMPLETE_DATA = "INCOMPLETE_DATA"
    FETCH_FAILED = "FETCH_FAILED"


_ALLOWED_TRANSITIONS = {
    ResolutionStatus.UNRESOLVED: {
        ResolutionStatus.ID_FOUND,
        ResolutionStatus.INCOMPLETE_DATA,
        ResolutionStatus.FETCH_FAILED,
    },
    ResolutionStatus.INCOMPLETE_DATA: {ResolutionStatus.ID_FOUND},
    ResolutionStatus.FETCH_FAILED: {ResolutionStatus.ID_FOUND},
    ResolutionStatus.ID_FOUND: set(),
}


@dataclass
class IdentifierBundle:
    """IDs that link the public campground to RIDB facility and rec area records.

    resolution_status only moves along the edges in _ALLOWED_TRANSITIONS:
    UNRESOLVED -> ID_FOUND | INCOMPLETE_DATA | FETCH_FAILED, and a degraded
    bundle may later be upgraded once to ID_FOUND.
    """

    campground_id: str
    facility_id: str
    rec_area_id: str | None = None
    resolution_status: ResolutionStatus = ResolutionStatus.UNRESOLVED
    upgraded: bool = False

    def transition(self, new_status: ResolutionStatus):
        if new_status not in _ALLOWED_TRANSITIONS[self.resolution_status]:
            raise InvalidTransition(
                f"cannot move from {self.resolution_status.value} to {new_status.value}"
            )
        self.resolution_status = new_status

    def found(self, facility_id: str, rec_area_id: str):
        self.facility_id = facility_id
        self.rec_area_id = rec_area_id
        self.transition(ResolutionStatus.ID_FOUND)

    def incomplete(self, facility_id: str):
        self.facility_id = facility_id
        self.rec_area_id = None
        self.transition(ResolutionStatus.INCOMPLETE_DATA)

    def failed(self):
        self.facility_id = self.campground_id
        self.rec_area_id = None
        self.transition(ResolutionStatus.FETCH_FAILED)

    def upgrade(self, rec_area_id: str):
        self.rec_area_id = rec_area_id
        self.transition(ResolutionStatus.ID_FOUND)
        self.upgraded = True

    @property
    def has_rec_area(self) -> bool:
        return self.rec_area_id is not None


# ── Upstream payloads ──────────────────────────────────────────────────────────
# One type per source. from_json returns None when the payload lacks the
# fields that identify it, so callers never probe raw dicts.

def _clean_id(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class CampgroundMetadata:
    facility_id: str | None
    parent_rec_area_id: str | None
    name: str | None
    raw: dict

    @classmethod
    def from_json(cls, payload) -> "CampgroundMetadata | None":
        if not isinstance(payload, dict) or not isinstance(payload.get("campground"), dict):
            return None
        campground = payload["campground"]
        return cls(
            facility_id=_clean_id(campground.get("facility_id")),
            parent_rec_area_id=_clean_id(campground.get("parent_rec_area_id")),
            name=campground.get("facility_name") or campground.get("name"),
            raw=campground,
        )


@dataclass
class MonthlyAvailability:
    month: str
    campsites: dict[str, CampsiteRecord]

    @classmethod
    def from_json(cls, month: str, payload) -> "MonthlyAvailability | None":
        if not isinstance(payload, dict) or not isinstance(payload.get("campsites"), dict):
            return None
        campsites = {
            str(cid): CampsiteRecord.from_json(str(cid), data)
            for cid, data in payload["campsites"].items()
            if isinstance(data, dict)
        }
        return cls(month=month, campsites=campsites)


@dataclass
class FacilityDetails:
    facility_id: str | None
    parent_rec_area_id: str | None
    rec_area_ids: list[str]
    raw: dict

    @classmethod
    def from_json(cls, payload) -> "FacilityDetails | None":
        if not isinstance(payload, dict):
            return None
        rec_areas = payload.get("RECAREA") or []
        rec_area_ids = [
            str(area["RecAreaID"])
            for area in rec_areas
            if isinstance(area, dict) and _clean_id(area.get("RecAreaID"))
        ]
        return cls(
            facility_id=_clean_id(payload.get("FacilityID")),
            parent_rec_area_id=_clean_id(payload.get("ParentRecAreaID")),
            rec_area_ids=rec_area_ids,
            raw=payload,
        )

    @property
    def fallback_rec_area_id(self) -> str | None:
        if self.parent_rec_area_id:
            return self.parent_rec_area_id
        return self.rec_area_ids[0] if self.rec_area_ids else None


# ── Run context ────────────────────────────────────────────────────────────────

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CallLogEntry:
    context: str
    url: str
    status: int | str | None = None
    error: str | None = None
    timestamp: str = field(default_factory=utc_now_iso)

    @property
    def ok(self) -> bool:
        return self.status == 200


@dataclass
class RunContext:
    """Everything one run records about itself: call log, timestamps, notes, errors."""

    call_log: list[CallLogEntry] = field(default_factory=list)
    timestamps: dict[str, str] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)
    months_to_fetch: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_call(self, entry: CallLogEntry):
        with self._lock:
            self.call_log.append(entry)

    def record_error(self, context: str, message: str):
        with self._lock:
            self.errors.append({"context": context, "message": message, "timestamp": utc_now_iso()})

    def note(self, message: str):
        with self._lock:
            self.notes.append(message)

    def mark(self, name: str):
        self.timestamps[name] = utc_now_iso()

    def api_summary(self) -> dict:
        return api_summary(self.call_log)


def api_summary(call_log: list[CallLogEntry]) -> dict:
    failures = [
        {
            "context": call.context,
            "status": call.status,
            "error": call.error or "No error message provided.",
        }
        for call in call_log
        if not call.ok
    ]
    return {
        "total_calls": len(call_log),
        "successful_calls": len(call_log) - len(failures),
        "failed_calls": len(failures),
        "failures": failures,
    }


# ── Results ────────────────────────────────────────────────────────────────────

@dataclass
class DetailSelection:
    campsite_ids: list[str] = field(default_factory=list)
    capped: bool = False
    total_candidates: int = 0
    unresolved: list[str] = field(default_factory=list)


@dataclass
class AvailabilitySummary:
    counts: dict[AvailabilityStatus, int] = field(default_factory=dict)
    compact: str = ""
    tooltip: str = ""

    def as_dict(self) -> dict:
        return {status.value: count for status, count in self.counts.items()}


@dataclass
class AggregationResult:
    calendar: dict[str, CampsiteRecord]
    identifiers: IdentifierBundle
    window: DateWindow
    anchor_month: str
    rows: list[Row]
    available_rows: list[Row]
    summary: AvailabilitySummary
    full_summary: dict[AvailabilityStatus, int]
    detail_selection: DetailSelection
    details: dict[str, dict]
    context: RunContext
    requested_at: datetime
    campground_metadata: CampgroundMetadata | None = None
    facility_details: FacilityDetails | None = None
    rec_area_details: dict | None = None
    rec_area_events: list | None = None
    rec_area_media: list | None = None
    search_summary: dict | None = None
    events_requested: bool = True

    @property
    def call_log(self) -> list[CallLogEntry]:
        return self.context.call_log
