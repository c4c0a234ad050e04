"""Load a run configuration from YAML."""

import os
from dataclasses import MISSING, dataclass, field, fields, replace
from datetime import date

import pytz
import yaml

from .models import ConfigError
from .projection import sanitize_site_filter

SORT_KEYS = ("site", "date")


@dataclass
class DateFilters:
    start_month: str = ""
    filter_start: str = ""
    filter_end: str = ""
    duration_days: int | None = 30


@dataclass
class Behavior:
    # Count Not Reservable (walk-up) dates as available in the main listing
    include_not_reservable: bool = False
    # Filtered-site rows keep every status instead of Available / Walk-up / Open only
    show_all_statuses: bool = False
    # Fetch campsite details for every filtered site, whatever its status
    fetch_all_filtered: bool = True
    details_available_only: bool = False
    fetch_events: bool = True
    fetch_media: bool = True


@dataclass
class Display:
    timezone: str = "UTC"
    show_campsite_id: bool = False

    def __post_init__(self):
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise ConfigError(f"Unknown timezone in display.timezone: {self.timezone!r}")


@dataclass
class HttpSettings:
    timeout_seconds: float = 20.0
    max_workers: int = 8

    def __post_init__(self):
        if self.timeout_seconds <= 0 or self.max_workers < 1:
            raise ConfigError("http.timeout_seconds and http.max_workers must be positive")


@dataclass
class RunConfig:
    campground_id: str
    dates: DateFilters = field(default_factory=DateFilters)
    sites: list[str] = field(default_factory=list)
    primary_sort_key: str = "date"
    behavior: Behavior = field(default_factory=Behavior)
    display: Display = field(default_factory=Display)
    http: HttpSettings = field(default_factory=HttpSettings)

    def __post_init__(self):
        self.campground_id = str(self.campground_id or "").strip()
        if not self.campground_id:
            raise ConfigError("campground_id is required")
        if self.primary_sort_key not in SORT_KEYS:
            raise ConfigError(f"sorting.primary must be one of {SORT_KEYS}, got {self.primary_sort_key!r}")
        self.sites = sanitize_site_filter(self.sites)


def _type_ok(value, default) -> bool:
    # bool is an int subclass, so it only matches bool defaults
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(default, bool) and isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float))
    return isinstance(value, type(default))


def _mapping(raw, name: str) -> dict:
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return raw


def _section(cls, raw, name: str, nullable: tuple = ()):
    raw = _mapping(raw, name)
    defaults = {f.name: f.default for f in fields(cls) if f.default is not MISSING}
    unknown = set(raw) - set(defaults)
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}': {', '.join(sorted(unknown))}")
    for key, value in raw.items():
        if value is None and key in nullable:
            continue
        if not _type_ok(value, defaults[key]):
            raise ConfigError(
                f"{name}.{key} must be {type(defaults[key]).__name__}, got {type(value).__name__}: {value!r}"
            )
    return cls(**raw)


def config_from_dict(raw: dict) -> RunConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Config must be a mapping")
    # YAML turns unquoted YYYY-MM-DD into a date
    raw_dates = {
        key: value.isoformat() if isinstance(value, date) else value
        for key, value in _mapping(raw.get("dates"), "dates").items()
    }
    dates = _section(DateFilters, raw_dates, "dates", nullable=tuple(raw_dates))
    for attr in ("start_month", "filter_start", "filter_end"):
        if getattr(dates, attr) is None:
            setattr(dates, attr, "")

    sites = raw.get("sites") or []
    if not isinstance(sites, (list, str)):
        raise ConfigError(f"sites must be a list or a comma separated string, got {sites!r}")
    primary = _mapping(raw.get("sorting"), "sorting").get("primary", "date")

    return RunConfig(
        campground_id=raw.get("campground_id", ""),
        dates=dates,
        sites=sites,
        primary_sort_key=primary,
        behavior=_section(Behavior, raw.get("behavior"), "behavior"),
        display=_section(Display, raw.get("display"), "display"),
        http=_section(HttpSettings, raw.get("http"), "http"),
    )


def load_config(path: str = "config.yaml") -> RunConfig:
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")
    return config_from_dict(raw)


def with_overrides(config: RunConfig, **overrides) -> RunConfig:
    """Apply CLI overrides; None values leave the config untouched."""
    dates = config.dates
    if overrides.get("start") is not None:
        dates = replace(dates, filter_start=overrides["start"])
    if overrides.get("end") is not None:
        dates = replace(dates, filter_end=overrides["end"])
    return replace(
        config,
        campground_id=overrides.get("campground_id") or config.campground_id,
        dates=dates,
        sites=overrides["sites"] if overrides.get("sites") is not None else config.sites,
        primary_sort_key=overrides.get("sort") or config.primary_sort_key,
    )


def load_api_key() -> str:
    return os.environ.get("RIDB_API_KEY", "")
