from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

import pandas as pd


ALL = "All"
UNRESTRICTED = "ALL"
_UNRESTRICTED_TOKENS = {"", "ALL", "TODOS"}
_ALL_TOKENS = {"", "all", "todos"}
# Selected dates and the day before must fit a pandas Timestamp.
MIN_YEAR = pd.Timestamp.min.year + 1
MAX_YEAR = pd.Timestamp.max.year - 1


@dataclass(frozen=True)
class EngineSettings:
    default_day: int = 1
    monthly_hours: float = 220.0
    factor60: float = 1.6
    factor100: float = 2.0
    trend_months: int = 3
    unclassified_label: str = "Unclassified"


@dataclass(frozen=True)
class FilterSelection:
    search_query: str = ""
    sector: str = ALL
    year: Optional[int] = None
    month: Optional[int] = None
    day: int = 1


@dataclass(frozen=True)
class Actor:
    allowed_sector: str = UNRESTRICTED


@dataclass(frozen=True)
class SortConfig:
    key: Optional[str] = None
    direction: str = "asc"


def _as_optional_int(value: object) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in _ALL_TOKENS:
        return None
    try:
        return int(float(value))
    except Exception:
        return None


def _as_dict(raw: Any) -> dict:
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if hasattr(raw, "model_dump"):
        return raw.model_dump()
    return asdict(raw)


def normalize_filters(raw: Any, settings: Optional[EngineSettings] = None) -> FilterSelection:
    settings = settings or EngineSettings()
    if isinstance(raw, FilterSelection):
        return raw
    raw = _as_dict(raw)

    search_query = str(raw.get("search_query") or "").strip()

    sector = str(raw.get("sector") or "").strip()
    if sector.lower() in _ALL_TOKENS:
        sector = ALL

    year = _as_optional_int(raw.get("year"))
    if year is not None and not MIN_YEAR <= year <= MAX_YEAR:
        year = None
    month = _as_optional_int(raw.get("month"))
    if month is not None and not 1 <= month <= 12:
        month = None

    day = _as_optional_int(raw.get("day"))
    if day is None or not 1 <= day <= 31:
        day = settings.default_day

    return FilterSelection(search_query=search_query, sector=sector, year=year, month=month, day=day)


def normalize_actor(raw: Any) -> Optional[Actor]:
    if raw is None or isinstance(raw, Actor):
        return raw
    allowed = _as_dict(raw).get("allowed_sector")
    return Actor(allowed_sector=str(allowed if allowed is not None else UNRESTRICTED).strip())


def normalize_sort(raw: Any) -> SortConfig:
    if isinstance(raw, SortConfig):
        return raw
    raw = _as_dict(raw)
    key = raw.get("key") or None
    direction = str(raw.get("direction") or "asc").lower()
    if direction not in {"asc", "desc"}:
        direction = "asc"
    return SortConfig(key=key, direction=direction)


def restricted_sector(actor: Optional[Actor]) -> Optional[str]:
    """Sector the actor is locked to, or None when the actor may see every sector."""
    if actor is None:
        return None
    allowed = (actor.allowed_sector or "").strip()
    if allowed.upper() in _UNRESTRICTED_TOKENS:
        return None
    return allowed


def effective_sector(filters: FilterSelection, actor: Optional[Actor]) -> str:
    return restricted_sector(actor) or filters.sector


def apply_filter_change(
    filters: FilterSelection,
    key: str,
    value: object,
    settings: Optional[EngineSettings] = None,
) -> FilterSelection:
    """Return a new selection with ``key`` set to ``value``.

    Picking a year resets the month to All and the day to the default day;
    picking a month resets the day. The day is never All.
    """
    settings = settings or EngineSettings()
    merged = {**asdict(filters), key: value}
    if key == "year":
        merged["month"] = None
        merged["day"] = settings.default_day
    elif key == "month":
        merged["day"] = settings.default_day
    return normalize_filters(merged, settings)


def clear_filters(actor: Optional[Actor] = None, settings: Optional[EngineSettings] = None) -> FilterSelection:
    settings = settings or EngineSettings()
    return FilterSelection(sector=restricted_sector(actor) or ALL, day=settings.default_day)


def latest_selection(records: pd.DataFrame, settings: Optional[EngineSettings] = None) -> FilterSelection:
    settings = settings or EngineSettings()
    if records.empty or "date" not in records.columns or records["date"].dropna().empty:
        return FilterSelection(day=settings.default_day)
    latest = records["date"].max()
    return FilterSelection(year=int(latest.year), month=int(latest.month), day=int(latest.day))


def toggle_sort(sort: SortConfig, key: str) -> SortConfig:
    if sort.key == key:
        return SortConfig(key=key, direction="desc" if sort.direction == "asc" else "asc")
    return SortConfig(key=key, direction="desc")
