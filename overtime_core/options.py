from __future__ import annotations

from typing import Dict, List, Optional

import pandas as pd

from overtime_core.filters import ALL, Actor, FilterSelection, effective_sector, restricted_sector


def search_mask(records: pd.DataFrame, query: str) -> pd.Series:
    q = (query or "").strip()
    if not q:
        return pd.Series(True, index=records.index)
    return records["name"].astype(str).str.contains(q, case=False, regex=False) | records[
        "employee_id"
    ].astype(str).str.contains(q, case=False, regex=False)


def sector_mask(records: pd.DataFrame, filters: FilterSelection, actor: Optional[Actor]) -> pd.Series:
    sector = effective_sector(filters, actor)
    if sector == ALL:
        return pd.Series(True, index=records.index)
    return records["sector"] == sector


def context_subset(records: pd.DataFrame, filters: FilterSelection, actor: Optional[Actor] = None) -> pd.DataFrame:
    """Records narrowed by search text and sector only; date filters are ignored."""
    if records.empty:
        return records.copy()
    mask = search_mask(records, filters.search_query) & sector_mask(records, filters, actor)
    return records[mask].copy()


def _sorted_ints(values: pd.Series, *, descending: bool = False) -> List[int]:
    return sorted({int(v) for v in values.dropna()}, reverse=descending)


def resolve_options(records: pd.DataFrame, filters: FilterSelection, actor: Optional[Actor] = None) -> Dict[str, list]:
    """Selectable sectors, years, months and days for the current selection.

    Each date level is derived from the context subset narrowed by the
    levels above it: years from the context, months from the selected year,
    days from the selected year and month.
    """
    locked = restricted_sector(actor)
    ctx = context_subset(records, filters, actor)

    if locked is not None:
        sectors = [locked]
    elif ctx.empty:
        sectors = []
    else:
        sectors = sorted({s for s in ctx["sector"] if s})

    dated = ctx[ctx["date"].notna()] if not ctx.empty else ctx
    if dated.empty:
        return {"sectors": sectors, "years": [], "months": [], "days": []}

    years = dated["date"].dt.year
    months = dated["date"].dt.month
    year_match = years == filters.year if filters.year is not None else pd.Series(True, index=dated.index)
    month_match = months == filters.month if filters.month is not None else pd.Series(True, index=dated.index)

    return {
        "sectors": sectors,
        "years": _sorted_ints(years, descending=True),
        "months": _sorted_ints(months[year_match]),
        "days": _sorted_ints(dated["date"].dt.day[year_match & month_match]),
    }
