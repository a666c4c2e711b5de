from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from overtime_core.filters import Actor, FilterSelection, SortConfig
from overtime_core.options import search_mask, sector_mask


def filter_records(records: pd.DataFrame, filters: FilterSelection, actor: Optional[Actor] = None) -> pd.DataFrame:
    """Working subset for the table and the dashboards.

    The day is always enforced, also when year and month are All. Records
    without a date are not bucketed and pass the date checks.
    """
    if records.empty:
        return records.copy()

    dates = records["date"]
    undated = dates.isna()
    mask = search_mask(records, filters.search_query) & sector_mask(records, filters, actor)
    if filters.year is not None:
        mask &= undated | (dates.dt.year == filters.year)
    if filters.month is not None:
        mask &= undated | (dates.dt.month == filters.month)
    mask &= undated | (dates.dt.day == filters.day)
    return records[mask].copy()


def _sort_key(series: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(series):
        return series.fillna(pd.Timestamp.min)
    if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
        return series.fillna(0)
    return series.map(lambda v: "" if v is None or (isinstance(v, float) and math.isnan(v)) else str(v))


def sort_records(records: pd.DataFrame, sort: SortConfig) -> pd.DataFrame:
    if not sort.key or sort.key not in records.columns or records.empty:
        return records.copy()
    order = _sort_key(records[sort.key]).sort_values(ascending=sort.direction == "asc", kind="mergesort").index
    return records.loc[order].copy()


def format_excel_time(fraction: object) -> str:
    """Day fraction as ``hh:mm``; empty when missing or under half a minute."""
    if fraction is None or pd.isna(fraction):
        return ""
    total_minutes = math.floor(float(fraction) * 24 * 60 + 0.5)
    if total_minutes == 0:
        return ""
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def format_excel_date(value: object) -> str:
    if value is None or pd.isna(value):
        return ""
    return pd.Timestamp(value).strftime("%d/%m/%Y")


def visible_records(records: pd.DataFrame) -> pd.DataFrame:
    """Rows worth showing in the table. Totals still use every filtered row."""
    if records.empty:
        return records.copy()
    shown = records["hours60"].map(format_excel_time).ne("") | records["hours100"].map(format_excel_time).ne("")
    return records[shown].copy()


def compute_table(filters: FilterSelection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    sorted_records: pd.DataFrame = ctx.get("sorted_records", pd.DataFrame())
    sort: SortConfig = ctx.get("sort") or SortConfig()
    shown = visible_records(sorted_records)

    rows = []
    for rec in shown.itertuples(index=False):
        rows.append(
            {
                "employee_id": rec.employee_id,
                "name": rec.name,
                "sector": rec.sector,
                "date": format_excel_date(rec.date),
                "hours60": format_excel_time(rec.hours60),
                "hours100": format_excel_time(rec.hours100),
                "trend60": rec.trend60,
                "trend100": rec.trend100,
                "status": rec.status,
            }
        )

    return {
        "filters": asdict(filters),
        "sort": asdict(sort),
        "rows": rows,
        "hidden_rows": int(len(sorted_records) - len(shown)),
    }
