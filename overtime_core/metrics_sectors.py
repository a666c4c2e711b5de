from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

from overtime_core.charts import melt_categories, to_vega_spec
from overtime_core.data import round_half_up
from overtime_core.filters import EngineSettings, FilterSelection


AMOUNT_COLUMNS = ["hours60", "hours100", "value60", "value100"]


def record_amounts(records: pd.DataFrame, settings: Optional[EngineSettings] = None) -> pd.DataFrame:
    """Per-record hours (day fraction x 24) and overtime cost.

    Cost only applies when the record carries a monthly basis; the hourly
    rate is basis / monthly hours, paid at 1.6x for the 60% category and
    2.0x for the 100% category.
    """
    settings = settings or EngineSettings()
    out = pd.DataFrame(index=records.index)
    out["hours60"] = records["hours60"].fillna(0.0).astype(float) * 24
    out["hours100"] = records["hours100"].fillna(0.0).astype(float) * 24

    basis = records["hourly_basis"].fillna(0.0).astype(float)
    if settings.monthly_hours > 0:
        rate = basis / settings.monthly_hours
    else:
        rate = pd.Series(0.0, index=records.index)
    out["value60"] = out["hours60"] * rate * settings.factor60
    out["value100"] = out["hours100"] * rate * settings.factor100
    return out


def aggregate_sectors(records: pd.DataFrame, settings: Optional[EngineSettings] = None) -> pd.DataFrame:
    """One unrounded row per sector, largest combined hours first."""
    settings = settings or EngineSettings()
    if records.empty:
        return pd.DataFrame(columns=["sector"] + AMOUNT_COLUMNS)

    amounts = record_amounts(records, settings)
    amounts["sector"] = records["sector"].where(records["sector"].astype(bool), settings.unclassified_label)
    grouped = amounts.groupby("sector", sort=False)[AMOUNT_COLUMNS].sum().reset_index()
    combined = grouped["hours60"] + grouped["hours100"]
    order = combined.sort_values(ascending=False, kind="mergesort").index
    return grouped.loc[order].reset_index(drop=True)


def overall_totals(records: pd.DataFrame, settings: Optional[EngineSettings] = None) -> Dict[str, float]:
    if records.empty:
        return {col: 0.0 for col in AMOUNT_COLUMNS}
    sums = record_amounts(records, settings).sum()
    return {col: float(sums[col]) for col in AMOUNT_COLUMNS}


def _rounded(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (round_half_up(v, 2) if k in AMOUNT_COLUMNS else v) for k, v in row.items()}


def compute_sectors(filters: FilterSelection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    settings: EngineSettings = ctx.get("settings") or EngineSettings()
    filtered: pd.DataFrame = ctx.get("filtered_records", pd.DataFrame())

    sectors = aggregate_sectors(filtered, settings)
    totals = overall_totals(filtered, settings)

    charts: Dict[str, Any] = {}
    if not sectors.empty:
        hours_long = melt_categories(sectors, "sector", ["hours60", "hours100"], "hours")
        hours_bar = (
            alt.Chart(hours_long)
            .mark_bar()
            .encode(
                x=alt.X("sector:N", title="Sector", sort=None),
                y=alt.Y("hours:Q", title="Hours", stack="zero"),
                color=alt.Color("category:N", title="Overtime"),
                tooltip=["sector", "category", alt.Tooltip("hours:Q", format=",.2f")],
            )
        )
        value_long = melt_categories(sectors, "sector", ["value60", "value100"], "value")
        value_bar = (
            alt.Chart(value_long)
            .mark_bar()
            .encode(
                x=alt.X("sector:N", title="Sector", sort=None),
                y=alt.Y("value:Q", title="Cost", stack="zero", axis=alt.Axis(format=",.2f")),
                color=alt.Color("category:N", title="Overtime"),
                tooltip=["sector", "category", alt.Tooltip("value:Q", format=",.2f")],
            )
        )
        charts = {"hours_by_sector": to_vega_spec(hours_bar), "value_by_sector": to_vega_spec(value_bar)}

    return {
        "filters": asdict(filters),
        "sectors": [_rounded(row) for row in sectors.to_dict(orient="records")],
        "totals": _rounded(totals),
        "charts": charts,
    }
