from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from overtime_core.charts import melt_categories, to_vega_spec
from overtime_core.data import round_half_up
from overtime_core.filters import Actor, EngineSettings, FilterSelection
from overtime_core.metrics_sectors import overall_totals
from overtime_core.options import context_subset
from overtime_core.trends import direction


TREND_KEYS = ["h60", "h100", "v60", "v100", "h_total", "v_total"]


def previous_day(year: int, month: int, day: int) -> pd.Timestamp:
    """Calendar day before (year, month, day).

    Days past the end of the month roll into the next month, so 31 Feb
    behaves as 2 or 3 Mar.
    """
    selected = pd.Timestamp(year=year, month=month, day=1) + pd.Timedelta(days=day - 1)
    return selected - pd.Timedelta(days=1)


def _trend_totals(totals: Dict[str, float]) -> Dict[str, float]:
    return {
        "h60": totals["hours60"],
        "h100": totals["hours100"],
        "v60": totals["value60"],
        "v100": totals["value100"],
        "h_total": totals["hours60"] + totals["hours100"],
        "v_total": totals["value60"] + totals["value100"],
    }


def compare_previous_day(
    records: pd.DataFrame,
    filters: FilterSelection,
    actor: Optional[Actor],
    current_totals: Dict[str, float],
    settings: Optional[EngineSettings] = None,
) -> Dict[str, Optional[str]]:
    """Direction of each total for the selected day against the day before.

    Only meaningful when year and month are concrete; otherwise every
    direction is None.
    """
    if filters.year is None or filters.month is None:
        return {key: None for key in TREND_KEYS}

    prev = previous_day(filters.year, filters.month, filters.day)
    ctx = context_subset(records, filters, actor)
    if not ctx.empty:
        ctx = ctx[ctx["date"] == prev]
    prev_totals = _trend_totals(overall_totals(ctx, settings))
    curr_totals = _trend_totals(current_totals)
    return {key: direction(curr_totals[key], prev_totals[key]) for key in TREND_KEYS}


def last_months_series(
    records: pd.DataFrame,
    filters: FilterSelection,
    actor: Optional[Actor] = None,
    settings: Optional[EngineSettings] = None,
) -> List[Dict[str, Any]]:
    """Totals on the latest recorded day of each of the most recent months."""
    settings = settings or EngineSettings()
    ctx = context_subset(records, filters, actor)
    if ctx.empty:
        return []
    dated = ctx[ctx["date"].notna()]
    if dated.empty:
        return []

    # ``date`` is already truncated to midnight, so equality covers the whole day.
    month_key = dated["date"].dt.to_period("M").rename("month")
    target_days = dated.groupby(month_key)["date"].max().sort_values(ascending=False)
    target_days = sorted(target_days.head(settings.trend_months).tolist())

    hours = dated[["hours60", "hours100"]].fillna(0.0) * 24
    points = []
    for day in target_days:
        on_day = hours[dated["date"] == day]
        points.append(
            {
                "label": day.strftime("%d/%m"),
                "date": day.date().isoformat(),
                "hours60": round_half_up(float(on_day["hours60"].sum()), 2),
                "hours100": round_half_up(float(on_day["hours100"].sum()), 2),
            }
        )
    return points


def compute_trends(filters: FilterSelection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    settings: EngineSettings = ctx.get("settings") or EngineSettings()
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered_records", pd.DataFrame())
    actor: Optional[Actor] = ctx.get("actor")

    day_over_day = compare_previous_day(records, filters, actor, overall_totals(filtered, settings), settings)
    series = last_months_series(records, filters, actor, settings)

    charts: Dict[str, Any] = {}
    if series:
        long_df = melt_categories(pd.DataFrame(series), "label", ["hours60", "hours100"], "hours")
        line = (
            alt.Chart(long_df)
            .mark_line(point={"filled": True})
            .encode(
                x=alt.X("label:O", title="Day", sort=None),
                y=alt.Y("hours:Q", title="Hours"),
                color=alt.Color("category:N", title="Overtime"),
                tooltip=["label", "category", alt.Tooltip("hours:Q", format=",.2f")],
            )
        )
        charts["last_months"] = to_vega_spec(line)

    return {
        "filters": asdict(filters),
        "day_over_day": day_over_day,
        "last_months": series,
        "charts": charts,
    }
