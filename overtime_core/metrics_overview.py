from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from overtime_core.data import round_half_up
from overtime_core.filters import ALL, EngineSettings, FilterSelection, effective_sector
from overtime_core.metrics_sectors import overall_totals


def count_registered_active(roster: pd.DataFrame, sector: str) -> int:
    if roster.empty:
        return 0
    active = roster[roster["active"]]
    if sector == ALL:
        return int(len(active))
    return int((active["sector"] == sector).sum())


def compute_overview(filters: FilterSelection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    settings: EngineSettings = ctx.get("settings") or EngineSettings()
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered_records", pd.DataFrame())
    roster: pd.DataFrame = ctx.get("roster", pd.DataFrame())

    collaborators = 0
    if not filtered.empty:
        ids = filtered["employee_id"]
        collaborators = int(ids[ids != ""].nunique())

    totals = overall_totals(filtered, settings)
    return {
        "filters": asdict(filters),
        "is_offline": bool(ctx.get("is_offline", False)),
        "total_count": int(len(records)),
        "filtered_count": int(len(filtered)),
        "unique_collaborators": collaborators,
        "total_registered_active": count_registered_active(roster, effective_sector(filters, ctx.get("actor"))),
        "totals": {k: round_half_up(v, 2) for k, v in totals.items()},
    }
