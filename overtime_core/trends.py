from __future__ import annotations

import numpy as np
import pandas as pd


def direction(current: float, previous: float) -> str:
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "equal"


def _series_direction(current: pd.Series, previous: pd.Series) -> pd.Series:
    labels = np.select([current > previous, current < previous], ["up", "down"], default="equal")
    # No previous record for this employee -> None.
    values = [str(label) if has_prev else None for label, has_prev in zip(labels, previous.notna())]
    return pd.Series(values, index=current.index, dtype=object)


def annotate_trends(records: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``records`` with ``trend60``/``trend100`` columns.

    Each record is compared with the same employee's previous record in
    date order (stable, undated rows first). Raw day fractions are compared
    without rounding; missing hours count as zero.
    """
    out = records.copy()
    if out.empty:
        out["trend60"] = pd.Series(dtype=object)
        out["trend100"] = pd.Series(dtype=object)
        return out

    chrono = out.sort_values("excel_date", kind="mergesort", na_position="first")
    by_employee = chrono.groupby("employee_id", sort=False)
    for metric in ["hours60", "hours100"]:
        current = chrono[metric].fillna(0.0)
        previous = by_employee[metric].shift(1)
        has_prev = by_employee.cumcount() > 0
        previous = previous.fillna(0.0).where(has_prev)
        trend = _series_direction(current, previous)
        out["trend" + metric[len("hours"):]] = trend.reindex(out.index)
    return out
