from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

CATEGORY_TITLES = {"hours60": "60%", "hours100": "100%", "value60": "60%", "value100": "100%"}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def melt_categories(df: pd.DataFrame, id_col: str, value_cols: list, value_name: str) -> pd.DataFrame:
    long_df = df.melt(id_vars=id_col, value_vars=value_cols, var_name="category", value_name=value_name)
    long_df["category"] = long_df["category"].map(CATEGORY_TITLES)
    return long_df
