from __future__ import annotations

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from overtime_core.filters import (
    Actor,
    EngineSettings,
    FilterSelection,
    SortConfig,
    latest_selection,
    normalize_actor,
    normalize_filters,
    normalize_sort,
)
from overtime_core.options import context_subset, resolve_options
from overtime_core.records import filter_records, sort_records
from overtime_core.trends import annotate_trends


logger = logging.getLogger(__name__)

EXCEL_EPOCH = "1899-12-30"
INACTIVE_SITUATIONS = {"7", "07", "007"}

RECORD_COLUMNS = {
    "Cadastro": "employee_id",
    "cadastro": "employee_id",
    "Nome": "name",
    "nome": "name",
    "Data": "excel_date",
    "data": "excel_date",
    "Hrs 60%": "hours60",
    "Horas 60%": "hours60",
    "Hrs 100%": "hours100",
    "Horas 100%": "hours100",
    "Status": "status",
}

ROSTER_COLUMNS = {
    "Cadastro": "employee_id",
    "cadastro": "employee_id",
    "Descrição do Local": "sector",
    "Descricao do Local": "sector",
    "descricao do local": "sector",
    "Valor Salário": "salary",
    "Valor Salario": "salary",
    "valor salario": "salary",
    "Situação": "situation",
    "Situacao": "situation",
    "situacao": "situation",
}

RECORD_FIELDS = [
    "employee_id",
    "name",
    "excel_date",
    "date",
    "hours60",
    "hours100",
    "sector",
    "hourly_basis",
    "status",
]


def rename_columns(df: pd.DataFrame, mapping: Dict[str, str]) -> pd.DataFrame:
    # Header spellings vary between exports; aliases of one column are merged, first non-null wins.
    out = pd.DataFrame(index=df.index)
    for col in df.columns:
        target = mapping.get(col, col)
        if target in out.columns:
            out[target] = out[target].combine_first(df[col])
        else:
            out[target] = df[col]
    return out


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = ""
        series = df[col].astype("string").str.strip()
        series = series.replace({"nan": pd.NA, "None": pd.NA, "<NA>": pd.NA})
        df[col] = series.fillna("").astype(object)
    return df


def normalize_employee_id(value: object) -> str:
    # Ids read from numeric cells arrive as 123.0.
    if value is None or pd.isna(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def excel_serial_to_timestamp(serial: pd.Series) -> pd.Series:
    """Convert spreadsheet serial day counts to midnight timestamps; 0/blank -> NaT."""
    numeric = pd.to_numeric(serial, errors="coerce")
    numeric = numeric.where(numeric > 0)
    stamps = pd.to_datetime(numeric, unit="D", origin=EXCEL_EPOCH, errors="coerce")
    return stamps.dt.floor("D")


def timestamp_to_excel_serial(value: pd.Timestamp) -> int:
    return int((pd.Timestamp(value).normalize() - pd.Timestamp(EXCEL_EPOCH)).days)


def abbreviate_sector(name: object) -> str:
    if name is None or pd.isna(name):
        return ""
    clean = str(name).strip().upper()
    parts = clean.split()
    if len(parts) > 1 and len(parts[0]) > 3:
        return f"{parts[0][:3]}. {' '.join(parts[1:])}"
    return clean


def parse_currency(value: object) -> float:
    """Parse a BRL amount such as ``R$ 2.200,50``; unreadable values give 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return 0.0 if pd.isna(value) else float(value)
    cleaned = re.sub(r"[R$\s.]", "", str(value).strip()).replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def empty_records() -> pd.DataFrame:
    df = pd.DataFrame({col: pd.Series(dtype=object) for col in RECORD_FIELDS})
    for col in ["excel_date", "hours60", "hours100", "hourly_basis"]:
        df[col] = df[col].astype(float)
    df["date"] = pd.to_datetime(df["date"])
    return df


def build_roster(rows: Optional[List[Dict[str, Any]]]) -> pd.DataFrame:
    cols = ["employee_id", "sector", "salary", "situation", "active"]
    if not rows:
        return pd.DataFrame(columns=cols)
    df = rename_columns(pd.DataFrame(rows), ROSTER_COLUMNS)
    if "employee_id" not in df.columns:
        return pd.DataFrame(columns=cols)
    df["employee_id"] = df["employee_id"].apply(normalize_employee_id)
    df = df[df["employee_id"] != ""].copy()
    df = coerce_str_safe(df, ["sector", "situation"])
    df["sector"] = df["sector"].apply(abbreviate_sector)
    df["salary"] = df["salary"].apply(parse_currency) if "salary" in df.columns else 0.0
    df["active"] = ~df["situation"].isin(INACTIVE_SITUATIONS)
    return df[cols].reset_index(drop=True)


def build_records(rows: List[Dict[str, Any]], roster: Optional[pd.DataFrame] = None) -> pd.DataFrame:
    """Normalize already-read sheet rows into the record frame.

    Accepts either the spreadsheet headers (``Cadastro``, ``Hrs 60%``...) or
    the canonical column names. Sector and hourly basis come from the roster
    when one is given, otherwise from the rows themselves.
    """
    if not rows:
        return empty_records()
    df = rename_columns(pd.DataFrame(rows), RECORD_COLUMNS)

    df["employee_id"] = df["employee_id"].apply(normalize_employee_id) if "employee_id" in df.columns else ""
    df = coerce_str_safe(df, ["name", "sector", "status"])
    df["name"] = df["name"].str.upper()
    df["status"] = df["status"].map(lambda s: "inactive" if s.lower() in {"inativo", "inactive"} else "active")

    for col in ["excel_date", "hours60", "hours100", "hourly_basis"]:
        if col not in df.columns:
            df[col] = float("nan")
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    df["hours60"] = df["hours60"].fillna(0.0)
    df["date"] = excel_serial_to_timestamp(df["excel_date"])

    if roster is not None and not roster.empty:
        # A blank location never overwrites a sector seen earlier for the same id.
        located = roster[roster["sector"] != ""].drop_duplicates(subset=["employee_id"], keep="last")
        salaries = roster.drop_duplicates(subset=["employee_id"], keep="last")
        df["sector"] = df["employee_id"].map(located.set_index("employee_id")["sector"]).fillna("").astype(object)
        df["hourly_basis"] = df["employee_id"].map(salaries.set_index("employee_id")["salary"]).astype(float)

    return df[RECORD_FIELDS].reset_index(drop=True)


def load_records(
    rows: Optional[List[Dict[str, Any]]],
    roster_rows: Optional[List[Dict[str, Any]]] = None,
    settings: Optional[EngineSettings] = None,
) -> Dict[str, object]:
    """Build the per-load data context. ``rows=None`` means the source was offline."""
    settings = settings or EngineSettings()
    is_offline = rows is None
    if is_offline:
        logger.warning("record source offline, continuing with an empty record set")

    roster = build_roster(roster_rows)
    records = annotate_trends(build_records(rows or [], roster))

    undated = int(records["date"].isna().sum())
    if undated:
        logger.debug("%d records have no date and are left out of date buckets", undated)
    logger.info("loaded %d records, %d roster entries", len(records), len(roster))

    return {
        "records": records,
        "roster": roster,
        "default_filters": latest_selection(records, settings),
        "is_offline": is_offline,
        "settings": settings,
    }


def prepare_context(
    filters: Any,
    data_ctx: Dict[str, object],
    *,
    actor: Any = None,
    sort: Any = None,
) -> Dict[str, object]:
    settings: EngineSettings = data_ctx.get("settings") or EngineSettings()
    records: pd.DataFrame = data_ctx.get("records", empty_records())
    filt: FilterSelection = normalize_filters(filters, settings)
    who: Optional[Actor] = normalize_actor(actor)
    order: SortConfig = normalize_sort(sort)

    filtered = filter_records(records, filt, who)
    return {
        "settings": settings,
        "filters": filt,
        "actor": who,
        "sort": order,
        "records": records,
        "roster": data_ctx.get("roster", pd.DataFrame()),
        "is_offline": bool(data_ctx.get("is_offline", False)),
        "context_records": context_subset(records, filt, who),
        "filtered_records": filtered,
        "sorted_records": sort_records(filtered, order),
        "options": resolve_options(records, filt, who),
    }
