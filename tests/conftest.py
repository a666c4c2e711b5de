from __future__ import annotations

from typing import Optional

import pandas as pd
import pytest

from overtime_core.data import build_records, timestamp_to_excel_serial
from overtime_core.trends import annotate_trends


def make_row(
    employee_id: str,
    day: str,
    hours60: float = 0.0,
    hours100: Optional[float] = None,
    sector: str = "X",
    basis: Optional[float] = None,
    name: Optional[str] = None,
) -> dict:
    return {
        "employee_id": employee_id,
        "name": name or f"Employee {employee_id}",
        "excel_date": timestamp_to_excel_serial(pd.Timestamp(day)),
        "hours60": hours60,
        "hours100": hours100,
        "sector": sector,
        "hourly_basis": basis,
    }


@pytest.fixture
def row():
    return make_row


@pytest.fixture
def make_records():
    def _make(rows):
        return annotate_trends(build_records(rows))

    return _make


@pytest.fixture
def calendar_records(make_records):
    return make_records(
        [
            make_row("A1", "2023-12-05", 0.1, sector="X", name="Ana Souza"),
            make_row("A1", "2024-01-05", 0.2, sector="X", name="Ana Souza"),
            make_row("B2", "2024-01-10", 0.3, 0.05, sector="Y", name="Bruno Lima"),
            make_row("B2", "2024-02-05", 0.1, sector="Y", name="Bruno Lima"),
            make_row("C3", "2024-02-06", 0.1, sector="", name="Carla Dias"),
        ]
    )
