import pytest

from overtime_core.filters import EngineSettings, FilterSelection
from overtime_core.metrics_sectors import aggregate_sectors, compute_sectors, overall_totals, record_amounts
from overtime_core.records import filter_records


@pytest.fixture
def day_records(row, make_records):
    return make_records(
        [
            row("A", "2024-01-10", 0.25, None, sector="X", basis=2200),
            row("B", "2024-01-10", 0.125, 0.0625, sector="Y", basis=3300),
            row("C", "2024-01-10", 0.0, 0.5, sector="", basis=None),
            row("D", "2024-01-10", 0.0625, 0.0, sector="X", basis=1100),
            row("E", "2024-01-10", 0.1, 0.05, sector="Z", basis=0),
        ]
    )


def test_single_record_scenario(row, make_records):
    records = make_records([row("A", "2024-01-10", 0.25, sector="X", basis=2200)])
    filtered = filter_records(records, FilterSelection(year=2024, month=1, day=10))
    sectors = aggregate_sectors(filtered)
    assert sectors["sector"].tolist() == ["X"]
    assert sectors.loc[0, "hours60"] == pytest.approx(6.0)
    assert sectors.loc[0, "value60"] == pytest.approx(96.0)
    assert sectors.loc[0, "hours100"] == 0.0
    assert sectors.loc[0, "value100"] == 0.0


def test_record_amounts_without_basis_have_no_value(day_records):
    amounts = record_amounts(day_records)
    assert amounts.loc[2, "hours100"] == pytest.approx(12.0)
    assert amounts.loc[2, "value100"] == 0.0
    assert amounts.loc[4, "value60"] == 0.0
    assert amounts.loc[1, "value100"] == pytest.approx(1.5 * 15.0 * 2.0)


def test_unclassified_sector_is_kept(day_records):
    sectors = aggregate_sectors(day_records)
    assert "Unclassified" in sectors["sector"].tolist()
    custom = aggregate_sectors(day_records, EngineSettings(unclassified_label="Não informado"))
    assert "Não informado" in custom["sector"].tolist()


def test_sectors_sorted_by_combined_hours(day_records):
    sectors = aggregate_sectors(day_records)
    # Unclassified 12h, X 7.5h, Y 4.5h, Z 3.6h
    assert sectors["sector"].tolist() == ["Unclassified", "X", "Y", "Z"]


def test_ties_keep_first_seen_order(row, make_records):
    records = make_records(
        [
            row("A", "2024-01-10", 0.1, sector="Q"),
            row("B", "2024-01-10", 0.1, sector="P"),
            row("C", "2024-01-10", 0.2, sector="R"),
        ]
    )
    assert aggregate_sectors(records)["sector"].tolist() == ["R", "Q", "P"]


def test_totals_are_order_independent(day_records):
    forward = aggregate_sectors(day_records).set_index("sector").sort_index()
    shuffled = aggregate_sectors(day_records.sample(frac=1, random_state=7)).set_index("sector").sort_index()
    for col in ["hours60", "hours100", "value60", "value100"]:
        assert shuffled[col].tolist() == pytest.approx(forward[col].tolist())


def test_sector_totals_sum_to_filtered_totals(day_records):
    sectors = aggregate_sectors(day_records)
    totals = overall_totals(day_records)
    assert sectors["hours60"].sum() == pytest.approx((day_records["hours60"].fillna(0) * 24).sum())
    assert sectors["hours100"].sum() == pytest.approx((day_records["hours100"].fillna(0) * 24).sum())
    for col in ["hours60", "hours100", "value60", "value100"]:
        assert sectors[col].sum() == pytest.approx(totals[col])


def test_aggregation_does_not_mutate(day_records):
    snapshot = day_records.copy()
    aggregate_sectors(day_records)
    assert day_records.equals(snapshot)


def test_empty_input(make_records):
    empty = make_records([])
    assert aggregate_sectors(empty).empty
    assert overall_totals(empty) == {"hours60": 0.0, "hours100": 0.0, "value60": 0.0, "value100": 0.0}


def test_compute_sectors_rounds_at_presentation(row, make_records):
    records = make_records([row("A", "2024-01-10", 1 / 3 / 24, sector="X", basis=1000)])
    payload = compute_sectors(FilterSelection(day=10), {"filtered_records": records})
    entry = payload["sectors"][0]
    assert entry["sector"] == "X"
    assert entry["hours60"] == 0.33
    assert entry["value60"] == round(1 / 3 * (1000 / 220) * 1.6, 2)
    assert payload["totals"]["hours60"] == 0.33
    assert set(payload["charts"]) == {"hours_by_sector", "value_by_sector"}
    assert payload["filters"]["day"] == 10


def test_compute_sectors_without_records(make_records):
    payload = compute_sectors(FilterSelection(), {"filtered_records": make_records([])})
    assert payload["sectors"] == []
    assert payload["charts"] == {}
