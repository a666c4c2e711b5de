import pytest

from overtime_core.filters import (
    ALL,
    Actor,
    EngineSettings,
    FilterSelection,
    SortConfig,
    apply_filter_change,
    clear_filters,
    latest_selection,
    normalize_filters,
    normalize_sort,
    restricted_sector,
    toggle_sort,
)
from overtime_core.schemas import FilterSelectionModel, SortConfigModel


def test_normalize_filters_coerces_raw_values():
    f = normalize_filters({"search_query": "  ana ", "sector": "todos", "year": "2024", "month": "All", "day": "7"})
    assert f == FilterSelection(search_query="ana", sector=ALL, year=2024, month=None, day=7)


def test_normalize_filters_falls_back_on_bad_values():
    f = normalize_filters({"year": "abc", "month": 13, "day": "x"}, EngineSettings(default_day=15))
    assert f.year is None
    assert f.month is None
    assert f.day == 15


def test_normalize_filters_accepts_pydantic_model():
    f = normalize_filters(FilterSelectionModel(year="2024", month=2, day="5", sector="X"))
    assert (f.year, f.month, f.day, f.sector) == (2024, 2, 5, "X")


def test_year_change_resets_month_and_day():
    start = FilterSelection(year=2023, month=5, day=20)
    changed = apply_filter_change(start, "year", "2024")
    assert changed.year == 2024
    assert changed.month is None
    assert changed.day == 1


def test_month_change_resets_day_only():
    start = FilterSelection(year=2024, month=1, day=20)
    changed = apply_filter_change(start, "month", 3)
    assert (changed.year, changed.month, changed.day) == (2024, 3, 1)


def test_reset_uses_configured_default_day():
    settings = EngineSettings(default_day=10)
    changed = apply_filter_change(FilterSelection(day=3), "year", 2024, settings)
    assert changed.day == 10


def test_same_year_twice_is_idempotent():
    start = FilterSelection(year=2023, month=5, day=20)
    once = apply_filter_change(start, "year", 2024)
    twice = apply_filter_change(once, "year", 2024)
    assert once == twice


def test_other_changes_keep_date_selection():
    start = FilterSelection(year=2024, month=2, day=9)
    changed = apply_filter_change(start, "search_query", "bruno")
    assert (changed.year, changed.month, changed.day) == (2024, 2, 9)
    assert changed.search_query == "bruno"


def test_restricted_sector_sentinels():
    assert restricted_sector(None) is None
    assert restricted_sector(Actor()) is None
    assert restricted_sector(Actor("todos")) is None
    assert restricted_sector(Actor(" Y ")) == "Y"


def test_clear_filters_respects_restriction():
    assert clear_filters().sector == ALL
    cleared = clear_filters(Actor("Y"))
    assert cleared == FilterSelection(sector="Y", day=1)


def test_toggle_sort():
    first = toggle_sort(SortConfig(), "name")
    assert first == SortConfig("name", "desc")
    assert toggle_sort(first, "name") == SortConfig("name", "asc")
    assert toggle_sort(first, "date") == SortConfig("date", "desc")


def test_normalize_sort_from_model_and_bad_direction():
    assert normalize_sort(SortConfigModel(key="hours60", direction="desc")) == SortConfig("hours60", "desc")
    assert normalize_sort({"key": "name", "direction": "sideways"}) == SortConfig("name", "asc")


def test_latest_selection_points_to_max_date(calendar_records):
    assert latest_selection(calendar_records) == FilterSelection(year=2024, month=2, day=6)


def test_latest_selection_without_dates(make_records):
    assert latest_selection(make_records([])) == FilterSelection()


@pytest.mark.parametrize("year", ["0", "99999", -5, 1500, "3000"])
def test_out_of_range_year_becomes_all(year):
    assert normalize_filters({"year": year, "month": 1, "day": 1}).year is None


def test_decimal_strings_are_read_as_numbers():
    f = normalize_filters({"year": "2024.0", "month": "1.0", "day": "5.0"})
    assert (f.year, f.month, f.day) == (2024, 1, 5)
