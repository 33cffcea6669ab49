# backend/tests/test_query_engine.py
import pytest

from backend.app.schemas.query import QueryFilter, QueryIntent
from backend.app.services.query_engine import filter_view, matches_filter, query_data


def intent(**kw):
    return QueryIntent(**kw)


def flt(column, operator, value):
    return QueryFilter(column=column, operator=operator, value=value)


SALES = [
    {"region": "North", "product": "Widget", "units": 10, "price": "2.5"},
    {"region": "south", "product": "Gadget", "units": 5, "price": 4},
    {"region": "North", "product": "Gizmo", "units": 20, "price": "n/a"},
    {"region": "East", "product": "Widget Pro", "units": 1, "price": 7},
]


# -----------------------------------------------------------
# Filtering
# -----------------------------------------------------------
def test_greater_than_filter():
    rows = [{"a": 1}, {"a": 2}, {"a": 3}]
    out = query_data(rows, intent(filters=[flt("a", ">", 1)]))
    assert out == [{"a": 2}, {"a": 3}]


def test_string_filter_value_is_coerced_once():
    f = flt("a", ">=", "2")
    assert f.value == 2
    assert flt("a", "contains", "2").value == "2"
    rows = [{"a": 1}, {"a": 2}, {"a": 3}]
    assert query_data(rows, intent(filters=[f])) == [{"a": 2}, {"a": 3}]


def test_equality_is_case_insensitive():
    out = query_data(SALES, intent(filters=[flt("region", "==", "SOUTH")]))
    assert [r["product"] for r in out] == ["Gadget"]


def test_equality_number_against_text():
    assert matches_filter({"units": 10}, flt("units", "==", "10"))
    assert matches_filter({"code": "10"}, flt("code", "==", 10))
    assert matches_filter({"x": 2.0}, flt("x", "==", "2"))


def test_contains_is_case_insensitive_substring():
    out = query_data(SALES, intent(filters=[flt("product", "contains", "WIDGET")]))
    assert [r["product"] for r in out] == ["Widget", "Widget Pro"]


def test_filters_are_anded():
    out = query_data(SALES, intent(filters=[flt("region", "==", "north"), flt("units", "<", 15)]))
    assert [r["product"] for r in out] == ["Widget"]


def test_numeric_text_cells_compare_numerically():
    out = query_data(SALES, intent(filters=[flt("price", "<=", 4)]))
    # "2.5" coerces, 4 is numeric, "n/a" and 7 are excluded
    assert [r["product"] for r in out] == ["Widget", "Gadget"]


def test_text_vs_text_ordering_is_lexicographic():
    rows = [{"s": "apple"}, {"s": "banana"}, {"s": "cherry"}]
    assert query_data(rows, intent(filters=[flt("s", ">", "b")])) == [{"s": "banana"}, {"s": "cherry"}]


def test_incomparable_values_exclude_row_without_error():
    rows = [{"a": "x"}, {"a": None}, {}, {"a": 5}]
    assert query_data(rows, intent(filters=[flt("a", ">", 1)])) == [{"a": 5}]


def test_unknown_operator_fails_open():
    out = query_data(SALES, intent(filters=[flt("units", "!=", 10)]))
    assert len(out) == len(SALES)


def test_filtering_everything_returns_empty():
    assert query_data(SALES, intent(filters=[flt("region", "==", "Mars")])) == []


def test_source_rows_are_not_mutated():
    rows = [{"a": 1}, {"a": 2}]
    out = query_data(rows, intent())
    out[0]["a"] = 99
    assert rows == [{"a": 1}, {"a": 2}]


# -----------------------------------------------------------
# Group + aggregate
# -----------------------------------------------------------
GROUPED = [{"cat": "x", "v": 1}, {"cat": "x", "v": 3}, {"cat": "y", "v": 2}]


def test_sum_grouping_sorted_descending():
    out = query_data(GROUPED, intent(group_by="cat", aggregate_column="v", aggregate_type="SUM"))
    assert out == [{"cat": "x", "v": 4}, {"cat": "y", "v": 2}]


@pytest.mark.parametrize(
    "kind,expected",
    [
        ("AVG", [{"cat": "y", "v": 2}, {"cat": "x", "v": 2}]),
        ("COUNT", [{"cat": "x", "v": 2}, {"cat": "y", "v": 1}]),
        ("COUNT_DISTINCT", [{"cat": "x", "v": 2}, {"cat": "y", "v": 1}]),
    ],
)
def test_other_aggregates(kind, expected):
    out = query_data(GROUPED, intent(group_by="cat", aggregate_column="v", aggregate_type=kind))
    assert sorted(out, key=lambda r: r["cat"]) == sorted(expected, key=lambda r: r["cat"])


def test_average_is_rounded_to_two_decimals():
    rows = [{"g": "a", "v": 1}, {"g": "a", "v": 1}, {"g": "a", "v": 2}]
    out = query_data(rows, intent(group_by="g", aggregate_column="v", aggregate_type="AVG"))
    assert out == [{"g": "a", "v": 1.33}]


def test_count_distinct_counts_coerced_numbers():
    # documented quirk: "a" and "b" both coerce to 0 and count once
    rows = [{"g": "k", "v": "a"}, {"g": "k", "v": "b"}, {"g": "k", "v": 0}, {"g": "k", "v": 3}]
    out = query_data(rows, intent(group_by="g", aggregate_column="v", aggregate_type="COUNT_DISTINCT"))
    assert out == [{"g": "k", "v": 2}]


def test_non_numeric_and_missing_aggregate_values_count_as_zero():
    rows = [{"g": "k", "v": "12"}, {"g": "k", "v": "oops"}, {"g": "k"}]
    out = query_data(rows, intent(group_by="g", aggregate_column="v", aggregate_type="SUM"))
    assert out == [{"g": "k", "v": 12}]


def test_group_keys_are_strings():
    rows = [{"year": 2020, "v": 1}, {"year": 2020.0, "v": 1}, {"year": 2021, "v": 5}]
    out = query_data(rows, intent(group_by="year", aggregate_column="v", aggregate_type="SUM"))
    assert out == [{"year": "2021", "v": 5}, {"year": "2020", "v": 2}]


def test_filter_then_group():
    out = query_data(
        SALES,
        intent(
            filters=[flt("units", ">", 1)],
            group_by="region",
            aggregate_column="units",
            aggregate_type="SUM",
        ),
    )
    assert out == [{"region": "North", "units": 30}, {"region": "south", "units": 5}]


def test_ties_keep_first_seen_order():
    rows = [{"g": k, "v": 1} for k in ["b", "a", "c"]]
    out = query_data(rows, intent(group_by="g", aggregate_column="v", aggregate_type="SUM"))
    assert [r["g"] for r in out] == ["b", "a", "c"]


def test_incomplete_grouping_returns_filtered_rows():
    out = query_data(GROUPED, intent(group_by="cat", aggregate_column="v"))
    assert out == GROUPED
    out = query_data(GROUPED, intent(group_by="cat", aggregate_type="SUM"))
    assert out == GROUPED


# -----------------------------------------------------------
# Cap
# -----------------------------------------------------------
def test_eighty_groups_capped_at_fifty():
    rows = [{"g": f"k{i}", "v": i} for i in range(80)]
    out = query_data(rows, intent(group_by="g", aggregate_column="v", aggregate_type="SUM"))
    assert len(out) == 50
    assert out[0] == {"g": "k79", "v": 79}


def test_plain_rows_capped():
    rows = [{"a": i} for i in range(200)]
    assert len(query_data(rows, intent())) == 50
    assert len(query_data(rows, intent(), limit=10)) == 10


# -----------------------------------------------------------
# Dashboard view
# -----------------------------------------------------------
def test_view_drilldown_and_search():
    assert [r["product"] for r in filter_view(SALES, {"region": "North"})] == ["Widget", "Gizmo"]
    assert [r["product"] for r in filter_view(SALES, search="gad")] == ["Gadget"]
    assert [r["product"] for r in filter_view(SALES, {"region": "North"}, search="20")] == ["Gizmo"]


def test_view_is_not_capped():
    rows = [{"a": i} for i in range(300)]
    assert len(filter_view(rows)) == 300
