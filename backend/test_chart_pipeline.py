"""
Tests for the chart pipeline: numeric coercion, config validation and row processing.
"""

import json
import math

import pytest

from core.errors import MissingField, UnknownColumn, UnsupportedChartType
from core.models import (
    AggregationSpec,
    AggregationType,
    ChartType,
    Dataset,
    FilterOperator,
    FilterSpec,
)
from core.utils import coerce_number
from skills.process import (
    apply_aggregation,
    apply_filter,
    coerce_row,
    process_rows,
    prune_blank_axes,
)
from skills.validate import validate_config

HEADERS = ["region", "sales"]
RAW_ROWS = [["East", "100"], ["West", "200"], ["East", "150"]]


def make_config(headers=HEADERS, **extra):
    candidate = {"chartType": "bar", "xAxis": "region", "yAxis": "sales", "title": "t"}
    candidate.update(extra)
    return validate_config(candidate, headers)


@pytest.fixture
def sales():
    return Dataset.from_table(HEADERS, RAW_ROWS)


class TestCoerceNumber:
    """Tests for the shared numeric coercion primitive."""

    @pytest.mark.parametrize("raw,expected", [
        ("100", 100.0),
        ("  42.5kg", 42.5),
        ("-3e2", -300.0),
        (".5", 0.5),
        ("1.", 1.0),
        ("+7", 7.0),
        (7, 7.0),
        (2.5, 2.5),
        ("2024-01-15", 2024.0),
    ])
    def test_leading_numeric_parse(self, raw, expected):
        """The longest leading numeric literal is parsed."""
        assert coerce_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "$5", True, False, float("nan"), "٣", "５", "٣.5"])
    def test_not_a_number(self, raw):
        """Blanks, booleans, NaN, text and non-ASCII digits are not numbers."""
        assert coerce_number(raw) is None

    def test_infinity_literal(self):
        """The Infinity literal parses to an infinite float."""
        assert coerce_number("Infinity") == math.inf
        assert coerce_number("-Infinity") == -math.inf

    def test_int_beyond_float_range_saturates(self):
        """Integers past float range become infinite instead of raising."""
        assert coerce_number(10**400) == math.inf
        assert coerce_number(-(10**400)) == -math.inf
        assert coerce_number(10**400, strict=True) is None

    @pytest.mark.parametrize("raw,expected", [
        ("12", 12.0),
        (" 3.5 ", 3.5),
        ("1e3", 1000.0),
        ("12abc", None),
        ("2024-01-15", None),
        ("Infinity", None),
        ("", None),
    ])
    def test_strict_requires_whole_finite_number(self, raw, expected):
        """Strict mode needs the whole value to be a finite number."""
        assert coerce_number(raw, strict=True) == expected


class TestDataset:
    """Tests for building datasets from tables."""

    def test_from_table_rekeys_rows(self, sales):
        """Positional rows are keyed by header."""
        assert sales.headers == ["region", "sales"]
        assert sales.rows[0] == {"region": "East", "sales": "100"}
        assert sales.row_count == 3

    def test_short_rows_padded_with_none(self):
        """Short rows are padded with None and long rows truncated."""
        ds = Dataset.from_table(["a", "b", "c"], [["1"], ["1", "2", "3", "4"]])
        assert ds.rows[0] == {"a": "1", "b": None, "c": None}
        assert ds.rows[1] == {"a": "1", "b": "2", "c": "3"}

    def test_duplicate_headers_rejected(self):
        """Duplicate headers are rejected."""
        with pytest.raises(ValueError):
            Dataset(headers=["a", "a"], rows=[])


class TestValidator:
    """Tests for chart configuration validation."""

    def test_valid_config_normalizes_chart_type(self):
        """Chart type is matched case-insensitively."""
        config = make_config(chartType="BAR")
        assert config.chart_type == ChartType.bar
        assert config.x_axis == "region"
        assert config.filter is None
        assert config.aggregation is None

    @pytest.mark.parametrize("field", ["chartType", "xAxis", "yAxis", "title"])
    def test_missing_required_field(self, field):
        """Each required field is reported when absent."""
        candidate = {"chartType": "bar", "xAxis": "region", "yAxis": "sales", "title": "t"}
        del candidate[field]
        with pytest.raises(MissingField) as exc_info:
            validate_config(candidate, HEADERS)
        assert exc_info.value.field == field

    def test_blank_title_counts_as_missing(self):
        """A whitespace-only title is treated as absent."""
        with pytest.raises(MissingField):
            make_config(title="   ")

    @pytest.mark.parametrize("title", [0, False, [], {}])
    def test_falsy_title_counts_as_missing(self, title):
        """A falsy non-string title is treated as absent."""
        with pytest.raises(MissingField) as exc_info:
            make_config(title=title)
        assert exc_info.value.field == "title"

    def test_missing_field_checked_before_chart_type(self):
        """Missing fields are reported before an unsupported chart type."""
        with pytest.raises(MissingField):
            validate_config({"chartType": "radar", "xAxis": "region", "yAxis": "sales"}, HEADERS)

    def test_unsupported_chart_type(self):
        """Unknown chart types are rejected by name."""
        with pytest.raises(UnsupportedChartType) as exc_info:
            make_config(chartType="radar")
        assert "radar" in str(exc_info.value)

    def test_unknown_x_axis_rejected_even_if_rest_is_valid(self):
        """Axis columns are matched case-sensitively."""
        with pytest.raises(UnknownColumn) as exc_info:
            make_config(xAxis="Region")
        assert exc_info.value.column == "Region"

    def test_unknown_y_axis(self):
        """An unknown y axis is rejected."""
        with pytest.raises(UnknownColumn) as exc_info:
            make_config(yAxis="revenue")
        assert exc_info.value.column == "revenue"

    def test_x_axis_checked_before_y_axis(self):
        """The x axis is checked before the y axis."""
        with pytest.raises(UnknownColumn) as exc_info:
            make_config(xAxis="nope_x", yAxis="nope_y")
        assert exc_info.value.column == "nope_x"

    def test_non_object_candidate(self):
        """A non-object candidate fails on the first required field."""
        with pytest.raises(MissingField) as exc_info:
            validate_config(["bar"], HEADERS)
        assert exc_info.value.field == "chartType"

    def test_filter_operator_normalized(self):
        """Filter operators are matched case-insensitively."""
        config = make_config(filter={"column": "sales", "operator": "GT", "value": 120})
        assert config.filter.operator == FilterOperator.gt
        assert config.filter.value == 120

    @pytest.mark.parametrize("bad_filter", [
        {"column": "sales", "operator": "contains", "value": 1},
        {"column": "profit", "operator": "gt", "value": 1},
        {"column": "sales", "operator": "between", "value": 5},
        {"column": "sales", "operator": "between", "value": [1, 2, 3]},
        "sales > 5",
    ])
    def test_unusable_filter_is_dropped(self, bad_filter):
        """Unusable filter blocks are dropped instead of failing."""
        config = make_config(filter=bad_filter)
        assert config.filter is None

    def test_aggregation_parsed(self):
        """Aggregation blocks are parsed and blank references cleared."""
        config = make_config(aggregation={"type": "Sum", "column": "", "groupBy": "region"})
        assert config.aggregation.type == AggregationType.sum
        assert config.aggregation.column is None
        assert config.aggregation.group_by == "region"

    @pytest.mark.parametrize("bad_agg", [
        {"type": "median"},
        {"type": "sum", "groupBy": "country"},
        {"type": "sum", "column": "profit"},
    ])
    def test_unusable_aggregation_is_dropped(self, bad_agg):
        """Unusable aggregation blocks are dropped instead of failing."""
        assert make_config(aggregation=bad_agg).aggregation is None


class TestFilter:
    """Tests for the filter stage."""

    def test_gt_filter_scenario(self, sales):
        """A gt filter keeps rows above the threshold in order."""
        config = make_config(filter={"column": "sales", "operator": "gt", "value": 120})
        assert process_rows(sales, config) == [
            {"region": "West", "sales": 200.0},
            {"region": "East", "sales": 150.0},
        ]

    def test_string_threshold_is_coerced(self, sales):
        """A string threshold is parsed as a number."""
        spec = FilterSpec(column="sales", operator="gt", value="120")
        assert [r["sales"] for r in apply_filter(sales.rows, spec)] == ["200", "150"]

    def test_non_numeric_threshold_matches_nothing(self, sales):
        """A non-numeric threshold keeps no rows."""
        spec = FilterSpec(column="sales", operator="lt", value="lots")
        assert apply_filter(sales.rows, spec) == []

    def test_between_is_inclusive(self, sales):
        """Between keeps rows on both bounds."""
        spec = FilterSpec(column="sales", operator="between", value=[100, 150])
        assert [r["sales"] for r in apply_filter(sales.rows, spec)] == ["100", "150"]

    def test_between_with_bad_pair_matches_nothing(self, sales):
        """Between without a pair keeps no rows."""
        spec = FilterSpec(column="sales", operator="between", value=150)
        assert apply_filter(sales.rows, spec) == []

    @pytest.mark.parametrize("op,value,expected", [
        ("lt", 150, ["100"]),
        ("lte", 150, ["100", "150"]),
        ("gte", 150, ["200", "150"]),
        ("eq", 150, ["150"]),
    ])
    def test_comparisons(self, sales, op, value, expected):
        """Each comparison operator keeps the expected rows."""
        spec = FilterSpec(column="sales", operator=op, value=value)
        assert [r["sales"] for r in apply_filter(sales.rows, spec)] == expected

    def test_eq_is_exact_float_equality(self):
        """Eq compares floats exactly."""
        # 0.1 + 0.2 != 0.3 in floating point; eq keeps that sharp edge
        rows = [{"v": "0.3"}]
        assert apply_filter(rows, FilterSpec(column="v", operator="eq", value=0.1 + 0.2)) == []
        assert apply_filter(rows, FilterSpec(column="v", operator="eq", value=0.3)) == rows

    def test_non_numeric_cells_excluded(self):
        """Rows with non-numeric cells never match."""
        rows = [{"v": "n/a"}, {"v": ""}, {"v": None}, {"v": "5"}]
        spec = FilterSpec(column="v", operator="lt", value=1000)
        assert apply_filter(rows, spec) == [{"v": "5"}]

    def test_huge_integer_threshold(self, sales):
        """An integer threshold past float range compares as infinite."""
        config = make_config(filter={"column": "sales", "operator": "lt", "value": json.loads("1" + "0" * 400)})
        assert len(process_rows(sales, config)) == 3
        config = make_config(filter={"column": "sales", "operator": "gt", "value": 10**400})
        assert process_rows(sales, config) == []

    def test_filter_is_idempotent(self, sales):
        """Filtering twice equals filtering once."""
        spec = FilterSpec(column="sales", operator="gte", value=150)
        once = apply_filter(sales.rows, spec)
        assert apply_filter(once, spec) == once


class TestAggregation:
    """Tests for the aggregation stage."""

    def test_sum_by_region_scenario(self, sales):
        """Sum grouped by region in first-seen order."""
        config = make_config(aggregation={"type": "sum", "groupBy": "region"})
        assert process_rows(sales, config) == [
            {"region": "East", "sales": 250},
            {"region": "West", "sales": 200},
        ]

    def test_without_group_by_uses_total_key(self, sales):
        """Without groupBy all rows fall into one total group."""
        spec = AggregationSpec(type="sum")
        assert apply_aggregation(sales.rows, spec, "sales") == [{"group": "total", "sales": 450.0}]

    @pytest.mark.parametrize("agg_type,expected", [
        ("count", [2, 1]),
        ("sum", [250.0, 200.0]),
        ("average", [125.0, 200.0]),
        ("max", [150.0, 200.0]),
        ("min", [100.0, 200.0]),
    ])
    def test_reducers(self, sales, agg_type, expected):
        """Each reducer over the whole column."""
        spec = AggregationSpec(type=agg_type, group_by="region")
        out = apply_aggregation(sales.rows, spec, "sales")
        assert [r["region"] for r in out] == ["East", "West"]
        assert [r["sales"] for r in out] == expected

    def test_count_discards_non_numeric_values(self):
        """Count only counts numeric values."""
        rows = [{"g": "a", "v": "1"}, {"g": "a", "v": "oops"}, {"g": "a", "v": ""}]
        out = apply_aggregation(rows, AggregationSpec(type="count", group_by="g"), "v")
        assert out == [{"g": "a", "v": 1}]

    def test_aggregation_column_defaults_to_y_axis(self):
        """The aggregated column defaults to the y axis."""
        rows = [{"g": "a", "units": "3", "sales": "10"}, {"g": "a", "units": "4", "sales": "20"}]
        by_units = apply_aggregation(rows, AggregationSpec(type="sum", column="units", group_by="g"), "sales")
        by_sales = apply_aggregation(rows, AggregationSpec(type="sum", group_by="g"), "sales")
        assert by_units == [{"g": "a", "sales": 7.0}]
        assert by_sales == [{"g": "a", "sales": 30.0}]

    def test_output_drops_other_columns(self):
        """Aggregated rows carry only the group key and the value."""
        ds = Dataset.from_table(["region", "rep", "sales"], [["East", "Ann", "5"], ["East", "Bo", "6"]])
        config = make_config(headers=ds.headers, aggregation={"type": "sum", "groupBy": "region"})
        assert process_rows(ds, config) == [{"region": "East", "sales": 11.0}]

    def test_empty_group_average_is_pruned(self):
        """A group with no numeric values is pruned for average."""
        ds = Dataset.from_table(HEADERS, [["East", "abc"], ["West", "10"]])
        config = make_config(aggregation={"type": "average", "groupBy": "region"})
        assert process_rows(ds, config) == [{"region": "West", "sales": 10.0}]

    def test_empty_group_sum_is_zero(self):
        """A group with no numeric values sums to zero."""
        ds = Dataset.from_table(HEADERS, [["East", "abc"]])
        config = make_config(aggregation={"type": "sum", "groupBy": "region"})
        assert process_rows(ds, config) == [{"region": "East", "sales": 0.0}]

    def test_filter_runs_before_aggregation(self, sales):
        """The filter applies before aggregation."""
        config = make_config(
            filter={"column": "sales", "operator": "gt", "value": 120},
            aggregation={"type": "count", "groupBy": "region"},
        )
        assert process_rows(sales, config) == [
            {"region": "West", "sales": 1},
            {"region": "East", "sales": 1},
        ]


class TestCoercionAndPruning:
    """Tests for type coercion and blank-axis pruning."""

    def test_coerce_row_only_touches_whole_numbers(self):
        """Only cells that are whole numbers become floats."""
        row = {"a": "3", "b": "12abc", "c": "", "d": None, "e": "2024-01-15"}
        assert coerce_row(row, list(row)) == {"a": 3.0, "b": "12abc", "c": "", "d": None, "e": "2024-01-15"}

    def test_coerce_row_ignores_non_header_fields(self):
        """Fields outside the headers are left alone."""
        assert coerce_row({"group": "7", "sales": "7"}, ["sales"]) == {"group": "7", "sales": 7.0}

    def test_prune_blank_axes(self):
        """Rows with a blank axis value are dropped."""
        rows = [
            {"x": "a", "y": 0.0},
            {"x": "", "y": 1.0},
            {"x": "b", "y": None},
            {"x": "c"},
        ]
        assert prune_blank_axes(rows, "x", "y") == [{"x": "a", "y": 0.0}]

    def test_no_blank_axis_survives(self):
        """Processed rows never carry a blank axis value."""
        ds = Dataset.from_table(HEADERS, [["East", ""], ["", "5"], ["West", "7"], ["North", "n/a"]])
        out = process_rows(ds, make_config())
        assert out == [{"region": "West", "sales": 7.0}, {"region": "North", "sales": "n/a"}]
        for row in out:
            assert row["region"] not in (None, "")
            assert row["sales"] not in (None, "")

    def test_process_does_not_mutate_dataset(self, sales):
        """Processing leaves the dataset untouched."""
        before = [dict(r) for r in sales.rows]
        process_rows(sales, make_config(aggregation={"type": "sum", "groupBy": "region"}))
        assert sales.rows == before

    def test_process_is_deterministic(self, sales):
        """Processing the same input twice gives the same rows."""
        config = make_config(
            filter={"column": "sales", "operator": "between", "value": [100, 200]},
            aggregation={"type": "average", "groupBy": "region"},
        )
        first = process_rows(sales, config)
        second = process_rows(sales, config)
        assert json.dumps(first) == json.dumps(second)
