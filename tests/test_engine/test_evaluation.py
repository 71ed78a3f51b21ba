"""Tests for full Pareto evaluations and the evaluation session."""

from dataclasses import FrozenInstanceError
from datetime import date
from unittest.mock import patch

import pytest

from delay_pareto.config.settings import settings
from delay_pareto.engine.classifier import Category
from delay_pareto.engine.dimensions import Dimension, InvalidDimension
from delay_pareto.engine.evaluation import (
    ENTITY_COLUMNS,
    EvaluationSession,
    evaluate,
    format_pareto_table,
    get_category_items,
    summarize_categories,
    to_frame,
)
from delay_pareto.engine.filters import FilterContext
from delay_pareto.engine.thresholds import ThresholdConfig, ThresholdStore
from delay_pareto.ingestion.fact_table import FactRecord

DEFAULT = ThresholdConfig(0.7, 0.2)


def _rec(order_id, supplier, delay, product="P-1", region="North", when=date(2024, 1, 15)):
    return FactRecord(
        order_id=order_id,
        product=product,
        supplier=supplier,
        region=region,
        metric=delay,
        order_date=when,
    )


def _example_records():
    # S1..S5 with total delay 40, 25, 20, 10, 5 split over several orders
    return [
        _rec(1, "S1", 30, product="P-1", region="North"),
        _rec(2, "S1", 10, product="P-2", region="South"),
        _rec(3, "S2", 25, product="P-2", region="North"),
        _rec(4, "S3", 12, product="P-3", region="South"),
        _rec(5, "S3", 8, product="P-1", region="East", when=date(2024, 3, 1)),
        _rec(6, "S4", 10, product="P-3", region="East"),
        _rec(7, "S5", 5, product="P-4", region="South", when=date(2024, 3, 2)),
    ]


class TestEvaluate:
    def test_supplier_example(self):
        result = evaluate(FilterContext.build(_example_records(), 1), DEFAULT)
        assert result.dimension is Dimension.SUPPLIER
        assert result.grand_total == 100
        assert [e.key for e in result.entities] == ["S1", "S2", "S3", "S4", "S5"]
        assert [e.rank for e in result.entities] == [1, 2, 3, 4, 5]
        assert [e.cumulative_sum for e in result.entities] == [40, 65, 85, 95, 100]
        assert [e.cumulative_pct for e in result.entities] == pytest.approx([0.40, 0.65, 0.85, 0.95, 1.0])
        assert [e.category for e in result.entities] == [
            Category.A, Category.A, Category.B, Category.C, Category.C,
        ]
        assert result.narrative == "Top 2 Suppliers contribute 65.00% of total delivery delay."

    def test_boundary_labels(self):
        result = evaluate(FilterContext.build(_example_records(), 1), DEFAULT)
        assert all(e.boundary_label == e.cumulative_pct for e in result.entities)

    def test_category_summary(self):
        result = evaluate(FilterContext.build(_example_records(), 1), DEFAULT)
        assert [(s.category, s.total_metric, s.count) for s in result.categories] == [
            (Category.A, 65, 2),
            (Category.B, 20, 1),
            (Category.C, 15, 2),
        ]

    def test_partition_sums_to_grand_total(self):
        for dimension in Dimension:
            result = evaluate(FilterContext.build(_example_records(), dimension), DEFAULT)
            assert all(e.category is not None for e in result.entities)
            assert sum(s.total_metric for s in result.categories) == result.grand_total

    def test_switching_dimension(self):
        result = evaluate(FilterContext.build(_example_records(), 2), DEFAULT)
        assert [(e.key, e.metric_sum) for e in result.entities] == [
            ("North", 55), ("South", 27), ("East", 18),
        ]
        assert result.narrative.startswith("Top 1 Regions contribute 55.00%")

    def test_threshold_change_recomputes(self):
        ctx = FilterContext.build(_example_records(), 1)
        wider = evaluate(ctx, ThresholdConfig(0.9, 0.05))
        assert [e.category for e in wider.entities] == [
            Category.A, Category.A, Category.A, Category.B, Category.C,
        ]
        assert wider.narrative == "Top 3 Suppliers contribute 85.00% of total delivery delay."

    def test_date_filter_changes_total(self):
        ctx = FilterContext.build(_example_records(), 1, date_to=date(2024, 2, 1))
        result = evaluate(ctx, DEFAULT)
        assert result.grand_total == 87
        assert [e.key for e in result.entities] == ["S1", "S2", "S3", "S4"]
        assert result.entities[-1].cumulative_pct == pytest.approx(1.0)

    def test_entity_selection_keeps_curve_position(self):
        ctx = FilterContext.build(_example_records(), 1, selections={1: ["S3", "S5"]})
        result = evaluate(ctx, DEFAULT)
        assert result.grand_total == 100
        assert [(e.key, e.rank) for e in result.entities] == [("S3", 3), ("S5", 5)]
        assert [e.cumulative_pct for e in result.entities] == pytest.approx([0.85, 1.0])
        assert [e.category for e in result.entities] == [Category.B, Category.C]

    def test_empty_context(self):
        result = evaluate(FilterContext.build([], 0), DEFAULT)
        assert result.entities == ()
        assert result.grand_total == 0
        assert [s.count for s in result.categories] == [0, 0, 0]
        assert result.narrative.startswith("No Products")

    def test_zero_grand_total_is_blank(self):
        records = [_rec(1, "S1", 0), _rec(2, "S2", 0)]
        result = evaluate(FilterContext.build(records, 1), DEFAULT)
        assert [e.rank for e in result.entities] == [1, 1]
        assert all(e.cumulative_pct is None for e in result.entities)
        assert all(e.category is None for e in result.entities)
        assert all(e.boundary_label is None for e in result.entities)

    def test_raising_a_never_lowers_a_count(self):
        ctx = FilterContext.build(_example_records(), 0)
        counts = [
            evaluate(ctx, ThresholdConfig(a / 10, 0.1)).categories[0].count
            for a in range(11)
        ]
        assert counts == sorted(counts)


class TestSummarizeCategories:
    def test_empty(self):
        assert [(s.category, s.total_metric, s.count) for s in summarize_categories([])] == [
            (Category.A, 0, 0), (Category.B, 0, 0), (Category.C, 0, 0),
        ]


class TestPresentation:
    def test_get_category_items(self):
        result = evaluate(FilterContext.build(_example_records(), 1), DEFAULT)
        assert [e.key for e in get_category_items(result, "C")] == ["S4", "S5"]
        assert [e.key for e in get_category_items(result, Category.B)] == ["S3"]

    def test_to_frame(self):
        result = evaluate(FilterContext.build(_example_records(), 1), DEFAULT)
        df = to_frame(result)
        assert list(df.columns) == ENTITY_COLUMNS
        assert len(df) == 5
        assert df["category"].tolist() == ["A", "A", "B", "C", "C"]
        assert df["cumulative_sum"].tolist() == [40, 65, 85, 95, 100]

    def test_to_frame_empty(self):
        df = to_frame(evaluate(FilterContext.build([], 1), DEFAULT))
        assert list(df.columns) == ENTITY_COLUMNS
        assert df.empty

    def test_format_table(self):
        result = evaluate(FilterContext.build(_example_records(), 1), DEFAULT)
        text = format_pareto_table(result)
        assert "Pareto Analysis by Suppliers" in text
        assert "85.00%" in text
        assert "A: 2 suppliers" in text
        assert text.endswith(result.narrative)


class TestEvaluationSession:
    def test_evaluate_and_remember(self):
        session = EvaluationSession(_example_records(), store=ThresholdStore(0.7, 0.2))
        result = session.evaluate(1)
        assert session.last_result is result
        assert result.narrative == "Top 2 Suppliers contribute 65.00% of total delivery delay."

    def test_memoizes_identical_inputs(self):
        session = EvaluationSession(_example_records(), store=ThresholdStore(0.7, 0.2))
        first = session.evaluate(1, selections={2: ["North", "South"]})
        second = session.evaluate(1, selections={2: ["South", "North"]})
        assert first is second

    def test_threshold_change_not_served_from_cache(self):
        store = ThresholdStore(0.7, 0.2)
        session = EvaluationSession(_example_records(), store=store)
        first = session.evaluate(1)
        store.set_a(0.9)
        second = session.evaluate(1)
        assert second is not first
        assert second.thresholds.a_pct == 0.9

    def test_cache_disabled(self):
        session = EvaluationSession(_example_records(), store=ThresholdStore(0.7, 0.2), cache_size=0)
        assert session.evaluate(1) is not session.evaluate(1)

    def test_cache_bounded(self):
        session = EvaluationSession(_example_records(), store=ThresholdStore(0.7, 0.2), cache_size=2)
        first = session.evaluate(0)
        session.evaluate(1)
        session.evaluate(2)
        assert session.evaluate(0) is not first

    def test_invalid_dimension_keeps_previous_result(self):
        session = EvaluationSession(_example_records(), store=ThresholdStore(0.7, 0.2))
        good = session.evaluate(2)
        with pytest.raises(InvalidDimension):
            session.evaluate(3)
        assert session.last_result is good

    def test_clear_cache(self):
        session = EvaluationSession(_example_records(), store=ThresholdStore(0.7, 0.2))
        first = session.evaluate(1)
        session.clear_cache()
        assert session.evaluate(1) is not first

    def test_cached_result_cannot_be_altered(self):
        session = EvaluationSession(_example_records(), store=ThresholdStore(0.7, 0.2))
        first = session.evaluate(1)
        with pytest.raises(FrozenInstanceError):
            first.entities[0].cumulative_pct = 0.0
        with pytest.raises(AttributeError):
            first.entities.pop()
        with pytest.raises(FrozenInstanceError):
            first.narrative = ""
        second = session.evaluate(1)
        assert len(second.entities) == 5
        assert second.entities[0].cumulative_pct == pytest.approx(0.40)

    def test_settings_read_once_per_session(self, monkeypatch):
        monkeypatch.setattr(settings, "metric_label", "delivery delay")
        session = EvaluationSession(_example_records(), store=ThresholdStore(0.7, 0.2))
        monkeypatch.setattr(settings, "metric_label", "late days")
        assert session.evaluate(1).narrative.endswith("of total delivery delay.")
        session.clear_cache()
        assert session.evaluate(1).narrative.endswith("of total delivery delay.")

    def test_session_label_and_precision_overrides(self):
        session = EvaluationSession(
            _example_records(),
            store=ThresholdStore(0.7, 0.2),
            precision=1,
            metric_label="late days",
        )
        result = session.evaluate(1)
        assert result.narrative.endswith("of total late days.")
        assert [e.boundary_label for e in get_category_items(result, "C")] == pytest.approx([0.95, 1.0])


class TestCandidateScan:
    def test_filters_applied_once_per_evaluation(self):
        original = FilterContext.candidate_records
        ctx = FilterContext.build(_example_records(), 1, date_to=date(2024, 2, 1))
        with patch.object(FilterContext, "candidate_records", autospec=True, side_effect=original) as scan:
            result = evaluate(ctx, DEFAULT)
        assert scan.call_count == 1
        assert result.grand_total == 87
