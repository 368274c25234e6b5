"""
tests/test_aggregation.py

Unit tests for AggregationEngine and compute_dashboard. Records are built
inline; every assertion is deterministic.
"""

from __future__ import annotations

import pytest

from spend_core.aggregation import AggregationEngine, compute_dashboard
from spend_core.config import DashboardConfig
from spend_core.csv_parser import parse_csv
from spend_core.models import AccountItem, CategorySummary, GroupedDetail, HeadlineStat


def _row(site, work_type, account, amount, **extra):
    row = {"현장": site, "공종": work_type, "계정": account, "금액": amount}
    row.update(extra)
    return row


@pytest.fixture()
def records() -> list:
    return [
        _row("A", "공사", "자재", 1000.0),
        _row("A", "공사", "인건비", 300.0),
        _row("A", "설비", "자재", 200.0),
        _row("A", "공사", "자재", 500.0),
        _row("B", "공사", "자재", 400.0),
        _row("본당", "공사", "자재", 9999.0),
        _row("DMZ", "설비", "장비", 5000.0),
        _row("C", None, None, 100.0),
    ]


@pytest.fixture()
def engine(records) -> AggregationEngine:
    return AggregationEngine(records)


# ---------------------------------------------------------------------------
# Filtering and column detection
# ---------------------------------------------------------------------------


class TestFilter:
    def test_excluded_sites_are_dropped(self, engine: AggregationEngine) -> None:
        sites = {r["현장"] for r in engine.filtered_records}
        assert "본당" not in sites
        assert "DMZ" not in sites
        assert engine.record_count == 6

    def test_custom_exclusions(self, records) -> None:
        engine = AggregationEngine(records, DashboardConfig(excluded_sites=("A",)))
        assert {r["현장"] for r in engine.filtered_records} == {"B", "본당", "DMZ", "C"}

    def test_excluded_site_contributes_nothing(self, engine: AggregationEngine) -> None:
        assert all(s.name != "본당" for s in engine.site_summary())
        assert engine.grouped_detail("본당") == []
        assert engine.headline_stats() == [HeadlineStat(label="금액", value=2500.0)]


class TestNumericColumns:
    def test_detects_numeric_and_skips_dates(self) -> None:
        records = [
            {"현장": "A", "날짜": 20240101.0, "Invoice DATE": 1.0, "수량": 3.0, "금액": 10.0},
        ]
        assert AggregationEngine(records).numeric_columns == ["수량", "금액"]

    def test_samples_only_first_record(self) -> None:
        records = [
            {"현장": "A", "비용": None, "금액": 10.0},
            {"현장": "A", "비용": 50.0, "금액": 20.0},
        ]
        assert AggregationEngine(records).numeric_columns == ["금액"]

    def test_no_records_means_no_columns(self) -> None:
        engine = AggregationEngine([])
        assert engine.numeric_columns == []
        assert engine.primary_metric is None

    def test_primary_metric_prefers_keyword(self) -> None:
        records = [{"현장": "A", "수량": 3.0, "총금액": 10.0}]
        assert AggregationEngine(records).primary_metric == "총금액"

    def test_primary_metric_falls_back_to_first_numeric(self) -> None:
        records = [{"현장": "A", "수량": 3.0, "단가": 10.0}]
        assert AggregationEngine(records).primary_metric == "수량"

    def test_no_numeric_columns_sums_to_zero(self) -> None:
        records = [{"현장": "A", "공종": "공사", "계정": "자재", "비고": "x"}]
        engine = AggregationEngine(records)
        assert engine.primary_metric is None
        assert engine.site_summary() == [CategorySummary(name="A", value=0.0)]
        assert engine.headline_stats() == []


# ---------------------------------------------------------------------------
# Site summary
# ---------------------------------------------------------------------------


class TestSiteSummary:
    def test_sorted_descending(self, engine: AggregationEngine) -> None:
        assert engine.site_summary() == [
            CategorySummary(name="A", value=2000.0),
            CategorySummary(name="B", value=400.0),
            CategorySummary(name="C", value=100.0),
        ]

    def test_total_equals_filtered_metric_sum(self, engine: AggregationEngine) -> None:
        expected = sum(r["금액"] for r in engine.filtered_records)
        assert sum(s.value for s in engine.site_summary()) == pytest.approx(expected)
        assert engine.total_sum == pytest.approx(expected)

    def test_ties_keep_first_seen_order(self) -> None:
        records = [_row("Y", "t", "a", 5.0), _row("X", "t", "a", 5.0), _row("Z", "t", "a", 9.0)]
        assert [s.name for s in AggregationEngine(records).site_summary()] == ["Z", "Y", "X"]

    def test_missing_site_uses_placeholder(self) -> None:
        records = [_row(None, "t", "a", 5.0), _row("", "t", "a", 1.0)]
        assert AggregationEngine(records).site_summary() == [CategorySummary(name="기타", value=6.0)]

    def test_text_metric_values_count_as_zero(self) -> None:
        records = [_row("A", "t", "a", 5.0), _row("A", "t", "a", "미정"), _row("A", "t", "a", None)]
        assert AggregationEngine(records).site_summary() == [CategorySummary(name="A", value=5.0)]

    def test_integral_numeric_site_renders_without_fraction(self) -> None:
        records = [_row(101.0, "t", "a", 5.0)]
        assert AggregationEngine(records).site_summary()[0].name == "101"


# ---------------------------------------------------------------------------
# Grouped detail
# ---------------------------------------------------------------------------


class TestGroupedDetail:
    def test_groups_by_type_then_account(self, engine: AggregationEngine) -> None:
        assert engine.grouped_detail("A") == [
            GroupedDetail(
                type="공사",
                items=[AccountItem(account="자재", value=1500.0), AccountItem(account="인건비", value=300.0)],
                total=1800.0,
            ),
            GroupedDetail(type="설비", items=[AccountItem(account="자재", value=200.0)], total=200.0),
        ]

    def test_total_equals_item_sum(self, engine: AggregationEngine) -> None:
        for group in engine.grouped_detail("A"):
            assert group.total == pytest.approx(sum(i.value for i in group.items))

    def test_accounts_are_deduplicated(self, engine: AggregationEngine) -> None:
        for group in engine.grouped_detail("A"):
            accounts = [i.account for i in group.items]
            assert len(accounts) == len(set(accounts))

    def test_placeholders_for_missing_type_and_account(self, engine: AggregationEngine) -> None:
        assert engine.grouped_detail("C") == [
            GroupedDetail(type="기타 공종", items=[AccountItem(account="기타 계정", value=100.0)], total=100.0)
        ]

    def test_no_selection_is_empty(self, engine: AggregationEngine) -> None:
        assert engine.grouped_detail(None) == []
        assert engine.grouped_detail("") == []
        assert engine.grouped_detail("없는 현장") == []

    def test_is_idempotent(self, engine: AggregationEngine) -> None:
        assert engine.grouped_detail("A") == engine.grouped_detail("A")


# ---------------------------------------------------------------------------
# Headline stats and shares
# ---------------------------------------------------------------------------


class TestHeadlineStats:
    def test_first_columns_in_detection_order(self) -> None:
        records = [
            {"현장": "A", "z": 1.0, "a": 100.0, "m": 10.0, "n": 1000.0},
            {"현장": "A", "z": 2.0, "a": 200.0, "m": "n/a", "n": 1000.0},
        ]
        assert AggregationEngine(records).headline_stats() == [
            HeadlineStat(label="z", value=3.0),
            HeadlineStat(label="a", value=300.0),
            HeadlineStat(label="m", value=10.0),
        ]

    def test_headline_count_is_configurable(self) -> None:
        records = [{"현장": "A", "x": 1.0, "y": 2.0}]
        stats = AggregationEngine(records, DashboardConfig(headline_count=1)).headline_stats()
        assert [s.label for s in stats] == ["x"]


class TestSharePct:
    def test_share_of_total(self, engine: AggregationEngine) -> None:
        assert engine.share_pct(250.0) == pytest.approx(10.0)

    def test_zero_total_is_none(self) -> None:
        engine = AggregationEngine([_row("A", "t", "a", 0.0)])
        assert engine.share_pct(0.0) is None
        assert engine.site_shares()[0].share_pct is None

    def test_site_shares_sum_to_hundred(self, engine: AggregationEngine) -> None:
        assert sum(s.share_pct for s in engine.site_shares()) == pytest.approx(100.0)


# ---------------------------------------------------------------------------
# End-to-end payload
# ---------------------------------------------------------------------------


class TestComputeDashboard:
    def test_example_sheet(self) -> None:
        records = parse_csv('현장,공종,계정,금액\nA,공사,자재,"1,000"\nA,공사,자재,500\n')
        payload = compute_dashboard(records, selected_site="A")
        assert payload["site_summary"] == [{"name": "A", "value": 1500.0, "share_pct": 100.0}]
        assert payload["grouped_detail"] == [
            {"type": "공사", "items": [{"account": "자재", "value": 1500.0}], "total": 1500.0}
        ]
        assert payload["total_sum"] == 1500.0
        assert payload["primary_metric"] == "금액"
        assert set(payload["charts"]) == {"site_share", "type_breakdown"}

    def test_unknown_site_is_not_selected(self, records) -> None:
        payload = compute_dashboard(records, selected_site="본당")
        assert payload["selected_site"] is None
        assert payload["grouped_detail"] == []
        assert "type_breakdown" not in payload["charts"]

    def test_empty_records(self) -> None:
        payload = compute_dashboard([])
        assert payload["record_count"] == 0
        assert payload["site_summary"] == []
        assert payload["stats"] == []
        assert payload["charts"] == {}
