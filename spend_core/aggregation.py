from __future__ import annotations

from dataclasses import asdict, replace
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from spend_core.charts import site_share_chart, to_vega_spec, type_breakdown_chart
from spend_core.config import DEFAULT_CONFIG, DashboardConfig
from spend_core.models import (
    AccountItem,
    CategorySummary,
    GroupedDetail,
    HeadlineStat,
    Record,
    as_metric,
    cell_label,
    is_number,
)


FRAME_COLUMNS = ["site", "type", "account", "value"]


class AggregationEngine:
    """Derived dashboard views over one loaded record set.

    Nothing is cached: every property re-derives from `records`, so a new
    record list or config simply means a new engine.
    """

    def __init__(self, records: Iterable[Record], config: DashboardConfig = DEFAULT_CONFIG) -> None:
        self.records: List[Record] = list(records)
        self.config = config

    # ---------- record selection ----------
    @property
    def filtered_records(self) -> List[Record]:
        excluded = set(self.config.excluded_sites)
        column = self.config.site_column
        return [r for r in self.records if cell_label(r.get(column), "") not in excluded]

    @property
    def record_count(self) -> int:
        return len(self.filtered_records)

    def _is_date_column(self, header: str) -> bool:
        for keyword in self.config.date_keywords:
            if keyword.isascii():
                if keyword.lower() in header.lower():
                    return True
            elif keyword in header:
                return True
        return False

    @property
    def numeric_columns(self) -> List[str]:
        # Only the first record is sampled; a column that is blank there is not numeric.
        filtered = self.filtered_records
        if not filtered:
            return []
        first = filtered[0]
        return [key for key, value in first.items() if is_number(value) and not self._is_date_column(key)]

    @property
    def primary_metric(self) -> Optional[str]:
        columns = self.numeric_columns
        for col in columns:
            if any(k in col for k in self.config.metric_keywords):
                return col
        return columns[0] if columns else None

    def _frame(self, records: List[Record]) -> pd.DataFrame:
        c = self.config
        metric = self.primary_metric
        return pd.DataFrame(
            {
                "site": [cell_label(r.get(c.site_column), c.other_site_label) for r in records],
                "type": [cell_label(r.get(c.type_column), c.other_type_label) for r in records],
                "account": [cell_label(r.get(c.account_column), c.other_account_label) for r in records],
                "value": [as_metric(r.get(metric)) if metric else 0.0 for r in records],
            },
            columns=FRAME_COLUMNS,
        )

    # ---------- summaries ----------
    def site_summary(self) -> List[CategorySummary]:
        frame = self._frame(self.filtered_records)
        if frame.empty:
            return []
        sums = (
            frame.groupby("site", sort=False)["value"]
            .sum()
            .reset_index()
            .sort_values("value", ascending=False, kind="mergesort")
        )
        return [CategorySummary(name=str(r.site), value=float(r.value)) for r in sums.itertuples(index=False)]

    def grouped_detail(self, site: Optional[str]) -> List[GroupedDetail]:
        if not site:
            return []
        frame = self._frame(self.filtered_records)
        frame = frame[frame["site"] == site]
        if frame.empty:
            return []

        per_account = frame.groupby(["type", "account"], sort=False)["value"].sum().reset_index()
        groups: List[GroupedDetail] = []
        for work_type in per_account["type"].drop_duplicates():
            sub = per_account[per_account["type"] == work_type].sort_values("value", ascending=False, kind="mergesort")
            items = [AccountItem(account=str(r.account), value=float(r.value)) for r in sub.itertuples(index=False)]
            groups.append(GroupedDetail(type=str(work_type), items=items, total=float(sum(i.value for i in items))))
        return sorted(groups, key=lambda g: g.total, reverse=True)

    def headline_stats(self) -> List[HeadlineStat]:
        filtered = self.filtered_records
        columns = self.numeric_columns
        if not filtered or not columns:
            return []
        return [
            HeadlineStat(label=col, value=float(sum(as_metric(r.get(col)) for r in filtered)))
            for col in columns[: self.config.headline_count]
        ]

    @property
    def total_sum(self) -> float:
        return float(sum(s.value for s in self.site_summary()))

    def share_pct(self, value: float, total: Optional[float] = None) -> Optional[float]:
        total = self.total_sum if total is None else total
        if not total:
            return None
        return value / total * 100

    def site_shares(self) -> List[CategorySummary]:
        summary = self.site_summary()
        total = float(sum(s.value for s in summary))
        return [replace(s, share_pct=self.share_pct(s.value, total)) for s in summary]


def compute_dashboard(
    records: Iterable[Record],
    config: DashboardConfig = DEFAULT_CONFIG,
    *,
    selected_site: Optional[str] = None,
) -> Dict[str, Any]:
    engine = AggregationEngine(records, config)
    summary = engine.site_shares()
    names = {s.name for s in summary}
    site = selected_site if selected_site in names else None
    detail = engine.grouped_detail(site)

    charts: Dict[str, Any] = {}
    donut = site_share_chart(summary)
    if donut is not None:
        charts["site_share"] = to_vega_spec(donut)
    bars = type_breakdown_chart(detail)
    if bars is not None:
        charts["type_breakdown"] = to_vega_spec(bars)

    return {
        "config": asdict(config),
        "record_count": engine.record_count,
        "numeric_columns": engine.numeric_columns,
        "primary_metric": engine.primary_metric,
        "stats": [asdict(s) for s in engine.headline_stats()],
        "site_summary": [asdict(s) for s in summary],
        "total_sum": float(sum(s.value for s in summary)),
        "selected_site": site,
        "grouped_detail": [asdict(g) for g in detail],
        "charts": charts,
    }
