from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

from spend_core.models import CategorySummary, GroupedDetail

alt.data_transformers.disable_max_rows()

MINT = "#b5f5be"
PURPLE = "#d8b4fe"
THEME_COLORS = [MINT, PURPLE, "#e2e8f0", "#fbbf24", "#f472b6", "#60a5fa"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def site_share_chart(summary: Sequence[CategorySummary]) -> Optional[alt.Chart]:
    if not summary:
        return None
    df = pd.DataFrame(
        [{"name": s.name, "value": s.value, "share_pct": s.share_pct} for s in summary],
        columns=["name", "value", "share_pct"],
    )
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=100, outerRadius=140, padAngle=0.04)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color(
                "name:N",
                title="현장",
                sort=df["name"].tolist(),
                scale=alt.Scale(range=THEME_COLORS),
            ),
            tooltip=[
                alt.Tooltip("name:N", title="현장"),
                alt.Tooltip("value:Q", title="금액", format=",.0f"),
                alt.Tooltip("share_pct:Q", title="비중(%)", format=".1f"),
            ],
        )
    )


def type_breakdown_chart(detail: Sequence[GroupedDetail]) -> Optional[alt.Chart]:
    rows: List[Dict[str, Any]] = [
        {"type": group.type, "account": item.account, "value": item.value}
        for group in detail
        for item in group.items
    ]
    if not rows:
        return None
    df = pd.DataFrame(rows, columns=["type", "account", "value"])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            y=alt.Y("type:N", title="공종", sort=[g.type for g in detail]),
            x=alt.X("value:Q", title="금액", stack="zero", axis=alt.Axis(format=",.0f")),
            color=alt.Color("account:N", title="계정"),
            tooltip=[
                alt.Tooltip("type:N", title="공종"),
                alt.Tooltip("account:N", title="계정"),
                alt.Tooltip("value:Q", title="금액", format=",.0f"),
            ],
        )
    )
