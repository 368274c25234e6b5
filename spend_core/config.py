from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class DashboardConfig:
    header_keywords: Tuple[str, ...] = ("현장", "공종", "계정", "금액")
    header_scan_rows: int = 10
    required_keywords: Tuple[str, ...] = ("현장", "공종", "계정")
    site_column: str = "현장"
    type_column: str = "공종"
    account_column: str = "계정"
    excluded_sites: Tuple[str, ...] = ("본당", "DMZ", "샤론키친")
    metric_keywords: Tuple[str, ...] = ("금액", "합계", "비용", "Amount", "Total", "실적")
    # ASCII terms match case-insensitively, localized terms as plain substrings.
    date_keywords: Tuple[str, ...] = ("날짜", "date")
    other_site_label: str = "기타"
    other_type_label: str = "기타 공종"
    other_account_label: str = "기타 계정"
    headline_count: int = 3
    narrative_sample_rows: int = 50


DEFAULT_CONFIG = DashboardConfig()


def _as_str_tuple(values: Optional[Iterable[object]], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if values is None or isinstance(values, str):
        return default
    out = tuple(str(v).strip() for v in values if v is not None and str(v).strip())
    return out or default


def _as_label(value: object, default: str) -> str:
    if value is None:
        return default
    s = str(value).strip()
    return s or default


def _as_bounded_int(value: object, default: int, low: int, high: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(low, min(high, out))


def normalize_config(raw: Optional[dict]) -> DashboardConfig:
    raw = raw or {}
    d = DEFAULT_CONFIG

    # An empty exclusion list is a legitimate choice, so only None falls back.
    excluded = raw.get("excluded_sites")
    if excluded is None or isinstance(excluded, str):
        excluded_sites = d.excluded_sites
    else:
        excluded_sites = tuple(str(v).strip() for v in excluded if v is not None and str(v).strip())

    return DashboardConfig(
        header_keywords=_as_str_tuple(raw.get("header_keywords"), d.header_keywords),
        header_scan_rows=_as_bounded_int(raw.get("header_scan_rows", d.header_scan_rows), d.header_scan_rows, 1, 100),
        required_keywords=_as_str_tuple(raw.get("required_keywords"), d.required_keywords),
        site_column=_as_label(raw.get("site_column"), d.site_column),
        type_column=_as_label(raw.get("type_column"), d.type_column),
        account_column=_as_label(raw.get("account_column"), d.account_column),
        excluded_sites=excluded_sites,
        metric_keywords=_as_str_tuple(raw.get("metric_keywords"), d.metric_keywords),
        date_keywords=_as_str_tuple(raw.get("date_keywords"), d.date_keywords),
        other_site_label=_as_label(raw.get("other_site_label"), d.other_site_label),
        other_type_label=_as_label(raw.get("other_type_label"), d.other_type_label),
        other_account_label=_as_label(raw.get("other_account_label"), d.other_account_label),
        headline_count=_as_bounded_int(raw.get("headline_count", d.headline_count), d.headline_count, 1, 20),
        narrative_sample_rows=_as_bounded_int(
            raw.get("narrative_sample_rows", d.narrative_sample_rows), d.narrative_sample_rows, 1, 500
        ),
    )
