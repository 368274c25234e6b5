from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

# One spreadsheet cell after coercion: a number, trimmed text, or absent.
CellValue = Union[float, str, None]

# Keys are the header texts found in the sheet, in column order.
Record = Dict[str, CellValue]


@dataclass(frozen=True)
class CategorySummary:
    name: str
    value: float
    share_pct: Optional[float] = None


@dataclass(frozen=True)
class AccountItem:
    account: str
    value: float


@dataclass(frozen=True)
class GroupedDetail:
    type: str
    items: List[AccountItem] = field(default_factory=list)
    total: float = 0.0


@dataclass(frozen=True)
class HeadlineStat:
    label: str
    value: float


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_metric(value: object) -> float:
    """Numeric cell value, or 0 for text/absent cells."""
    if is_number(value) and value == value:
        return float(value)  # type: ignore[arg-type]
    return 0.0


def cell_label(value: CellValue, default: str) -> str:
    """Render a cell the way the sheet shows it; empty cells fall back to `default`."""
    if value is None or value == "" or (is_number(value) and value == 0):
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
