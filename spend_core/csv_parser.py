from __future__ import annotations

import csv
import math
import re
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from spend_core.config import DEFAULT_CONFIG, DashboardConfig
from spend_core.models import CellValue, Record


_LINE_SPLIT = re.compile(r"\r?\n")
# csv.reader rejects a bare CR or NUL in an unquoted field; both are cell content here.
_SHIELD = {"\r": "\ue000", "\x00": "\ue001"}


def _strip_quotes(cell: str) -> str:
    cell = cell.strip()
    if len(cell) >= 2 and cell.startswith('"') and cell.endswith('"'):
        cell = cell[1:-1]
    return cell.strip()


def _shield(line: str) -> str:
    for raw, stand_in in _SHIELD.items():
        line = line.replace(raw, stand_in)
    return line


def _unshield(cell: str) -> str:
    for raw, stand_in in _SHIELD.items():
        cell = cell.replace(stand_in, raw)
    return cell


def split_lines(text: str) -> List[str]:
    return [line for line in _LINE_SPLIT.split(text or "") if line.strip() != ""]


def tokenize_line(line: str) -> List[str]:
    """Split one CSV line on commas, keeping commas inside double quotes.

    Never raises: a stray CR stays in its cell and an unterminated quote runs to
    the end of the line.
    """
    reader = csv.reader([_shield(line)], skipinitialspace=True)
    cells = next(reader, [])
    return [_strip_quotes(_unshield(c)) for c in cells]


def tokenize_csv(text: str) -> List[List[str]]:
    return [tokenize_line(line) for line in split_lines(text)]


def locate_header(rows: Sequence[Sequence[str]], keywords: Iterable[str], scan_rows: int = 10) -> int:
    """Index of the row with the most keyword-bearing cells among the first `scan_rows`.

    Ties keep the earliest row; 0 when no row mentions any keyword.
    """
    keywords = [k for k in keywords if k]
    header_index = 0
    best = 0
    for idx in range(min(scan_rows, len(rows))):
        count = sum(1 for cell in rows[idx] if any(k in cell for k in keywords))
        if count > best:
            best = count
            header_index = idx
    return header_index


def coerce_cell(cell: Optional[str]) -> CellValue:
    if cell is None:
        return None
    s = cell.strip()
    if not s:
        return None
    number = pd.to_numeric(s.replace(",", ""), errors="coerce")
    # inf / nan spellings stay text
    if pd.isna(number) or not math.isfinite(float(number)):
        return s
    return float(number)


def build_records(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> List[Record]:
    records: List[Record] = []
    for row in rows:
        record: Record = {}
        for idx, header in enumerate(headers):
            if not header:
                continue
            record[header] = coerce_cell(row[idx] if idx < len(row) else None)
        records.append(record)
    return records


def parse_csv(text: str, config: DashboardConfig = DEFAULT_CONFIG) -> List[Record]:
    lines = split_lines(text)
    if len(lines) < 2:
        return []
    rows = [tokenize_line(line) for line in lines]
    header_index = locate_header(rows, config.header_keywords, config.header_scan_rows)
    return build_records(rows[header_index], rows[header_index + 1 :])
