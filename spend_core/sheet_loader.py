"""Google Sheet CSV export loading.

The export endpoint is more reliable than the gviz API and returns plain CSV
for sheets shared as "anyone with the link". Private sheets redirect to a login
page, which arrives as an HTML body with a 200 status.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

from spend_core.config import DEFAULT_CONFIG, DashboardConfig
from spend_core.csv_parser import parse_csv
from spend_core.errors import EmptySheetError, MissingColumnsError, SheetAccessError, SheetPermissionError
from spend_core.models import Record
from spend_core.settings import settings


logger = logging.getLogger(__name__)

EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"
HTML_MARKERS = ("<!DOCTYPE html>", "<html")


def build_export_url(sheet_id: str, gid: int = 0) -> str:
    return EXPORT_URL.format(sheet_id=sheet_id, gid=gid)


def looks_like_html(text: str) -> bool:
    return any(marker in text for marker in HTML_MARKERS)


def fetch_sheet_csv(
    sheet_id: str,
    gid: int = 0,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> str:
    url = build_export_url(sheet_id, gid)
    logger.info("Fetching CSV data from GID: %s", gid)
    http = session or requests
    try:
        response = http.get(url, timeout=timeout or settings.SHEET_TIMEOUT_SECONDS)
    except requests.RequestException:
        logger.exception("Fetch failed for %s", url)
        raise

    if not response.ok:
        raise SheetAccessError(response.status_code, detail=f"GET {url} -> {response.status_code} {response.reason}")

    response.encoding = "utf-8"
    text = response.text
    if looks_like_html(text):
        raise SheetPermissionError(detail=f"GET {url} returned an HTML page instead of CSV")
    return text


def fetch_sheet_data(
    sheet_id: str,
    gid: int = 0,
    config: DashboardConfig = DEFAULT_CONFIG,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> List[Record]:
    text = fetch_sheet_csv(sheet_id, gid, session=session, timeout=timeout)
    try:
        return parse_csv(text, config)
    except Exception:
        logger.exception("CSV parse failed for sheet %s gid %s", sheet_id, gid)
        raise


def validate_records(records: List[Record], config: DashboardConfig = DEFAULT_CONFIG) -> List[Record]:
    if not records:
        raise EmptySheetError()
    headers = list(records[0].keys())
    if not any(k in h for k in config.required_keywords for h in headers):
        raise MissingColumnsError(headers, config.required_keywords)
    return records


def load_sheet_records(
    sheet_id: Optional[str] = None,
    gid: Optional[int] = None,
    config: DashboardConfig = DEFAULT_CONFIG,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> List[Record]:
    """Fetch, parse and validate one sheet tab. The batch is all-or-nothing."""
    records = fetch_sheet_data(
        sheet_id or settings.SHEET_ID,
        settings.SHEET_GID if gid is None else gid,
        config,
        session=session,
        timeout=timeout,
    )
    validate_records(records, config)
    logger.info("Loaded %d records", len(records))
    return records
