from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class DashboardConfigModel(BaseModel):
    header_keywords: Optional[List[str]] = None
    header_scan_rows: int = 10
    required_keywords: Optional[List[str]] = None
    site_column: Optional[str] = None
    type_column: Optional[str] = None
    account_column: Optional[str] = None
    excluded_sites: Optional[List[str]] = None
    metric_keywords: Optional[List[str]] = None
    date_keywords: Optional[List[str]] = None
    other_site_label: Optional[str] = None
    other_type_label: Optional[str] = None
    other_account_label: Optional[str] = None
    headline_count: int = 3
    narrative_sample_rows: int = 50


class DashboardRequestModel(BaseModel):
    sheet_id: Optional[str] = None
    gid: Optional[int] = None
    selected_site: Optional[str] = None
    config: DashboardConfigModel = Field(default_factory=DashboardConfigModel)


class SitesResponse(BaseModel):
    sites: List[str]


class NarrativeResponse(BaseModel):
    narrative: str
