from __future__ import annotations

from dataclasses import asdict
import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import DashboardRequestModel
from spend_core.aggregation import AggregationEngine, compute_dashboard
from spend_core.config import DashboardConfig, normalize_config
from spend_core.errors import SheetLoadError
from spend_core.narrative import NarrativeService, analyze_records
from spend_core.settings import configure_logging, settings
from spend_core.sheet_loader import load_sheet_records


configure_logging()
app = FastAPI(title="Site Spending Dashboard API", version=settings.VERSION)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _config_from_request(request: DashboardRequestModel) -> DashboardConfig:
    return normalize_config(request.config.model_dump())


def _load(request: DashboardRequestModel, config: DashboardConfig):
    return load_sheet_records(request.sheet_id, request.gid, config)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception, where: str) -> JSONResponse:
    if isinstance(exc, SheetLoadError):
        logger.warning("%s: %s", where, exc.message)
        return JSONResponse(status_code=502, content=exc.to_dict())
    logger.exception("%s failed", where)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/dashboard")
def dashboard(request: DashboardRequestModel):
    try:
        config = _config_from_request(request)
        records = _load(request, config)
        return _json(compute_dashboard(records, config, selected_site=request.selected_site))
    except Exception as exc:
        return _error(exc, "dashboard")


@app.post("/meta/sites")
def meta_sites(request: DashboardRequestModel):
    try:
        config = _config_from_request(request)
        records = _load(request, config)
        sites = [s.name for s in AggregationEngine(records, config).site_summary()]
        return _json({"sites": sites})
    except Exception as exc:
        return _error(exc, "meta_sites")


@app.post("/narrative")
def narrative(request: DashboardRequestModel):
    try:
        config = _config_from_request(request)
        records = _load(request, config)
        service = NarrativeService(sample_rows=config.narrative_sample_rows)
        return _json({"narrative": analyze_records(records, service)})
    except Exception as exc:
        return _error(exc, "narrative")


@app.post("/export/records")
def export_records(request: DashboardRequestModel):
    try:
        config = _config_from_request(request)
        records = _load(request, config)
    except Exception as exc:
        return _error(exc, "export_records")

    engine = AggregationEngine(records, config)
    filtered = engine.filtered_records
    export_df = pd.DataFrame(filtered, columns=list(records[0].keys()) if records else None)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8-sig")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=records.csv"},
    )


@app.get("/config/default")
def default_config():
    return _json(asdict(DashboardConfig()))
