from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import MetaOptionsResponse, SalesFiltersModel, SimulationRequest
from sales_core.data import DATA_FILE, dataset_profile, load_dashboard_data, prepare_context
from sales_core.filters import SalesFilters, normalize_filters
from sales_core.metrics_insights import compute_insights
from sales_core.metrics_overview import compute_overview
from sales_core.metrics_performance import compute_performance
from sales_core.metrics_profitability import compute_profitability
from sales_core.metrics_simulator import compute_simulation
from sales_core.metrics_trends import compute_trends
from sales_core.simulator import SimulationSession


app = FastAPI(title="Mumbai Electronics Sales Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: SalesFiltersModel) -> SalesFilters:
    return normalize_filters(model.model_dump())


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
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/options")
def meta_options():
    try:
        data_ctx = load_dashboard_data()
        options = data_ctx.get("options") or {}
        response = MetaOptionsResponse(
            stores=options.get("stores", []),
            categories=options.get("categories", []),
            months=options.get("months", []),
            days_of_week=options.get("days_of_week", []),
        )
        return _json(response.model_dump())
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc)


@app.get("/meta/profile")
def meta_profile():
    try:
        data_ctx = load_dashboard_data()
        return _json(dataset_profile(data_ctx.get("records", [])))
    except Exception as exc:
        logger.exception("meta_profile failed")
        return _error(exc)


@app.post("/overview")
def overview(filters: SalesFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/trends")
def trends(filters: SalesFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute_trends(f, ctx))
    except Exception as exc:
        logger.exception("trends failed")
        return _error(exc)


@app.post("/performance")
def performance(
    filters: SalesFiltersModel,
    view: Literal["store", "category"] = Query(default="store"),
):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute_performance(f, ctx, view=view))
    except Exception as exc:
        logger.exception("performance failed")
        return _error(exc)


@app.post("/profitability")
def profitability(filters: SalesFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute_profitability(f, ctx))
    except Exception as exc:
        logger.exception("profitability failed")
        return _error(exc)


@app.post("/simulate")
def simulate(request: SimulationRequest):
    try:
        f = _filters_from_model(request.filters)
        ctx = prepare_context(f, load_dashboard_data())
        session = SimulationSession(best_roi=request.session.best_roi, best_budget=request.session.best_budget)
        return _json(compute_simulation(f, ctx, budget=request.budget, session=session))
    except Exception as exc:
        logger.exception("simulate failed")
        return _error(exc)


@app.post("/insights")
def insights(filters: SalesFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute_insights(f, ctx))
    except Exception as exc:
        logger.exception("insights failed")
        return _error(exc)


@app.get("/export/csv")
def export_csv():
    data_ctx = load_dashboard_data()
    raw_text = data_ctx.get("raw_text") or ""
    return Response(
        content=raw_text.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={DATA_FILE}"},
    )
