from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from starshot.api.dashboard_html import get_dashboard_html
from starshot.api.state import AppState, build_state, get_state, set_state
from starshot.infrastructure.logging.logging import configure_logging, get_logger
from starshot.infrastructure.utils.config import DashboardConfig, get_config
from starshot.models.forecast_models import ForecastRequest, ForecastResponse
from starshot.services.forecast.profit_forecaster import ForecastError, ForecastSchemaError

JsonDict = Dict[str, Any]

log = get_logger("api")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# --------- Silence ConnectionResetError (browser drops polling connections) ---------
def _api_exception_handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    exc = context.get("exception")
    if exc is not None and isinstance(exc, (ConnectionResetError, ConnectionAbortedError)):
        return
    loop.default_exception_handler(context)


def create_app(state: Optional[AppState] = None, config: Optional[DashboardConfig] = None) -> FastAPI:
    """App factory. Without arguments, the global config (config/default.yaml + .env) is used."""
    if state is None:
        config = config or get_config()
        configure_logging(config.log_level, json_logs=config.json_logs)
        state = build_state(config)
    set_state(state)

    app = FastAPI(title="STARSHOT Trading Dashboard API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=state.config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def _set_loop_exception_handler() -> None:
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(_api_exception_handler)

    # --------- Routes ---------
    @app.get("/health")
    def health() -> JsonDict:
        s = get_state()
        return {
            "ok": True,
            "env": s.config.environment,
            "models": s.trading.models,
            "forecast_enabled": s.forecaster is not None,
        }

    @app.get("/", response_class=HTMLResponse)
    def dashboard() -> HTMLResponse:
        s = get_state()
        html = get_dashboard_html(
            models=s.trading.models,
            poll_interval_seconds=s.config.dashboard.poll_interval_seconds,
            recent_closed_limit=s.config.dashboard.recent_closed_limit,
        )
        return HTMLResponse(content=html)

    @app.get("/api/trading-data")
    async def trading_data(model: Optional[str] = None):
        s = get_state()
        if not s.trading.supports(model):
            log.warning("invalid_model", model=model)
            return _error(400, "Invalid model specified")

        try:
            data = await s.trading.fetch(model)
        except Exception as e:
            log.error("trading_data_failed", model=model, error=str(e), error_type=type(e).__name__)
            return _error(500, f"Failed to fetch data from {model} API. Check server logs for details.")

        return data.to_dict()

    @app.post("/api/profit-forecast", response_model=ForecastResponse)
    async def profit_forecast(payload: ForecastRequest):
        s = get_state()
        if s.forecaster is None:
            return _error(503, "Profit forecasting is not configured (set FORECAST__API_KEY).")

        try:
            return await s.forecaster.predict(payload)
        except ForecastSchemaError as e:
            log.error("forecast_schema_violation", error=str(e))
            return _error(502, "Forecast model returned an invalid prediction.")
        except ForecastError as e:
            log.error("forecast_failed", error=str(e))
            return _error(502, "Forecast model call failed.")

    return app
