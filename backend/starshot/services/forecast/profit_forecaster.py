"""Cumulative-profit forecasting via a language model.

Flow:
  1. Need at least 2 history points, otherwise return an empty prediction (no model call).
  2. End date = last historical date + horizon (1W / 1M / 3M / 1Y, calendar aware).
  3. History is rendered as "YYYY-MM-DD: $X.XX" lines inside the prompt.
  4. The reply must be a JSON object matching ModelForecast (10-15 points).
     Anything else raises ForecastSchemaError. There is no retry.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, List, Protocol

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from starshot.infrastructure.llm.chat_client import LLMError
from starshot.infrastructure.logging.logging import get_logger
from starshot.infrastructure.utils.timeutils import coerce_datetime
from starshot.models.forecast_models import (
    MAX_PREDICTION_POINTS,
    MIN_PREDICTION_POINTS,
    ForecastHorizon,
    ForecastRequest,
    ForecastResponse,
    HistoryPoint,
    ModelForecast,
)

DATE_FMT = "%Y-%m-%d"

HORIZON_OFFSETS = {
    ForecastHorizon.ONE_WEEK: relativedelta(days=7),
    ForecastHorizon.ONE_MONTH: relativedelta(months=1),
    ForecastHorizon.THREE_MONTHS: relativedelta(months=3),
    ForecastHorizon.ONE_YEAR: relativedelta(years=1),
}

SYSTEM_PROMPT = (
    "You are a financial analyst specializing in time-series forecasting. "
    "Reply with a single JSON object and nothing else."
)


class ForecastError(RuntimeError):
    pass


class ForecastSchemaError(ForecastError):
    pass


class CompletionClient(Protocol):
    async def complete(self, system: str, prompt: str, *, json_mode: bool = True) -> str: ...


def forecast_end_date(start: datetime, horizon: ForecastHorizon) -> datetime:
    return start + HORIZON_OFFSETS[ForecastHorizon(horizon)]


def _display_date(value: str) -> str:
    dt = coerce_datetime(value)
    return dt.strftime(DATE_FMT) if dt else value


def format_history(history: List[HistoryPoint]) -> str:
    return "\n".join(f"{_display_date(p.date)}: ${p.cumulative_profit:.2f}" for p in history)


def build_prompt(*, formatted_history: str, start_date: str, end_date: str, last_profit: float) -> str:
    return f"""Your task is to predict the cumulative profit trajectory based on the provided historical data.

Analyze the trends, volatility, and patterns in the historical data to make a realistic projection. The prediction should consist of {MIN_PREDICTION_POINTS}-{MAX_PREDICTION_POINTS} data points.

The last known cumulative profit is {last_profit}. Your prediction should start from there.

Historical Data:
{formatted_history}

Predict the cumulative profit from {start_date} to {end_date}.
The output should be a series of data points, each with a date and a predicted cumulative profit value. Do not just return a single final value; provide the progression.
The name for each point should be 'Prediction 1', 'Prediction 2', etc.
The date format for each prediction point must be 'yyyy-MM-dd'.

Answer with JSON only: {{"prediction": [{{"name": "Prediction 1", "date": "yyyy-MM-dd", "predictedProfit": <number>}}, ...]}}"""


def parse_model_output(text: str) -> ModelForecast:
    """Extract the JSON object from the reply (may be wrapped in a markdown block) and validate it."""
    stripped = (text or "").strip()
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start < 0 or end <= start:
        raise ForecastSchemaError("model reply contains no JSON object")

    try:
        data: Any = json.loads(stripped[start:end + 1])
    except ValueError as e:
        raise ForecastSchemaError(f"model reply is not valid JSON: {e}") from e

    try:
        return ModelForecast.model_validate(data)
    except ValidationError as e:
        raise ForecastSchemaError(f"model reply does not match forecast schema: {e}") from e


class ProfitForecaster:
    def __init__(self, llm: CompletionClient) -> None:
        self._llm = llm
        self._logger = get_logger("forecast")

    async def predict(self, request: ForecastRequest) -> ForecastResponse:
        history = request.history
        if len(history) < 2:
            self._logger.info("forecast_skipped", reason="not_enough_history", points=len(history))
            return ForecastResponse(prediction=[])

        last = history[-1]
        start = coerce_datetime(last.date)
        if start is None:
            raise ForecastError(f"cannot parse last history date {last.date!r}")
        end = forecast_end_date(start, request.duration)

        prompt = build_prompt(
            formatted_history=format_history(history),
            start_date=start.strftime(DATE_FMT),
            end_date=end.strftime(DATE_FMT),
            last_profit=last.cumulative_profit,
        )

        try:
            reply = await self._llm.complete(SYSTEM_PROMPT, prompt)
        except LLMError as e:
            raise ForecastError(f"forecast model call failed: {e}") from e

        parsed = parse_model_output(reply)
        self._logger.info(
            "forecast_ok",
            horizon=ForecastHorizon(request.duration).value,
            history_points=len(history),
            predicted_points=len(parsed.prediction),
            end_date=end.strftime(DATE_FMT),
        )
        return ForecastResponse(prediction=parsed.prediction)
