"""Request/response schemas for the profit forecaster (wire names are camelCase)."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_PREDICTION_POINTS = 10
MAX_PREDICTION_POINTS = 15


class ForecastHorizon(str, Enum):
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    ONE_YEAR = "1Y"


class HistoryPoint(BaseModel):
    """One chronological cumulative-profit sample (closing date of a trade)."""

    model_config = ConfigDict(populate_by_name=True)

    date: str = Field(..., description="The closing date of the trade.")
    cumulative_profit: float = Field(..., alias="cumulativeProfit")


class ForecastRequest(BaseModel):
    history: List[HistoryPoint] = Field(default_factory=list, description="Sorted chronologically.")
    duration: ForecastHorizon


class PredictionPoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Label such as 'Prediction 1'.")
    date: str = Field(..., description="Predicted future date in yyyy-MM-dd format.")
    predicted_profit: float = Field(..., alias="predictedProfit")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        try:
            datetime.strptime(str(v), "%Y-%m-%d")
        except ValueError:
            raise ValueError("date must be formatted as yyyy-MM-dd")
        return str(v)


class ModelForecast(BaseModel):
    """Exact shape the language model must return."""

    prediction: List[PredictionPoint] = Field(
        ...,
        min_length=MIN_PREDICTION_POINTS,
        max_length=MAX_PREDICTION_POINTS,
    )


class ForecastResponse(BaseModel):
    prediction: List[PredictionPoint] = Field(default_factory=list)
