from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from starshot.infrastructure.botapi.bot_api_client import BotApiClient
from starshot.infrastructure.llm.chat_client import ChatCompletionClient
from starshot.infrastructure.utils.config import DashboardConfig
from starshot.services.forecast.profit_forecaster import ProfitForecaster
from starshot.services.trades.trading_data import TradingDataService


@dataclass
class AppState:
    config: DashboardConfig
    trading: TradingDataService
    forecaster: Optional[ProfitForecaster]


def build_state(
    config: DashboardConfig,
    *,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
    llm_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AppState:
    clients = {
        model: BotApiClient(
            model,
            config.bots[model],
            status_path=config.upstream.status_path,
            trades_path=config.upstream.trades_path,
            timeout_sec=config.upstream.timeout_seconds,
            transport=upstream_transport,
        )
        for model in config.models
    }
    trading = TradingDataService(
        clients,
        open_trades_source=config.upstream.open_trades_source,
        include_start_point=config.dashboard.include_start_point,
    )

    forecaster: Optional[ProfitForecaster] = None
    if config.forecast.is_configured:
        forecaster = ProfitForecaster(ChatCompletionClient(config.forecast, transport=llm_transport))

    return AppState(config=config, trading=trading, forecaster=forecaster)


_state: Optional[AppState] = None


def set_state(state: AppState) -> None:
    global _state
    _state = state


def get_state() -> AppState:
    if _state is None:
        raise RuntimeError("API state not initialized. Call create_app() (or set_state) first.")
    return _state
