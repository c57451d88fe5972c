"""Headless dashboard poller: same fixed-interval concurrent poll the browser page runs."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Optional

from starshot.api.state import build_state
from starshot.infrastructure.logging.logging import configure_logging, get_logger
from starshot.infrastructure.utils.config import load_config
from starshot.models.trade_models import TradingData
from starshot.services.monitoring.trade_notifier import TradeCountTracker
from starshot.services.trades.trading_data import TradingDataService


class DashboardPoller:
    def __init__(
        self,
        service: TradingDataService,
        *,
        interval_sec: float = 15.0,
        tracker: Optional[TradeCountTracker] = None,
    ) -> None:
        self._service = service
        self._interval = interval_sec
        self.tracker = tracker or TradeCountTracker()
        self._log = get_logger("poller")

    async def _fetch(self, model: str) -> Optional[TradingData]:
        try:
            return await self._service.fetch(model)
        except Exception as e:
            self._log.error("poll_model_failed", model=model, error=str(e), error_type=type(e).__name__)
            return None

    async def poll_once(self) -> Dict[str, Optional[TradingData]]:
        models = self._service.models
        results = await asyncio.gather(*(self._fetch(m) for m in models))
        out = dict(zip(models, results))

        for model, data in out.items():
            if data is None:
                continue
            previous = self.tracker.last_count(model)
            new = self.tracker.observe(model, data.stats.total_trades)
            if new > 0:
                self._log.info(
                    "new_trades_completed",
                    model=model,
                    new=new,
                    previous=previous,
                    pending=self.tracker.pending,
                )
            self._log.info(
                "poll_summary",
                model=model,
                balance=round(data.total_balance, 2),
                pnl=round(data.stats.pnl, 2),
                trades=data.stats.total_trades,
                win_rate=round(data.stats.win_rate, 4),
                open_trades=len(data.open_trades),
            )
        return out

    async def run(self, iterations: Optional[int] = None) -> None:
        done = 0
        while iterations is None or done < iterations:
            await self.poll_once()
            done += 1
            if iterations is not None and done >= iterations:
                break
            await asyncio.sleep(self._interval)


async def run_poller(config_path: Optional[Path] = None, iterations: Optional[int] = None) -> None:
    config = load_config(config_path)
    configure_logging(config.log_level, json_logs=config.json_logs)
    log = get_logger("poller")
    log.info("config_loaded", models=config.models, interval=config.dashboard.poll_interval_seconds)

    state = build_state(config)
    poller = DashboardPoller(state.trading, interval_sec=config.dashboard.poll_interval_seconds)
    await poller.run(iterations)
