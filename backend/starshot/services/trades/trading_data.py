"""Assemble the dashboard payload from one upstream snapshot.

Which endpoint is authoritative for open positions differs between bot deployments
(/status as a bare list, /status.trades or /status.orders). The choice is explicit
configuration (`open_trades_source`) instead of per-response field guessing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from starshot.infrastructure.botapi.bot_api_client import BotApiClient
from starshot.infrastructure.logging.logging import get_logger
from starshot.infrastructure.utils.timeutils import utc_now
from starshot.models.trade_models import Trade, TradingData
from starshot.services.trades.aggregator import compute_stats, split_trades
from starshot.services.trades.chart_series import build_cumulative_series, build_profit_series
from starshot.services.trades.normalizer import normalize_trades

JsonDict = Dict[str, Any]

OPEN_SOURCES = ("merged", "status", "trades")


class UpstreamShapeError(RuntimeError):
    pass


def _as_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise UpstreamShapeError(f"expected an array at {where}, got {type(value).__name__}")
    return value


def extract_trade_records(trades_payload: Any) -> List[Any]:
    if isinstance(trades_payload, list):
        return trades_payload
    if isinstance(trades_payload, dict):
        return _as_list(trades_payload.get("trades"), "/trades.trades")
    raise UpstreamShapeError(f"unexpected /trades payload type {type(trades_payload).__name__}")


def extract_status_records(status_payload: Any) -> List[Any]:
    if isinstance(status_payload, list):
        return status_payload
    if not isinstance(status_payload, dict):
        raise UpstreamShapeError(f"unexpected /status payload type {type(status_payload).__name__}")

    if "trades" in status_payload:
        return _as_list(status_payload.get("trades"), "/status.trades")

    if "orders" in status_payload:
        orders = _as_list(status_payload.get("orders"), "/status.orders")
        return _group_orders([o for o in orders if isinstance(o, dict)])

    return []


def _order_ts(order: JsonDict) -> float:
    ts = order.get("order_timestamp")
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        return float(ts)
    return 0.0


def _group_orders(orders: List[JsonDict]) -> List[JsonDict]:
    """One record per ft_trade_id with its orders oldest first, so entry and exit are seen together."""
    grouped: Dict[Any, List[JsonDict]] = {}
    loose: List[JsonDict] = []
    for o in orders:
        trade_id = o.get("ft_trade_id")
        if trade_id is None:
            loose.append({"pair": o.get("pair"), "trade_id": None, "orders": [o]})
        else:
            grouped.setdefault(trade_id, []).append(o)

    records = []
    for trade_id, group in grouped.items():
        group = sorted(group, key=_order_ts)
        records.append({"pair": group[0].get("pair"), "trade_id": trade_id, "orders": group})
    return records + loose


def extract_bot_summary(status_payload: Any) -> JsonDict:
    if not isinstance(status_payload, dict):
        return {}
    bots = status_payload.get("bots")
    if isinstance(bots, dict):
        entries = bots.get("status")
        if isinstance(entries, list) and entries and isinstance(entries[0], dict):
            return entries[0]
    if "starting_balance" in status_payload:
        return status_payload
    return {}


def _dedupe(trades: Iterable[Trade]) -> List[Trade]:
    seen = set()
    out: List[Trade] = []
    for t in trades:
        if t.trade_id is not None:
            if t.trade_id in seen:
                continue
            seen.add(t.trade_id)
        out.append(t)
    return out


def build_trading_data(
    trades_payload: Any,
    status_payload: Any,
    *,
    open_trades_source: str = "merged",
    include_start_point: bool = False,
    now: Optional[datetime] = None,
) -> TradingData:
    if open_trades_source not in OPEN_SOURCES:
        raise ValueError(f"open_trades_source must be one of {OPEN_SOURCES}")

    now = now or utc_now()
    from_trades = normalize_trades(extract_trade_records(trades_payload), now=now)
    from_status = normalize_trades(extract_status_records(status_payload), now=now)

    closed = _dedupe(t for t in from_trades + from_status if t.is_closed)
    closed_ids = {t.trade_id for t in closed if t.trade_id is not None}

    if open_trades_source == "trades":
        open_candidates = [t for t in from_trades if not t.is_closed]
    elif open_trades_source == "status":
        open_candidates = [t for t in from_status if not t.is_closed]
    else:
        # Status first: it carries the fresher unrealized profit.
        open_candidates = [t for t in from_status + from_trades if not t.is_closed]
    open_ = [t for t in _dedupe(open_candidates) if t.trade_id is None or t.trade_id not in closed_ids]

    open_sorted, closed_sorted = split_trades(open_ + closed)
    stats = compute_stats(closed_sorted)
    profit_series = build_profit_series(closed_sorted)

    summary = extract_bot_summary(status_payload)
    starting_balance = summary.get("starting_balance") or 0
    try:
        starting_balance = float(starting_balance)
    except (TypeError, ValueError):
        starting_balance = 0.0

    return TradingData(
        stats=stats,
        total_balance=starting_balance + stats.pnl,
        open_trades=open_sorted,
        closed_trades=closed_sorted,
        trade_history=profit_series,
        cumulative_history=build_cumulative_series(profit_series, include_start=include_start_point),
    )


class TradingDataService:
    """Fetch + reshape for each configured model."""

    def __init__(
        self,
        clients: Dict[str, BotApiClient],
        *,
        open_trades_source: str = "merged",
        include_start_point: bool = False,
    ) -> None:
        self._logger = get_logger("trading_data")
        self._clients = clients
        self._open_trades_source = open_trades_source
        self._include_start_point = include_start_point

    @property
    def models(self) -> List[str]:
        return list(self._clients.keys())

    def supports(self, model: Optional[str]) -> bool:
        return model is not None and model in self._clients

    async def fetch(self, model: str) -> TradingData:
        client = self._clients.get(model)
        if client is None:
            raise ValueError(f"Unknown model: {model}")

        snapshot = await client.fetch_snapshot()
        data = build_trading_data(
            snapshot.trades,
            snapshot.status,
            open_trades_source=self._open_trades_source,
            include_start_point=self._include_start_point,
        )
        self._logger.info(
            "trading_data_built",
            model=model,
            trades_ok=snapshot.trades_ok,
            status_ok=snapshot.status_ok,
            open_trades=len(data.open_trades),
            closed_trades=len(data.closed_trades),
            pnl=round(data.stats.pnl, 8),
        )
        return data
