"""Map raw upstream trade/position records into canonical Trade objects.

Two record shapes are accepted:
- flat freqtrade trade records (pair, is_short, open_date_ts, close_date_ts, profit_abs, ...)
- order-nested records where entry/exit come from `orders[]`
  (ft_order_side, order_timestamp, safe_price, amount, is_open)

A trade is Closed iff a close-timestamp field is present and not None. 0 and "" count as
present: only a missing key or an explicit null means the position is still open.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from starshot.infrastructure.utils.timeutils import coerce_datetime, utc_now
from starshot.models.trade_models import BUY, CLOSED, OPEN, SELL, Trade

JsonDict = Dict[str, Any]

CLOSE_TS_FIELDS = ("close_date_ts", "close_date", "close_timestamp")
OPEN_TS_FIELDS = ("open_date_ts", "open_date", "open_timestamp")

_MISSING = object()


def _first_present(raw: JsonDict, keys: tuple[str, ...]) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return _MISSING


def _num(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _opt_num(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _iso(value: Any, now: datetime) -> str:
    # Missing/unparseable dates fall back to "now".
    dt = coerce_datetime(value)
    return (dt or now).isoformat()


def _orders(raw: JsonDict) -> List[JsonDict]:
    orders = raw.get("orders")
    if not isinstance(orders, list):
        return []
    return [o for o in orders if isinstance(o, dict)]


def _order_side(order: JsonDict) -> str:
    return str(order.get("ft_order_side") or order.get("side") or "").lower()


def _exit_order(orders: List[JsonDict]) -> Optional[JsonDict]:
    """Last filled order on the opposite side of the entry order."""
    if len(orders) < 2:
        return None
    entry_side = _order_side(orders[0])
    for order in reversed(orders[1:]):
        side = _order_side(order)
        if side and side != entry_side and not order.get("is_open", False):
            return order
    return None


def is_closed_record(raw: JsonDict) -> bool:
    if _first_present(raw, CLOSE_TS_FIELDS) is not _MISSING:
        return True
    exit_order = _exit_order(_orders(raw))
    return exit_order is not None and exit_order.get("order_timestamp") is not None


def _side(raw: JsonDict, entry: JsonDict) -> str:
    if "is_short" in raw and raw["is_short"] is not None:
        return SELL if bool(raw["is_short"]) else BUY
    if str(raw.get("side") or "").lower() in ("sell", "short"):
        return SELL
    return SELL if _order_side(entry) == "sell" else BUY


def _profit_percentage(raw: JsonDict) -> Optional[float]:
    ratio = _opt_num(raw.get("profit_ratio"))
    if ratio is not None:
        return ratio * 100.0
    return _opt_num(raw.get("profit_pct"))


def normalize_trade(raw: JsonDict, *, now: Optional[datetime] = None) -> Trade:
    now = now or utc_now()
    orders = _orders(raw)
    entry = orders[0] if orders else {}
    exit_order = _exit_order(orders)

    close_marker = _first_present(raw, CLOSE_TS_FIELDS)
    if close_marker is _MISSING and exit_order is not None and exit_order.get("order_timestamp") is not None:
        close_marker = exit_order["order_timestamp"]
    closed = close_marker is not _MISSING

    open_marker = _first_present(raw, OPEN_TS_FIELDS)
    if open_marker is _MISSING:
        open_marker = entry.get("order_timestamp")

    open_rate = raw.get("open_rate")
    if open_rate is None:
        open_rate = entry.get("safe_price")
    close_rate = raw.get("close_rate")
    if close_rate is None and exit_order is not None:
        close_rate = exit_order.get("safe_price")
    amount = raw.get("amount")
    if amount is None:
        amount = entry.get("filled", entry.get("amount"))

    profit_abs = _opt_num(raw.get("profit_abs"))
    profit_pct = _profit_percentage(raw)
    if closed:
        profit_abs = profit_abs if profit_abs is not None else 0.0
        profit_pct = profit_pct if profit_pct is not None else 0.0

    trade_id = raw.get("trade_id")

    return Trade(
        asset=str(raw.get("pair") or entry.get("pair") or "N/A"),
        side=_side(raw, entry),
        status=CLOSED if closed else OPEN,
        profit_percentage=profit_pct,
        profit_abs=profit_abs,
        open_date=_iso(open_marker, now),
        close_date=_iso(close_marker, now) if closed else None,
        open_rate=_num(open_rate),
        close_rate=_num(close_rate),
        amount=_num(amount),
        trade_id=str(trade_id) if trade_id is not None else None,
    )


def normalize_trades(records: List[Any], *, now: Optional[datetime] = None) -> List[Trade]:
    now = now or utc_now()
    return [normalize_trade(r, now=now) for r in records if isinstance(r, dict)]
