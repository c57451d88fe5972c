"""Aggregate statistics over normalized trades."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from starshot.infrastructure.utils.timeutils import parse_iso
from starshot.models.trade_models import AggregateStats, Trade


def split_trades(trades: Iterable[Trade]) -> Tuple[List[Trade], List[Trade]]:
    """Return (open trades by open date desc, closed trades by close date desc)."""
    items = list(trades)
    open_trades = [t for t in items if not t.is_closed]
    closed_trades = [t for t in items if t.is_closed]
    open_trades.sort(key=lambda t: parse_iso(t.open_date), reverse=True)
    closed_trades.sort(key=lambda t: parse_iso(t.close_date or t.open_date), reverse=True)
    return open_trades, closed_trades


def compute_stats(closed_trades: Iterable[Trade]) -> AggregateStats:
    closed = [t for t in closed_trades if t.is_closed]
    total = len(closed)
    if total == 0:
        return AggregateStats()

    profits = [t.profit_abs or 0.0 for t in closed]
    winning = sum(1 for p in profits if p > 0)
    pnl = sum(profits)
    invested = sum(t.amount * t.open_rate for t in closed)

    return AggregateStats(
        total_trades=total,
        winning_trades=winning,
        losing_trades=total - winning,
        win_rate=winning / total,
        pnl=pnl,
        biggest_win=max(0.0, max(profits)),
        total_invested=invested,
        percentage_profit=(pnl / invested * 100.0) if invested > 0 else 0.0,
    )
