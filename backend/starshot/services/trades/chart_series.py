"""Chart-ready series built from closed trades."""

from __future__ import annotations

from datetime import timezone
from typing import List, Sequence

from starshot.infrastructure.utils.timeutils import parse_iso
from starshot.models.trade_models import ChartPoint, Trade


def _chart_date(trade: Trade) -> str:
    return parse_iso(trade.close_date or trade.open_date).astimezone(timezone.utc).strftime("%Y-%m-%d")


def build_profit_series(closed_desc: Sequence[Trade]) -> List[ChartPoint]:
    """Per-trade profit, oldest first.

    `closed_desc` is the display order (close date desc); it is reversed here so charts
    render oldest -> newest.
    """
    chronological = list(reversed(closed_desc))
    return [
        ChartPoint(name=f"Trade {i}", date=_chart_date(t), profit=t.profit_abs or 0.0)
        for i, t in enumerate(chronological, start=1)
    ]


def build_cumulative_series(profit_series: Sequence[ChartPoint], *, include_start: bool = False) -> List[ChartPoint]:
    out: List[ChartPoint] = []
    if include_start and profit_series:
        out.append(ChartPoint(name="Start", date=profit_series[0].date, profit=0.0, cumulative_profit=0.0))

    running = 0.0
    for point in profit_series:
        running += point.profit
        out.append(ChartPoint(name=point.name, date=point.date, profit=point.profit, cumulative_profit=running))
    return out
