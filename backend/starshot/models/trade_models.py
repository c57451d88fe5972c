"""Dashboard trade domain models (derived each poll, never persisted)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

JsonDict = Dict[str, Any]

BUY = "BUY"
SELL = "SELL"
OPEN = "Open"
CLOSED = "Closed"


@dataclass(frozen=True)
class Trade:
    asset: str
    side: str                 # "BUY" | "SELL"
    status: str               # "Open" | "Closed"
    profit_percentage: Optional[float]
    profit_abs: Optional[float]
    open_date: str            # ISO-8601
    close_date: Optional[str]  # ISO-8601, None while open
    open_rate: float
    close_rate: float
    amount: float
    trade_id: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.status == CLOSED

    def to_dict(self) -> JsonDict:
        return {
            "asset": self.asset,
            "type": self.side,
            "status": self.status,
            "profitPercentage": self.profit_percentage,
            "profitAbs": self.profit_abs,
            "openDate": self.open_date,
            "closeDate": self.close_date,
            "openRate": self.open_rate,
            "closeRate": self.close_rate,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class ChartPoint:
    name: str
    date: str
    profit: float
    cumulative_profit: Optional[float] = None

    def to_dict(self) -> JsonDict:
        out: JsonDict = {"name": self.name, "date": self.date, "profit": self.profit}
        if self.cumulative_profit is not None:
            out["cumulativeProfit"] = self.cumulative_profit
        return out


@dataclass(frozen=True)
class AggregateStats:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    pnl: float = 0.0
    biggest_win: float = 0.0
    total_invested: float = 0.0
    percentage_profit: float = 0.0


@dataclass
class TradingData:
    stats: AggregateStats
    total_balance: float
    open_trades: List[Trade] = field(default_factory=list)
    closed_trades: List[Trade] = field(default_factory=list)
    trade_history: List[ChartPoint] = field(default_factory=list)
    cumulative_history: List[ChartPoint] = field(default_factory=list)

    def to_dict(self) -> JsonDict:
        s = self.stats
        return {
            "totalBalance": self.total_balance,
            "pnl": s.pnl,
            "totalTrades": s.total_trades,
            "winRate": s.win_rate,
            "profitRatio": s.percentage_profit / 100.0,
            "winningTrades": s.winning_trades,
            "losingTrades": s.losing_trades,
            "biggestWin": s.biggest_win,
            "percentageProfit": s.percentage_profit,
            "openTrades": [t.to_dict() for t in self.open_trades],
            "closedTrades": [t.to_dict() for t in self.closed_trades],
            "tradeHistoryForCharts": [p.to_dict() for p in self.trade_history],
            "cumulativeProfitHistory": [p.to_dict() for p in self.cumulative_history],
        }
