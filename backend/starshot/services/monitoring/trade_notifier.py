"""New-trade notification counter (per-model last observed trade count)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class TradeCountTracker:
    _last_counts: Dict[str, int] = field(default_factory=dict)
    pending: int = 0

    def observe(self, model: str, total_trades: int) -> int:
        """Record the latest count and return how many trades completed since the last poll.

        The first observation for a model only seeds the counter. A lower count (bot
        reset, upstream outage) re-seeds without notifying.
        """
        previous = self._last_counts.get(model)
        self._last_counts[model] = total_trades
        if previous is None or total_trades <= previous:
            return 0
        new = total_trades - previous
        self.pending += new
        return new

    def last_count(self, model: str) -> Optional[int]:
        return self._last_counts.get(model)
