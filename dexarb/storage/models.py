"""Data models for the trade history."""

import time
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class TradeStatus(Enum):
    SUCCESS = "success"
    SIMULATED = "simulated"
    FAILED = "failed"


@dataclass
class TradeRecord:
    """One execution attempt."""
    source_venue: str
    target_venue: str
    base_asset: str
    quote_asset: str
    amount: Decimal
    net_profit_percent: Decimal
    estimated_profit: Decimal  # Quote units
    status: TradeStatus
    buy_reference: Optional[str] = None
    sell_reference: Optional[str] = None
    error: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: int = field(default_factory=lambda: int(time.time()))

    @property
    def pair(self) -> str:
        return f"{self.base_asset}/{self.quote_asset}"


@dataclass
class PerformanceSummary:
    """Aggregated trade history."""
    total_trades: int = 0
    successful_trades: int = 0
    simulated_trades: int = 0
    failed_trades: int = 0
    total_estimated_profit: Decimal = Decimal("0")
    avg_profit_percent: Decimal = Decimal("0")

    @property
    def success_rate(self) -> float:
        completed = self.successful_trades + self.simulated_trades
        return completed / self.total_trades if self.total_trades else 0.0
