"""
Shared types and data structures for the arbitrage engine.
Kept separate so detector, executor and storage can import them without cycles.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict


class ExecutionStrategy(Enum):
    """How the two legs of an opportunity are submitted."""
    ATOMIC = "atomic"  # Both legs in one indivisible operation
    TWO_STEP = "two_step"  # Buy leg, settlement delay, sell leg


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """Detected, fee-adjusted arbitrage opportunity. Immutable once created."""
    source_venue: str  # Buy here
    target_venue: str  # Sell here
    base_asset: str
    quote_asset: str

    # Prices in quote units per base unit
    buy_price: Decimal
    sell_price: Decimal

    gross_profit_percent: Decimal
    net_profit_percent: Decimal

    trade_size: Decimal  # Base asset units
    estimated_fee_cost: Decimal

    buy_fee_percent: Decimal = Decimal("0")
    sell_fee_percent: Decimal = Decimal("0")
    detected_at: int = field(default_factory=lambda: int(time.time() * 1000))

    @property
    def pair(self) -> str:
        return f"{self.base_asset}/{self.quote_asset}"

    @property
    def estimated_profit(self) -> Decimal:
        """Net profit in quote units at the detected prices."""
        return self.trade_size * self.buy_price * self.net_profit_percent / Decimal(100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_venue": self.source_venue,
            "target_venue": self.target_venue,
            "pair": self.pair,
            "buy_price": str(self.buy_price),
            "sell_price": str(self.sell_price),
            "gross_profit_percent": str(self.gross_profit_percent),
            "net_profit_percent": str(self.net_profit_percent),
            "trade_size": str(self.trade_size),
            "estimated_fee_cost": str(self.estimated_fee_cost),
            "detected_at": self.detected_at,
        }

    def __str__(self) -> str:
        return (f"{self.pair} buy@{self.source_venue} {self.buy_price} -> "
                f"sell@{self.target_venue} {self.sell_price} "
                f"(net {self.net_profit_percent:.4f}%, size {self.trade_size})")


@dataclass(frozen=True)
class ExecutionResult:
    """Result of a successful execution."""
    opportunity: ArbitrageOpportunity
    strategy: ExecutionStrategy
    trade_size: Decimal
    minimum_output: Decimal
    slippage_percent: Decimal
    buy_reference: str
    sell_reference: str  # Same as buy_reference for atomic executions
    dry_run: bool
    execution_time_ms: int = 0
