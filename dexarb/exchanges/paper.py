"""In-memory paper venue with configured prices and liquidity."""

import time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from loguru import logger

from .base import BaseExchange
from ..config import VenueSettings
from ..errors import VenueError


class PaperExchange(BaseExchange):
    """Paper venue that fills swaps against static prices.

    Prices and liquidity are keyed by "BASE/QUOTE". Live swaps fill at the
    configured price moved against the trader by `slippage_percent` and are
    kept in `fills`.
    """

    def __init__(self, name: str, settings: Optional[VenueSettings] = None):
        super().__init__(name, settings)
        self.prices: Dict[str, Decimal] = dict(self.settings.prices)
        self.liquidity: Dict[str, Decimal] = dict(self.settings.liquidity)
        self.slippage_percent = self.settings.slippage_percent or Decimal("0")
        self.fills: List[Dict[str, Any]] = []

    def set_price(self, pair: str, price: Decimal) -> None:
        self.prices[pair] = Decimal(str(price))

    async def get_price(self, base: str, quote: str) -> Decimal:
        pair = f"{base}/{quote}"
        price = self.prices.get(pair)
        if price is None or price <= 0:
            raise VenueError(self.name, f"no price for {pair}", retryable=False)
        return price

    async def get_liquidity(self, base: str, quote: str) -> Optional[Decimal]:
        return self.liquidity.get(f"{base}/{quote}")

    async def estimate_slippage(self, base: str, quote: str, amount: Decimal) -> Optional[Decimal]:
        return self.settings.slippage_percent

    def supports_atomic_execution(self, other: BaseExchange) -> bool:
        return isinstance(other, PaperExchange) and other.name in self.atomic_with

    def _quote_fill(self, from_asset: str, to_asset: str, amount: Decimal,
                    minimum_output: Decimal) -> Tuple[str, str, Decimal, Decimal]:
        """Price a fill without recording it. Returns (side, pair, price, output)."""
        slip = self.slippage_percent / Decimal(100)
        if f"{to_asset}/{from_asset}" in self.prices:
            # Buying base with quote; output is the base amount received
            pair = f"{to_asset}/{from_asset}"
            side, price, output = "buy", self.prices[pair] * (1 + slip), amount
        elif f"{from_asset}/{to_asset}" in self.prices:
            pair = f"{from_asset}/{to_asset}"
            price = self.prices[pair] * (1 - slip)
            side, output = "sell", amount * price
        else:
            raise VenueError(self.name, f"no market for {from_asset} -> {to_asset}", retryable=False)

        available = self.liquidity.get(pair)
        if available is not None and amount > available:
            raise VenueError(self.name, f"amount {amount} exceeds liquidity {available} on {pair}",
                             retryable=False)
        if output < minimum_output:
            raise VenueError(self.name, f"output {output} below minimum {minimum_output}",
                             retryable=False)
        return side, pair, price, output

    def _record_fill(self, side: str, pair: str, price: Decimal, amount: Decimal,
                     output: Decimal) -> str:
        reference = f"paper_{self.name}_{len(self.fills) + 1}"
        self.fills.append({
            "reference": reference,
            "side": side,
            "pair": pair,
            "price": price,
            "amount": amount,
            "output": output,
            "ts": int(time.time() * 1000),
        })
        logger.info(f"📝 Paper fill on {self.name}: {side} {amount} {pair} @ {price} ({reference})")
        return reference

    async def _submit_swap(self, from_asset: str, to_asset: str, amount: Decimal,
                           minimum_output: Decimal, wallet: Any) -> str:
        side, pair, price, output = self._quote_fill(from_asset, to_asset, amount, minimum_output)
        return self._record_fill(side, pair, price, amount, output)

    async def _submit_atomic(self, counterpart: BaseExchange, base: str, quote: str,
                             amount: Decimal, minimum_output: Decimal, wallet: Any) -> str:
        buy = self._quote_fill(quote, base, amount, Decimal("0"))
        sell = counterpart._quote_fill(base, quote, amount, minimum_output)
        # Both legs priced before either is recorded
        reference = self._record_fill(buy[0], buy[1], buy[2], amount, buy[3])
        counterpart._record_fill(sell[0], sell[1], sell[2], amount, sell[3])
        return reference
