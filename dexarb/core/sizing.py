"""Fee lookup, liquidity lookup and trade sizing."""

import asyncio
from decimal import Decimal
from typing import Tuple
from loguru import logger

from ..config import ArbitrageConfig
from ..errors import InsufficientLiquidity
from ..exchanges.base import BaseExchange

HUNDRED = Decimal(100)


def calculate_profit(buy_price: Decimal, sell_price: Decimal, buy_fee_percent: Decimal,
                     sell_fee_percent: Decimal) -> Tuple[Decimal, Decimal]:
    """Return (gross, net) profit percent for buying at buy_price and selling at sell_price."""
    gross = (sell_price - buy_price) / buy_price * HUNDRED
    net = gross - (buy_fee_percent + sell_fee_percent)
    return gross, net


class TradeSizer:
    """Sizes trades against venue liquidity and resolves venue fees."""

    def __init__(self, config: ArbitrageConfig):
        self.max_trade_amount = config.max_trade_amount
        self.liquidity_cap_fraction = config.liquidity_cap_fraction
        self.unknown_liquidity = config.max_trade_amount * config.unknown_liquidity_multiplier
        self.default_fee_percent = config.default_fee_percent
        self.query_timeout = config.quote_timeout_sec

    async def venue_liquidity(self, exchange: BaseExchange, base: str, quote: str) -> Decimal:
        """Liquidity in base units, or the ample default when the venue cannot tell."""
        try:
            liquidity = await asyncio.wait_for(exchange.get_liquidity(base, quote), self.query_timeout)
        except Exception as e:
            logger.debug(f"Liquidity lookup failed on {exchange.name} for {base}/{quote}: {e!r}")
            liquidity = None

        if liquidity is None:
            logger.debug(f"Unknown liquidity on {exchange.name} for {base}/{quote}, "
                         f"assuming {self.unknown_liquidity}")
            return self.unknown_liquidity
        return liquidity

    async def fee_percent(self, exchange: BaseExchange) -> Decimal:
        try:
            fee = await asyncio.wait_for(exchange.get_fee_percent(), self.query_timeout)
        except Exception as e:
            logger.debug(f"Fee lookup failed on {exchange.name}: {e!r}")
            fee = None
        return self.default_fee_percent if fee is None else fee

    def size_from_liquidity(self, buy_liquidity: Decimal, sell_liquidity: Decimal) -> Decimal:
        """min(max trade, capped fraction of the lesser liquidity, the lesser liquidity)."""
        min_liquidity = min(buy_liquidity, sell_liquidity)
        size = min(self.max_trade_amount, min_liquidity * self.liquidity_cap_fraction, min_liquidity)
        if size <= 0:
            raise InsufficientLiquidity(
                f"Trade size {size} not positive (liquidity {buy_liquidity} / {sell_liquidity})"
            )
        return size

    async def calculate_trade_size(self, buy_exchange: BaseExchange, sell_exchange: BaseExchange,
                                   base: str, quote: str) -> Decimal:
        buy_liquidity, sell_liquidity = await asyncio.gather(
            self.venue_liquidity(buy_exchange, base, quote),
            self.venue_liquidity(sell_exchange, base, quote),
        )
        return self.size_from_liquidity(buy_liquidity, sell_liquidity)

    def fee_cost(self, trade_size: Decimal, total_fee_percent: Decimal) -> Decimal:
        return trade_size * total_fee_percent / HUNDRED
