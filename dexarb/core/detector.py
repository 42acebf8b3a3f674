"""Arbitrage opportunity detection across DEX venues."""

import asyncio
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from loguru import logger

from .sizing import TradeSizer, calculate_profit
from .types import ArbitrageOpportunity
from ..config import Config, split_pair
from ..errors import InsufficientLiquidity
from ..exchanges.base import BaseExchange
from ..exchanges.registry import ExchangeRegistry


class ArbitrageDetector:
    """Detects fee-adjusted price gaps between venues."""

    def __init__(self, config: Config, registry: ExchangeRegistry,
                 sizer: Optional[TradeSizer] = None):
        self.config = config
        self.registry = registry
        self.sizer = sizer or TradeSizer(config.arbitrage)
        self.min_profit_percent = config.arbitrage.min_profit_percent
        self.quote_timeout = config.arbitrage.quote_timeout_sec

    async def find_opportunities(self) -> List[ArbitrageOpportunity]:
        """Scan every configured pair and return opportunities, best net profit first."""
        exchanges = self.registry.list()
        if len(exchanges) < 2:
            logger.debug(f"Need at least 2 venues to scan, have {len(exchanges)}")
            return []

        opportunities: List[ArbitrageOpportunity] = []
        liquidity_cache: Dict[Tuple[str, str], Decimal] = {}
        fee_cache: Dict[str, Decimal] = {}

        for pair in self.config.venues.trading_pairs:
            tokens = split_pair(pair)
            if tokens is None:
                logger.warning(f"⚠️ Skipping invalid trading pair: {pair!r}")
                continue
            base, quote = tokens

            prices = await self._fetch_prices(exchanges, base, quote)
            if len(prices) < 2:
                logger.debug(f"Only {len(prices)} venue price(s) for {pair}, skipping")
                continue

            for i, (buy_exchange, buy_price) in enumerate(prices):
                for j, (sell_exchange, sell_price) in enumerate(prices):
                    if i == j or sell_price <= buy_price:
                        continue
                    opportunity = await self._evaluate(
                        buy_exchange, sell_exchange, base, quote, buy_price, sell_price,
                        liquidity_cache, fee_cache,
                    )
                    if opportunity is not None:
                        opportunities.append(opportunity)

        # Stable sort keeps encounter order between equal profits
        opportunities.sort(key=lambda o: o.net_profit_percent, reverse=True)

        if opportunities:
            logger.info(f"🔍 Found {len(opportunities)} opportunities, best: {opportunities[0]}")
        return opportunities

    async def _fetch_prices(self, exchanges: List[BaseExchange], base: str,
                            quote: str) -> List[Tuple[BaseExchange, Decimal]]:
        """Query every venue concurrently; failed venues are left out for this pair."""
        results = await asyncio.gather(
            *(asyncio.wait_for(exchange.get_price(base, quote), self.quote_timeout)
              for exchange in exchanges),
            return_exceptions=True,
        )

        prices = []
        for exchange, result in zip(exchanges, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning(f"❌ Price fetch failed on {exchange.name} for {base}/{quote}: {result!r}")
                continue
            if not isinstance(result, Decimal):
                logger.warning(f"❌ Unusable price {result!r} from {exchange.name} for {base}/{quote}")
                continue
            if result <= 0:
                logger.warning(f"❌ Non-positive price {result} on {exchange.name} for {base}/{quote}")
                continue
            logger.debug(f"{exchange.name} {base}/{quote} = {result}")
            prices.append((exchange, result))
        return prices

    async def _liquidity(self, exchange: BaseExchange, base: str, quote: str,
                         cache: Dict[Tuple[str, str], Decimal]) -> Decimal:
        key = (exchange.name, f"{base}/{quote}")
        if key not in cache:
            cache[key] = await self.sizer.venue_liquidity(exchange, base, quote)
        return cache[key]

    async def _fee(self, exchange: BaseExchange, cache: Dict[str, Decimal]) -> Decimal:
        if exchange.name not in cache:
            cache[exchange.name] = await self.sizer.fee_percent(exchange)
        return cache[exchange.name]

    async def _evaluate(self, buy_exchange: BaseExchange, sell_exchange: BaseExchange,
                        base: str, quote: str, buy_price: Decimal, sell_price: Decimal,
                        liquidity_cache: Dict[Tuple[str, str], Decimal],
                        fee_cache: Dict[str, Decimal]) -> Optional[ArbitrageOpportunity]:
        """Size and price one buy/sell candidate; None when it falls short."""
        try:
            trade_size = self.sizer.size_from_liquidity(
                await self._liquidity(buy_exchange, base, quote, liquidity_cache),
                await self._liquidity(sell_exchange, base, quote, liquidity_cache),
            )
        except InsufficientLiquidity as e:
            logger.debug(f"Discarding {buy_exchange.name} -> {sell_exchange.name} {base}/{quote}: {e}")
            return None

        buy_fee = await self._fee(buy_exchange, fee_cache)
        sell_fee = await self._fee(sell_exchange, fee_cache)
        gross, net = calculate_profit(buy_price, sell_price, buy_fee, sell_fee)

        if net < self.min_profit_percent:
            logger.debug(f"{buy_exchange.name} -> {sell_exchange.name} {base}/{quote}: "
                         f"net {net:.4f}% < min {self.min_profit_percent}%")
            return None

        return ArbitrageOpportunity(
            source_venue=buy_exchange.name,
            target_venue=sell_exchange.name,
            base_asset=base,
            quote_asset=quote,
            buy_price=buy_price,
            sell_price=sell_price,
            gross_profit_percent=gross,
            net_profit_percent=net,
            trade_size=trade_size,
            estimated_fee_cost=self.sizer.fee_cost(trade_size, buy_fee + sell_fee),
            buy_fee_percent=buy_fee,
            sell_fee_percent=sell_fee,
        )
