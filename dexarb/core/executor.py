"""Arbitrage trade execution across DEX venues."""

import asyncio
import time
from decimal import Decimal
from typing import Any, Awaitable, Optional, Tuple
from loguru import logger

from .sizing import HUNDRED, TradeSizer
from .types import ArbitrageOpportunity, ExecutionResult, ExecutionStrategy
from ..alerts.monitor import Monitor
from ..config import Config
from ..errors import ConfigurationError, ExecutionError, InsufficientLiquidity, LegTimeout
from ..exchanges.base import BaseExchange
from ..exchanges.registry import ExchangeRegistry


class ArbitrageExecutor:
    """Executes one opportunity: slippage bound, size re-check, then the legs.

    Errors raised before any leg is submitted (unknown venue, same-venue or
    inverted prices, insufficient liquidity) surface as ConfigurationError /
    InsufficientLiquidity. Once a
    leg may have been submitted every failure is an ExecutionError, and a
    timed-out leg is a LegTimeout. Nothing is retried or unwound here.
    """

    def __init__(self, config: Config, registry: ExchangeRegistry, wallet: Any,
                 monitor: Optional[Monitor] = None, sizer: Optional[TradeSizer] = None):
        self.config = config
        self.registry = registry
        self.wallet = wallet
        self.monitor = monitor or Monitor()
        self.sizer = sizer or TradeSizer(config.arbitrage)
        self.slippage_tolerance = config.arbitrage.slippage_tolerance_percent
        self.transaction_timeout = config.arbitrage.transaction_timeout_sec
        self.quote_timeout = config.arbitrage.quote_timeout_sec
        self.settlement_delay = config.arbitrage.settlement_delay_ms / 1000

    def _resolve(self, name: str) -> BaseExchange:
        exchange = self.registry.get(name)
        if exchange is None:
            raise ConfigurationError(f"Venue not found: {name}")
        return exchange

    @staticmethod
    def _check_opportunity(opportunity: ArbitrageOpportunity) -> None:
        if opportunity.source_venue == opportunity.target_venue:
            raise ConfigurationError(f"Buy and sell venue are both {opportunity.source_venue}")
        if opportunity.sell_price <= opportunity.buy_price:
            raise ConfigurationError(f"Sell price {opportunity.sell_price} does not exceed "
                                     f"buy price {opportunity.buy_price}")

    async def _venue_slippage(self, exchange: BaseExchange, opportunity: ArbitrageOpportunity) -> Decimal:
        try:
            estimate = await asyncio.wait_for(
                exchange.estimate_slippage(opportunity.base_asset, opportunity.quote_asset,
                                           opportunity.trade_size),
                self.quote_timeout,
            )
        except Exception as e:
            logger.debug(f"Slippage estimate failed on {exchange.name}: {e!r}")
            estimate = None

        if estimate is None:
            message = (f"No live slippage estimate from {exchange.name} for {opportunity.pair}, "
                       f"using configured {self.slippage_tolerance}%")
            self.monitor.record_warning(message)
            return self.slippage_tolerance
        return max(estimate, Decimal("0"))

    async def estimate_slippage(self, buy_exchange: BaseExchange, sell_exchange: BaseExchange,
                                opportunity: ArbitrageOpportunity) -> Decimal:
        """Worst of the two venues' price impact, in percent."""
        buy_slippage, sell_slippage = await asyncio.gather(
            self._venue_slippage(buy_exchange, opportunity),
            self._venue_slippage(sell_exchange, opportunity),
        )
        return max(buy_slippage, sell_slippage)

    async def revalidate_size(self, buy_exchange: BaseExchange, sell_exchange: BaseExchange,
                              opportunity: ArbitrageOpportunity) -> Decimal:
        """Re-size against live liquidity; never trade more than was detected."""
        fresh = await self.sizer.calculate_trade_size(
            buy_exchange, sell_exchange, opportunity.base_asset, opportunity.quote_asset
        )
        if fresh < opportunity.trade_size:
            logger.info(f"Trade size reduced {opportunity.trade_size} -> {fresh} on live liquidity")
        trade_size = min(opportunity.trade_size, fresh)
        if trade_size <= 0:
            raise InsufficientLiquidity(f"Non-positive trade size {trade_size} for {opportunity.pair}")
        return trade_size

    @staticmethod
    def minimum_output(trade_size: Decimal, sell_price: Decimal, slippage_percent: Decimal) -> Decimal:
        """Least quote amount accepted from the sell leg."""
        return max(trade_size * sell_price * (1 - slippage_percent / HUNDRED), Decimal("0"))

    async def _run_leg(self, leg: str, submission: Awaitable[str], opportunity: ArbitrageOpportunity,
                       buy_reference: Optional[str] = None) -> str:
        """Await one leg under the transaction timeout."""
        try:
            return await asyncio.wait_for(submission, self.transaction_timeout)
        except asyncio.TimeoutError as e:
            raise LegTimeout(f"no result within {self.transaction_timeout}s", leg,
                             opportunity.source_venue, opportunity.target_venue, buy_reference) from e
        except Exception as e:
            raise ExecutionError(str(e), leg, opportunity.source_venue,
                                 opportunity.target_venue, buy_reference) from e

    async def execute(self, opportunity: ArbitrageOpportunity, dry_run: bool) -> ExecutionResult:
        """Execute an opportunity and return the result, raising on failure."""
        start_time = time.time()
        logger.info(f"Executing arbitrage: {opportunity}{' [DRY RUN]' if dry_run else ''}")

        self._check_opportunity(opportunity)
        buy_exchange = self._resolve(opportunity.source_venue)
        sell_exchange = self._resolve(opportunity.target_venue)

        slippage = await self.estimate_slippage(buy_exchange, sell_exchange, opportunity)
        trade_size = await self.revalidate_size(buy_exchange, sell_exchange, opportunity)
        minimum_output = self.minimum_output(trade_size, opportunity.sell_price, slippage)
        logger.info(f"  Size: {trade_size} {opportunity.base_asset}, slippage bound: {slippage}%, "
                    f"min output: {minimum_output} {opportunity.quote_asset}")

        if self.registry.supports_atomic_execution(buy_exchange, sell_exchange):
            strategy = ExecutionStrategy.ATOMIC
            reference = await self._execute_atomic(buy_exchange, sell_exchange, opportunity,
                                                   trade_size, minimum_output, dry_run)
            buy_reference = sell_reference = reference
        else:
            strategy = ExecutionStrategy.TWO_STEP
            buy_reference, sell_reference = await self._execute_two_step(
                buy_exchange, sell_exchange, opportunity, trade_size, minimum_output, dry_run
            )

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(f"✅ Arbitrage completed ({strategy.value}) in {execution_time_ms}ms: "
                    f"buy={buy_reference} sell={sell_reference}")

        return ExecutionResult(
            opportunity=opportunity,
            strategy=strategy,
            trade_size=trade_size,
            minimum_output=minimum_output,
            slippage_percent=slippage,
            buy_reference=buy_reference,
            sell_reference=sell_reference,
            dry_run=dry_run,
            execution_time_ms=execution_time_ms,
        )

    async def _execute_atomic(self, buy_exchange: BaseExchange, sell_exchange: BaseExchange,
                              opportunity: ArbitrageOpportunity, trade_size: Decimal,
                              minimum_output: Decimal, dry_run: bool) -> str:
        logger.info(f"Atomic execution {buy_exchange.name} -> {sell_exchange.name}")
        submission = buy_exchange.execute_atomic(
            dry_run, sell_exchange, opportunity.base_asset, opportunity.quote_asset,
            trade_size, minimum_output, self.wallet,
        )
        return await self._run_leg("atomic", submission, opportunity)

    async def _execute_two_step(self, buy_exchange: BaseExchange, sell_exchange: BaseExchange,
                                opportunity: ArbitrageOpportunity, trade_size: Decimal,
                                minimum_output: Decimal, dry_run: bool) -> Tuple[str, str]:
        base, quote = opportunity.base_asset, opportunity.quote_asset

        buy_reference = await self._run_leg(
            "buy",
            buy_exchange.execute_swap(dry_run, quote, base, trade_size, Decimal("0"), self.wallet),
            opportunity,
        )
        logger.info(f"  Buy leg filled on {buy_exchange.name}: {buy_reference}")

        if not dry_run and self.settlement_delay > 0:
            await asyncio.sleep(self.settlement_delay)

        sell_reference = await self._run_leg(
            "sell",
            sell_exchange.execute_swap(dry_run, base, quote, trade_size, minimum_output, self.wallet),
            opportunity,
            buy_reference=buy_reference,
        )
        logger.info(f"  Sell leg filled on {sell_exchange.name}: {sell_reference}")
        return buy_reference, sell_reference
