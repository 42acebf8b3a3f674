"""Arbitrage engine: serialized scanning and execution with a circuit breaker."""

import asyncio
from typing import Any, Dict, List, Optional
from loguru import logger

from .detector import ArbitrageDetector
from .executor import ArbitrageExecutor
from .risk import CircuitBreaker
from .sizing import TradeSizer
from .types import ArbitrageOpportunity, ExecutionResult
from ..alerts.monitor import Monitor
from ..config import Config
from ..errors import ExecutionError, InsufficientLiquidity
from ..exchanges.registry import ExchangeRegistry


class ArbitrageEngine:
    """Finds and executes opportunities.

    A single lock covers both scanning and execution, so at most one
    execution is in flight and the failure counter is only touched while
    holding it.
    """

    def __init__(self, config: Config, registry: ExchangeRegistry, wallet: Any = None,
                 monitor: Optional[Monitor] = None):
        self.config = config
        self.registry = registry
        self.wallet = wallet
        self.dry_run = config.safety.simulation_mode
        self.monitor = monitor or Monitor(log_trades=config.logging.log_trades)
        self.sizer = TradeSizer(config.arbitrage)
        self.detector = ArbitrageDetector(config, registry, self.sizer)
        self.executor = ArbitrageExecutor(config, registry, wallet, self.monitor, self.sizer)
        self.circuit_breaker = CircuitBreaker(config.safety.max_consecutive_failures)
        self._lock = asyncio.Lock()

    @property
    def consecutive_failures(self) -> int:
        return self.circuit_breaker.consecutive_failures

    @property
    def is_halted(self) -> bool:
        return self.circuit_breaker.is_tripped

    async def find_opportunities(self) -> List[ArbitrageOpportunity]:
        """Scan all pairs across all venues, best net profit first."""
        async with self._lock:
            return await self.detector.find_opportunities()

    async def execute_arbitrage(self, opportunity: ArbitrageOpportunity) -> ExecutionResult:
        """Execute one opportunity.

        Raises ConfigurationError for an unknown venue and InsufficientLiquidity
        when live liquidity no longer supports a trade; neither counts as a
        failure. Leg failures raise ExecutionError (or LegTimeout) and count
        towards the circuit breaker; the failure that reaches the ceiling
        raises CircuitBreakerTripped instead, as does any call while halted.
        """
        async with self._lock:
            self.circuit_breaker.check()

            try:
                result = await self.executor.execute(opportunity, self.dry_run)
            except InsufficientLiquidity as e:
                logger.info(f"Skipping {opportunity.pair} {opportunity.source_venue} -> "
                            f"{opportunity.target_venue}: {e}")
                raise
            except ExecutionError as e:
                if e.buy_reference:
                    logger.warning(f"⚠️ Buy leg {e.buy_reference} filled on {e.source_venue} but the "
                                   f"sell leg failed; {opportunity.base_asset} position left open")
                self.monitor.record_error(f"Arbitrage {opportunity.source_venue} -> "
                                          f"{opportunity.target_venue} failed: {e}")
                self.circuit_breaker.record_failure(e)
                raise

            self.circuit_breaker.record_success()
            self.monitor.record_trade(opportunity.source_venue, opportunity.target_venue,
                                      opportunity.net_profit_percent, self.dry_run)
            return result

    def reset_circuit_breaker(self) -> None:
        self.circuit_breaker.reset()

    def get_status(self) -> Dict[str, Any]:
        return {
            'dry_run': self.dry_run,
            'venues': self.registry.names(),
            'trading_pairs': list(self.config.venues.trading_pairs),
            'halted': self.is_halted,
            'risk': self.circuit_breaker.get_risk_summary(),
            'events': self.monitor.get_summary(),
        }
