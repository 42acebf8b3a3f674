"""Core arbitrage logic for DEX trading."""

from .types import ArbitrageOpportunity, ExecutionResult, ExecutionStrategy
from .sizing import TradeSizer, calculate_profit
from .detector import ArbitrageDetector
from .executor import ArbitrageExecutor
from .risk import CircuitBreaker, RiskMetrics
from .engine import ArbitrageEngine

__all__ = [
    'ArbitrageOpportunity',
    'ExecutionResult',
    'ExecutionStrategy',
    'TradeSizer',
    'calculate_profit',
    'ArbitrageDetector',
    'ArbitrageExecutor',
    'CircuitBreaker',
    'RiskMetrics',
    'ArbitrageEngine'
]
