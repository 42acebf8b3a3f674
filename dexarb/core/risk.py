"""Consecutive-failure circuit breaker and execution bookkeeping."""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from loguru import logger

from ..errors import CircuitBreakerTripped


@dataclass
class RiskMetrics:
    """Execution outcome counters."""
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    consecutive_failures: int = 0
    last_error: Optional[str] = None
    last_success_time: int = 0
    last_failure_time: int = 0


class CircuitBreaker:
    """Halts trading once consecutive execution failures reach the ceiling."""

    def __init__(self, max_consecutive_failures: int):
        if max_consecutive_failures < 1:
            raise ValueError("max_consecutive_failures must be at least 1")
        self.max_consecutive_failures = max_consecutive_failures
        self.metrics = RiskMetrics()

    @property
    def consecutive_failures(self) -> int:
        return self.metrics.consecutive_failures

    @property
    def is_tripped(self) -> bool:
        return self.metrics.consecutive_failures >= self.max_consecutive_failures

    def check(self) -> None:
        """Raise CircuitBreakerTripped if trading is halted."""
        if self.is_tripped:
            raise CircuitBreakerTripped(self.metrics.consecutive_failures, self.max_consecutive_failures)

    def record_success(self) -> None:
        self.metrics.total_executions += 1
        self.metrics.successful_executions += 1
        self.metrics.consecutive_failures = 0
        self.metrics.last_success_time = int(time.time())

    def record_failure(self, error: Exception) -> None:
        """Count a failed execution; raises CircuitBreakerTripped when the ceiling is reached."""
        self.metrics.total_executions += 1
        self.metrics.failed_executions += 1
        self.metrics.consecutive_failures += 1
        self.metrics.last_error = str(error)
        self.metrics.last_failure_time = int(time.time())

        logger.warning(f"Execution failure {self.metrics.consecutive_failures}/"
                       f"{self.max_consecutive_failures}: {error}")

        if self.is_tripped:
            logger.critical(f"🛑 Circuit breaker tripped after {self.metrics.consecutive_failures} "
                            f"consecutive failures")
            raise CircuitBreakerTripped(self.metrics.consecutive_failures,
                                        self.max_consecutive_failures) from error

    def reset(self) -> None:
        logger.info(f"Circuit breaker reset (was {self.metrics.consecutive_failures} failures)")
        self.metrics.consecutive_failures = 0

    def get_risk_summary(self) -> Dict[str, Any]:
        total = self.metrics.total_executions
        return {
            'total_executions': total,
            'successful_executions': self.metrics.successful_executions,
            'failed_executions': self.metrics.failed_executions,
            'success_rate': self.metrics.successful_executions / max(1, total),
            'consecutive_failures': self.metrics.consecutive_failures,
            'max_consecutive_failures': self.max_consecutive_failures,
            'trading_allowed': not self.is_tripped,
            'last_error': self.metrics.last_error,
            'last_success_time': self.metrics.last_success_time,
            'last_failure_time': self.metrics.last_failure_time,
        }
