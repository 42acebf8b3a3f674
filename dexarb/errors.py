"""Error types raised by the DEX arbitrage engine."""

from typing import Optional


class ArbitrageError(Exception):
    """Base class for all engine errors."""
    pass


class ConfigurationError(ArbitrageError):
    """Raised for invalid configuration or an unknown venue name."""
    pass


class VenueError(ArbitrageError):
    """A venue failed to answer a query or to accept a swap."""

    def __init__(self, venue: str, message: str, retryable: bool = True):
        super().__init__(f"{venue}: {message}")
        self.venue = venue
        self.retryable = retryable


class InsufficientLiquidity(ArbitrageError):
    """Computed trade size is zero or negative."""
    pass


class ExecutionError(ArbitrageError):
    """An execution failed after a leg may have been submitted."""

    def __init__(self, message: str, leg: str, source_venue: str, target_venue: str,
                 buy_reference: Optional[str] = None):
        super().__init__(f"{leg} leg failed ({source_venue} -> {target_venue}): {message}")
        self.leg = leg
        self.source_venue = source_venue
        self.target_venue = target_venue
        # Set when the buy leg filled before the failure; the position is left open
        self.buy_reference = buy_reference


class LegTimeout(ExecutionError):
    """A leg did not complete within the transaction timeout."""
    pass


class CircuitBreakerTripped(ArbitrageError):
    """Consecutive execution failures reached the configured ceiling."""

    def __init__(self, failures: int, ceiling: int):
        super().__init__(
            f"Circuit breaker tripped after {failures} consecutive failures (limit {ceiling})"
        )
        self.failures = failures
        self.ceiling = ceiling
