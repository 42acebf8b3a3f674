"""DEX arbitrage bot: scans venues for price gaps and executes fee-adjusted trades."""

__version__ = "0.1.0"
