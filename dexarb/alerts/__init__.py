"""Event sinks for the DEX arbitrage bot."""

from .monitor import Monitor

__all__ = [
    'Monitor'
]
