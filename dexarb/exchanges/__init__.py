"""Venue integrations for DEX arbitrage."""

from .base import BaseExchange, is_simulated_reference
from .http_dex import HttpDexExchange, RaydiumExchange, OrcaExchange, SerumExchange
from .paper import PaperExchange
from .registry import ExchangeRegistry
from .retry import retry_with_backoff

__all__ = [
    'BaseExchange',
    'is_simulated_reference',
    'HttpDexExchange',
    'RaydiumExchange',
    'OrcaExchange',
    'SerumExchange',
    'PaperExchange',
    'ExchangeRegistry',
    'retry_with_backoff'
]
