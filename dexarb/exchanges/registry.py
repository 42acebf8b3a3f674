"""Registry of enabled venues."""

from typing import Dict, Iterable, Iterator, List, Optional, Type
from loguru import logger

from .base import BaseExchange
from .http_dex import HttpDexExchange, OrcaExchange, RaydiumExchange, SerumExchange
from .paper import PaperExchange
from ..config import Config
from ..errors import ConfigurationError

EXCHANGE_TYPES: Dict[str, Type[BaseExchange]] = {
    "raydium": RaydiumExchange,
    "orca": OrcaExchange,
    "serum": SerumExchange,
    "http": HttpDexExchange,
    "paper": PaperExchange,
}


class ExchangeRegistry:
    """Venues by name, kept in registration order."""

    def __init__(self, exchanges: Iterable[BaseExchange] = ()):
        self._exchanges: Dict[str, BaseExchange] = {}
        for exchange in exchanges:
            self.register(exchange)

    def register(self, exchange: BaseExchange) -> None:
        if exchange.name in self._exchanges:
            raise ConfigurationError(f"Venue registered twice: {exchange.name}")
        self._exchanges[exchange.name] = exchange

    def get(self, name: str) -> Optional[BaseExchange]:
        return self._exchanges.get(name)

    def list(self) -> List[BaseExchange]:
        return list(self._exchanges.values())

    def names(self) -> List[str]:
        return list(self._exchanges.keys())

    def supports_atomic_execution(self, first: BaseExchange, second: BaseExchange) -> bool:
        """True only when both venues agree to bundle legs with each other."""
        return first.supports_atomic_execution(second) and second.supports_atomic_execution(first)

    async def close(self) -> None:
        for exchange in self._exchanges.values():
            try:
                await exchange.close()
            except Exception as e:
                logger.error(f"Error closing {exchange.name}: {e}")

    def __len__(self) -> int:
        return len(self._exchanges)

    def __contains__(self, name: str) -> bool:
        return name in self._exchanges

    def __iter__(self) -> Iterator[BaseExchange]:
        return iter(self._exchanges.values())

    @classmethod
    def from_config(cls, config: Config) -> "ExchangeRegistry":
        """Build one adapter per enabled venue."""
        registry = cls()
        for name in config.venues.enabled:
            settings = config.get_venue_settings(name)
            venue_type = (settings.type or name).lower()
            exchange_cls = EXCHANGE_TYPES.get(venue_type)
            if exchange_cls is None:
                logger.warning(f"⚠️ Unknown venue type '{venue_type}' for {name}, skipping")
                continue
            registry.register(exchange_cls(name, settings))
            logger.info(f"Registered venue {name} ({venue_type})")

        if len(registry) == 0:
            raise ConfigurationError("No venues could be registered from configuration")
        return registry
