"""JSON gateway venues (Raydium, Orca, Serum) over aiohttp."""

import asyncio
import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
import aiohttp
from loguru import logger

from .base import BaseExchange
from .retry import retry_with_backoff
from ..config import VenueSettings
from ..errors import ConfigurationError, VenueError


class HttpDexExchange(BaseExchange):
    """Venue reached through a JSON price/swap gateway.

    Gateway endpoints:
        GET  /price?base=&quote=         -> {"price": "..."}
        GET  /pool?base=&quote=          -> {"liquidity": "..."}
        GET  /quote?base=&quote=&amount= -> {"price_impact_percent": "..."}
        POST /swap                       -> {"signature": "..."}
    Numbers travel as decimal strings. Swap requests are signed by the wallet.
    """

    def __init__(self, name: str, settings: Optional[VenueSettings] = None):
        super().__init__(name, settings)
        if not self.settings.base_url:
            raise ConfigurationError(f"Venue {name} needs a base_url")
        self.base_url = self.settings.base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout_sec)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            logger.info(f"Closed {self.name} gateway session")
        self._session = None

    async def _request(self, method: str, path: str, params: Optional[Dict[str, str]] = None,
                       payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make a gateway request, retrying transport errors and 5xx responses."""
        url = f"{self.base_url}{path}"

        async def attempt() -> Dict[str, Any]:
            session = await self._get_session()
            try:
                async with session.request(method, url, params=params, json=payload) as response:
                    if response.status >= 500:
                        raise VenueError(self.name, f"HTTP {response.status}: {await response.text()}")
                    if response.status != 200:
                        raise VenueError(self.name, f"HTTP {response.status}: {await response.text()}",
                                         retryable=False)
                    return await response.json()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise VenueError(self.name, f"{method} {path} failed: {e!r}") from e

        return await retry_with_backoff(
            attempt,
            f"{self.name} {method} {path}",
            attempts=self.settings.max_retries,
            base_delay=self.settings.retry_base_delay_ms / 1000,
        )

    def _decimal_field(self, data: Dict[str, Any], key: str) -> Decimal:
        try:
            return Decimal(str(data[key]))
        except (KeyError, TypeError, InvalidOperation) as e:
            raise VenueError(self.name, f"malformed gateway response, missing {key}: {data!r}",
                             retryable=False) from e

    async def get_price(self, base: str, quote: str) -> Decimal:
        data = await self._request("GET", "/price", params={"base": base, "quote": quote})
        price = self._decimal_field(data, "price")
        if price <= 0:
            raise VenueError(self.name, f"non-positive price {price} for {base}/{quote}",
                             retryable=False)
        return price

    async def get_liquidity(self, base: str, quote: str) -> Optional[Decimal]:
        data = await self._request("GET", "/pool", params={"base": base, "quote": quote})
        if data.get("liquidity") is None:
            return None
        return self._decimal_field(data, "liquidity")

    async def estimate_slippage(self, base: str, quote: str, amount: Decimal) -> Optional[Decimal]:
        data = await self._request("GET", "/quote",
                                   params={"base": base, "quote": quote, "amount": str(amount)})
        if data.get("price_impact_percent") is None:
            return None
        return self._decimal_field(data, "price_impact_percent")

    async def _submit_swap(self, from_asset: str, to_asset: str, amount: Decimal,
                           minimum_output: Decimal, wallet: Any) -> str:
        payload = {
            "from_asset": from_asset,
            "to_asset": to_asset,
            "amount": str(amount),
            "minimum_output": str(minimum_output),
            "owner": wallet.public_key,
        }
        message = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()
        payload["signature"] = wallet.sign_message(message)

        logger.info(f"📤 Submitting swap on {self.name}: {amount} {from_asset} -> {to_asset}")
        data = await self._request("POST", "/swap", payload=payload)
        reference = data.get("signature")
        if not reference:
            raise VenueError(self.name, f"swap response missing signature: {data!r}",
                             retryable=False)
        logger.info(f"✅ Swap accepted on {self.name}: {reference}")
        return reference


class RaydiumExchange(HttpDexExchange):
    DEFAULT_FEE_PERCENT = Decimal("0.25")


class OrcaExchange(HttpDexExchange):
    DEFAULT_FEE_PERCENT = Decimal("0.3")


class SerumExchange(HttpDexExchange):
    DEFAULT_FEE_PERCENT = Decimal("0.04")
