"""Base venue interface for DEX arbitrage."""

import uuid
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional
from loguru import logger

from ..config import VenueSettings
from ..errors import VenueError

SIMULATED_PREFIX = "simulated_"


def is_simulated_reference(reference: str) -> bool:
    """Check whether a transaction reference came from a dry-run."""
    return reference.startswith(SIMULATED_PREFIX)


class BaseExchange(ABC):
    """Base venue interface.

    Every amount passed to a swap is the base-asset quantity of the leg, so
    the buy leg (quote -> base) and the sell leg (base -> quote) of one
    opportunity carry the same amount. Optional capabilities return None when
    the venue cannot answer; callers fall back to configured values.
    """

    DEFAULT_FEE_PERCENT: Optional[Decimal] = None

    def __init__(self, name: str, settings: Optional[VenueSettings] = None):
        self.name = name
        self.settings = settings or VenueSettings()
        self.atomic_with = set(self.settings.atomic_with)

    @abstractmethod
    async def get_price(self, base: str, quote: str) -> Decimal:
        """Get the current price of base in quote units."""
        pass

    @abstractmethod
    async def _submit_swap(self, from_asset: str, to_asset: str, amount: Decimal,
                           minimum_output: Decimal, wallet: Any) -> str:
        """Submit a state-changing swap and return its transaction reference."""
        pass

    async def execute_swap(self, dry_run: bool, from_asset: str, to_asset: str,
                           amount: Decimal, minimum_output: Decimal, wallet: Any) -> str:
        """Execute one leg. In dry-run no state-changing call is made."""
        if dry_run:
            reference = f"{SIMULATED_PREFIX}{self.name}_{uuid.uuid4().hex}"
            logger.info(f"🧪 [DRY RUN] {self.name}: {from_asset} -> {to_asset}, "
                        f"amount={amount}, min_out={minimum_output} ({reference})")
            return reference
        return await self._submit_swap(from_asset, to_asset, amount, minimum_output, wallet)

    def supports_atomic_execution(self, other: "BaseExchange") -> bool:
        """Whether both legs can be bundled with `other` into one operation."""
        return False

    async def execute_atomic(self, dry_run: bool, counterpart: "BaseExchange", base: str,
                             quote: str, amount: Decimal, minimum_output: Decimal,
                             wallet: Any) -> str:
        """Buy on this venue and sell on `counterpart` as one indivisible operation."""
        if not self.supports_atomic_execution(counterpart):
            raise VenueError(self.name, f"atomic execution with {counterpart.name} not supported",
                             retryable=False)
        if dry_run:
            reference = f"{SIMULATED_PREFIX}{self.name}_{counterpart.name}_{uuid.uuid4().hex}"
            logger.info(f"🧪 [DRY RUN] atomic {base}/{quote} {self.name} -> {counterpart.name}, "
                        f"amount={amount}, min_out={minimum_output} ({reference})")
            return reference
        return await self._submit_atomic(counterpart, base, quote, amount, minimum_output, wallet)

    async def _submit_atomic(self, counterpart: "BaseExchange", base: str, quote: str,
                             amount: Decimal, minimum_output: Decimal, wallet: Any) -> str:
        raise VenueError(self.name, "atomic submission not implemented", retryable=False)

    async def get_fee_percent(self) -> Optional[Decimal]:
        """Get the swap fee in percent."""
        if self.settings.fee_percent is not None:
            return self.settings.fee_percent
        return self.DEFAULT_FEE_PERCENT

    async def get_liquidity(self, base: str, quote: str) -> Optional[Decimal]:
        """Get available liquidity for the pair in base units."""
        return None

    async def estimate_slippage(self, base: str, quote: str, amount: Decimal) -> Optional[Decimal]:
        """Estimate price impact in percent for trading `amount` base units."""
        return None

    async def close(self) -> None:
        """Release transport resources."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
