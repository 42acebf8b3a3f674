"""Tests for trade sizing and fee lookup."""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock

from dexarb.config import ArbitrageConfig
from dexarb.core.sizing import TradeSizer, calculate_profit
from dexarb.errors import InsufficientLiquidity

from fakes import FakeExchange


class TestProfit:
    """Gross/net profit helper."""

    def test_gross_and_net(self):
        gross, net = calculate_profit(Decimal("100"), Decimal("105"), Decimal("0.25"), Decimal("0.25"))
        assert gross == Decimal("5")
        assert net == Decimal("4.5")

    def test_negative_gap(self):
        gross, net = calculate_profit(Decimal("105"), Decimal("100"), Decimal("0"), Decimal("0"))
        assert gross < 0
        assert net == gross


class TestTradeSizer:
    """Liquidity-bounded sizing."""

    def setup_method(self):
        self.sizer = TradeSizer(ArbitrageConfig(max_trade_amount="50"))

    def test_max_trade_binds(self):
        assert self.sizer.size_from_liquidity(Decimal("1000"), Decimal("1000")) == Decimal("50")

    def test_liquidity_fraction_binds(self):
        assert self.sizer.size_from_liquidity(Decimal("300"), Decimal("1000")) == Decimal("30")

    def test_zero_liquidity_raises(self):
        with pytest.raises(InsufficientLiquidity):
            self.sizer.size_from_liquidity(Decimal("0"), Decimal("1000"))

    def test_negative_liquidity_raises(self):
        with pytest.raises(InsufficientLiquidity):
            self.sizer.size_from_liquidity(Decimal("-5"), Decimal("1000"))

    def test_fee_cost(self):
        assert self.sizer.fee_cost(Decimal("50"), Decimal("0.5")) == Decimal("0.25")

    @pytest.mark.asyncio
    async def test_unknown_liquidity_defaults_to_ten_times_max(self):
        venue = FakeExchange("alpha")
        assert await self.sizer.venue_liquidity(venue, "SOL", "USDC") == Decimal("500")

    @pytest.mark.asyncio
    async def test_liquidity_error_defaults_to_ten_times_max(self):
        venue = FakeExchange("alpha")
        venue.get_liquidity = AsyncMock(side_effect=RuntimeError("rpc down"))
        assert await self.sizer.venue_liquidity(venue, "SOL", "USDC") == Decimal("500")

    @pytest.mark.asyncio
    async def test_calculate_trade_size_uses_both_venues(self):
        alpha = FakeExchange("alpha", liquidity=80)
        beta = FakeExchange("beta", liquidity=900)
        size = await self.sizer.calculate_trade_size(alpha, beta, "SOL", "USDC")
        assert size == Decimal("8")


class TestFeeLookup:
    """Fee resolution order."""

    def setup_method(self):
        self.sizer = TradeSizer(ArbitrageConfig())

    @pytest.mark.asyncio
    async def test_venue_fee_used(self):
        assert await self.sizer.fee_percent(FakeExchange("alpha", fee="0.3")) == Decimal("0.3")

    @pytest.mark.asyncio
    async def test_missing_fee_falls_back_to_default(self):
        assert await self.sizer.fee_percent(FakeExchange("alpha")) == Decimal("0.25")

    @pytest.mark.asyncio
    async def test_failing_fee_falls_back_to_default(self):
        venue = FakeExchange("alpha")
        venue.get_fee_percent = AsyncMock(side_effect=RuntimeError("boom"))
        assert await self.sizer.fee_percent(venue) == Decimal("0.25")
