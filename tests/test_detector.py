"""Tests for opportunity scanning and ranking."""

import pytest
from decimal import Decimal

from dexarb.core.detector import ArbitrageDetector
from dexarb.exchanges.registry import ExchangeRegistry

from fakes import FakeExchange, make_config


def build_detector(exchanges, **config_overrides):
    config = make_config(**config_overrides)
    return ArbitrageDetector(config, ExchangeRegistry(exchanges))


class TestScanBasics:
    """Venue count and pair handling."""

    @pytest.mark.asyncio
    async def test_single_venue_returns_nothing_without_price_queries(self):
        alpha = FakeExchange("alpha", price=100)
        detector = build_detector([alpha])

        assert await detector.find_opportunities() == []
        assert alpha.price_calls == 0

    @pytest.mark.asyncio
    async def test_no_venues_returns_nothing(self):
        detector = build_detector([])
        assert await detector.find_opportunities() == []

    @pytest.mark.asyncio
    async def test_invalid_pair_skipped(self):
        alpha = FakeExchange("alpha", price=100)
        beta = FakeExchange("beta", price=105)
        detector = build_detector([alpha, beta])
        detector.config.venues.trading_pairs.insert(0, "SOLUSDC")
        detector.config.venues.trading_pairs.insert(1, "SOL/")

        opportunities = await detector.find_opportunities()

        assert len(opportunities) == 1
        # Only the valid pair reached the venues
        assert alpha.price_calls == 1
        assert beta.price_calls == 1

    @pytest.mark.asyncio
    async def test_one_of_two_venues_failing_yields_nothing(self):
        alpha = FakeExchange("alpha", price=100)
        beta = FakeExchange("beta", fail_price=True)
        detector = build_detector([alpha, beta])

        assert await detector.find_opportunities() == []

    @pytest.mark.asyncio
    async def test_slow_venue_excluded(self):
        alpha = FakeExchange("alpha", price=100)
        beta = FakeExchange("beta", price=105)
        slow = FakeExchange("slow", price=200, price_delay=0.5)
        detector = build_detector([alpha, beta, slow], quote_timeout=0.05)

        opportunities = await detector.find_opportunities()

        assert len(opportunities) == 1
        assert opportunities[0].target_venue == "beta"

    @pytest.mark.asyncio
    async def test_venue_returning_no_price_excluded(self):
        alpha = FakeExchange("alpha", price=100)
        beta = FakeExchange("beta", price=105)
        broken = FakeExchange("broken")
        detector = build_detector([alpha, beta, broken])

        opportunities = await detector.find_opportunities()

        assert len(opportunities) == 1
        assert (opportunities[0].source_venue, opportunities[0].target_venue) == ("alpha", "beta")
        assert broken.price_calls == 1

    @pytest.mark.asyncio
    async def test_equal_prices_yield_nothing(self):
        detector = build_detector([FakeExchange("alpha", price=100), FakeExchange("beta", price=100)])
        assert await detector.find_opportunities() == []


class TestProfitMath:
    """Gross and net profit computation."""

    @pytest.mark.asyncio
    async def test_reference_example(self):
        alpha = FakeExchange("alpha", price=100, fee="0.25")
        beta = FakeExchange("beta", price=105, fee="0.25")
        detector = build_detector([alpha, beta], min_profit="1.0")

        opportunities = await detector.find_opportunities()

        assert len(opportunities) == 1
        opp = opportunities[0]
        assert opp.source_venue == "alpha"
        assert opp.target_venue == "beta"
        assert opp.base_asset == "SOL"
        assert opp.quote_asset == "USDC"
        assert opp.gross_profit_percent == Decimal("5")
        assert opp.net_profit_percent == Decimal("4.5")
        assert opp.buy_price < opp.sell_price

    @pytest.mark.asyncio
    async def test_below_threshold_dropped(self):
        alpha = FakeExchange("alpha", price=100, fee="0.25")
        beta = FakeExchange("beta", price=105, fee="0.25")
        detector = build_detector([alpha, beta], min_profit="5.0")

        assert await detector.find_opportunities() == []

    @pytest.mark.asyncio
    async def test_net_equal_to_threshold_kept(self):
        alpha = FakeExchange("alpha", price=100, fee="0.25")
        beta = FakeExchange("beta", price=105, fee="0.25")
        detector = build_detector([alpha, beta], min_profit="4.5")

        assert len(await detector.find_opportunities()) == 1

    @pytest.mark.asyncio
    async def test_default_fee_used_when_venue_has_none(self):
        alpha = FakeExchange("alpha", price=100)
        beta = FakeExchange("beta", price=102)
        detector = build_detector([alpha, beta], min_profit="0.1")

        opp = (await detector.find_opportunities())[0]

        assert opp.buy_fee_percent == Decimal("0.25")
        assert opp.sell_fee_percent == Decimal("0.25")
        assert opp.net_profit_percent == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_fractional_prices_exact(self):
        alpha = FakeExchange("alpha", price="0.1", fee="0")
        beta = FakeExchange("beta", price="0.3", fee="0")
        detector = build_detector([alpha, beta], min_profit="0.1")

        opp = (await detector.find_opportunities())[0]

        assert opp.gross_profit_percent == Decimal("200")


class TestSizingInScan:
    """Trade size and fee cost on detected opportunities."""

    @pytest.mark.asyncio
    async def test_size_capped_by_max_trade(self):
        alpha = FakeExchange("alpha", price=100, liquidity=1000, fee="0.25")
        beta = FakeExchange("beta", price=105, liquidity=1000, fee="0.25")
        detector = build_detector([alpha, beta], max_trade="50")

        opp = (await detector.find_opportunities())[0]

        assert opp.trade_size == Decimal("50")
        assert opp.estimated_fee_cost == Decimal("0.25")

    @pytest.mark.asyncio
    async def test_size_capped_by_lesser_liquidity(self):
        alpha = FakeExchange("alpha", price=100, liquidity=1000)
        beta = FakeExchange("beta", price=105, liquidity=200)
        detector = build_detector([alpha, beta], max_trade="50")

        opp = (await detector.find_opportunities())[0]

        assert opp.trade_size == Decimal("20")

    @pytest.mark.asyncio
    async def test_unknown_liquidity_uses_max_trade(self):
        alpha = FakeExchange("alpha", price=100)
        beta = FakeExchange("beta", price=105)
        detector = build_detector([alpha, beta], max_trade="50")

        opp = (await detector.find_opportunities())[0]

        assert opp.trade_size == Decimal("50")

    @pytest.mark.asyncio
    async def test_zero_liquidity_discards_candidate(self):
        alpha = FakeExchange("alpha", price=100, liquidity=0)
        beta = FakeExchange("beta", price=105, liquidity=1000)
        detector = build_detector([alpha, beta])

        assert await detector.find_opportunities() == []

    @pytest.mark.asyncio
    async def test_size_bounds_hold_for_every_opportunity(self):
        venues = [
            FakeExchange("alpha", price=100, liquidity=30),
            FakeExchange("beta", price=103, liquidity=5000),
            FakeExchange("gamma", price=108, liquidity=700),
        ]
        detector = build_detector(venues, max_trade="50", min_profit="0.1")

        for opp in await detector.find_opportunities():
            assert Decimal("0") < opp.trade_size <= Decimal("50")
            assert opp.net_profit_percent >= Decimal("0.1")
            assert opp.source_venue != opp.target_venue


class TestRanking:
    """Ordering across venues and pairs."""

    @pytest.mark.asyncio
    async def test_sorted_by_net_profit_descending(self):
        venues = [
            FakeExchange("alpha", price=100, fee="0"),
            FakeExchange("beta", price=102, fee="0"),
            FakeExchange("gamma", price=106, fee="0"),
        ]
        detector = build_detector(venues, min_profit="0.1")

        opportunities = await detector.find_opportunities()
        routes = [(o.source_venue, o.target_venue) for o in opportunities]

        assert routes == [("alpha", "gamma"), ("beta", "gamma"), ("alpha", "beta")]
        profits = [o.net_profit_percent for o in opportunities]
        assert profits == sorted(profits, reverse=True)

    @pytest.mark.asyncio
    async def test_ties_keep_encounter_order(self):
        detector = build_detector(
            [FakeExchange("alpha", price=100, fee="0"), FakeExchange("beta", price=110, fee="0")],
            pairs=("SOL/USDC", "RAY/USDC"),
            min_profit="0.1",
        )

        opportunities = await detector.find_opportunities()

        assert [o.base_asset for o in opportunities] == ["SOL", "RAY"]

    @pytest.mark.asyncio
    async def test_reverse_direction_detected(self):
        alpha = FakeExchange("alpha", price=105, fee="0.25")
        beta = FakeExchange("beta", price=100, fee="0.25")
        detector = build_detector([alpha, beta])

        opp = (await detector.find_opportunities())[0]

        assert (opp.source_venue, opp.target_venue) == ("beta", "alpha")
