"""Tests for trade history storage and reporting."""

import pytest
from decimal import Decimal

from dexarb.core.types import ExecutionResult, ExecutionStrategy
from dexarb.errors import ExecutionError
from dexarb.storage.db import Database
from dexarb.storage.journal import TradeJournal
from dexarb.storage.models import TradeRecord, TradeStatus

from fakes import make_opportunity


def make_result(dry_run: bool) -> ExecutionResult:
    return ExecutionResult(
        opportunity=make_opportunity(size="2", buy="100", sell="105", net="4.5"),
        strategy=ExecutionStrategy.TWO_STEP,
        trade_size=Decimal("2"),
        minimum_output=Decimal("207.9"),
        slippage_percent=Decimal("1"),
        buy_reference="tx_buy",
        sell_reference="tx_sell",
        dry_run=dry_run,
    )


class TestDatabase:
    """SQLite trade table."""

    @pytest.mark.asyncio
    async def test_insert_and_read_back(self, tmp_path):
        db = Database(str(tmp_path / "trades.sqlite"))
        await db.connect()
        try:
            record = TradeRecord(
                source_venue="raydium",
                target_venue="orca",
                base_asset="SOL",
                quote_asset="USDC",
                amount=Decimal("1.123456789"),
                net_profit_percent=Decimal("0.75"),
                estimated_profit=Decimal("0.0842"),
                status=TradeStatus.SUCCESS,
                buy_reference="a",
                sell_reference="b",
            )
            await db.insert_trade(record)

            trades = await db.get_recent_trades()
            assert len(trades) == 1
            assert trades[0].id == record.id
            assert trades[0].amount == Decimal("1.123456789")
            assert trades[0].status == TradeStatus.SUCCESS
            assert trades[0].pair == "SOL/USDC"
        finally:
            await db.disconnect()

    @pytest.mark.asyncio
    async def test_insert_without_connection(self, tmp_path):
        db = Database(str(tmp_path / "trades.sqlite"))
        record = TradeRecord("a", "b", "SOL", "USDC", Decimal("1"), Decimal("1"), Decimal("1"),
                             TradeStatus.FAILED)
        with pytest.raises(RuntimeError):
            await db.insert_trade(record)


class TestTradeJournal:
    """Journaling outcomes and summaries."""

    def setup_method(self):
        self.db = None

    def teardown_method(self):
        if self.db and self.db.connection:
            self.db.connection.close()

    async def _journal(self, tmp_path) -> TradeJournal:
        self.db = Database(str(tmp_path / "journal.sqlite"))
        await self.db.connect()
        return TradeJournal(self.db)

    @pytest.mark.asyncio
    async def test_statuses(self, tmp_path):
        journal = await self._journal(tmp_path)

        simulated = await journal.journal_execution(make_result(dry_run=True))
        live = await journal.journal_execution(make_result(dry_run=False))
        error = ExecutionError("rejected", "sell", "alpha", "beta", buy_reference="tx_buy")
        failed = await journal.journal_failure(make_opportunity(), error)

        assert simulated.status == TradeStatus.SIMULATED
        assert live.status == TradeStatus.SUCCESS
        assert live.estimated_profit == Decimal("9")
        assert failed.status == TradeStatus.FAILED
        assert failed.buy_reference == "tx_buy"
        assert "rejected" in failed.error

    @pytest.mark.asyncio
    async def test_performance_summary(self, tmp_path):
        journal = await self._journal(tmp_path)
        await journal.journal_execution(make_result(dry_run=True))
        await journal.journal_execution(make_result(dry_run=False))
        await journal.journal_failure(make_opportunity(), RuntimeError("boom"))

        summary = await journal.get_performance_summary(days=1)

        assert summary.total_trades == 3
        assert summary.successful_trades == 1
        assert summary.simulated_trades == 1
        assert summary.failed_trades == 1
        assert summary.total_estimated_profit == Decimal("18")
        assert summary.avg_profit_percent == Decimal("4.5")

    @pytest.mark.asyncio
    async def test_report_text(self, tmp_path):
        journal = await self._journal(tmp_path)
        await journal.journal_execution(make_result(dry_run=True))

        report = await journal.generate_report(days=7)

        assert "TRADING REPORT (Last 7 days)" in report
        assert "Simulated: 1" in report
        assert "SOL/USDC: alpha -> beta" in report
