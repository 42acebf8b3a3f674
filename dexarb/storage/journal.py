"""Trade journaling for the DEX arbitrage bot."""

from decimal import Decimal
from loguru import logger

from .db import Database
from .models import PerformanceSummary, TradeRecord, TradeStatus
from ..core.types import ArbitrageOpportunity, ExecutionResult


class TradeJournal:
    """Handles trade journaling and reporting."""

    def __init__(self, database: Database):
        self.database = database

    async def journal_execution(self, result: ExecutionResult) -> TradeRecord:
        """Journal a completed execution."""
        opportunity = result.opportunity
        record = TradeRecord(
            source_venue=opportunity.source_venue,
            target_venue=opportunity.target_venue,
            base_asset=opportunity.base_asset,
            quote_asset=opportunity.quote_asset,
            amount=result.trade_size,
            net_profit_percent=opportunity.net_profit_percent,
            estimated_profit=result.trade_size * opportunity.buy_price
                             * opportunity.net_profit_percent / Decimal(100),
            status=TradeStatus.SIMULATED if result.dry_run else TradeStatus.SUCCESS,
            buy_reference=result.buy_reference,
            sell_reference=result.sell_reference,
        )
        await self.database.insert_trade(record)
        logger.debug(f"Journaled {record.status.value} trade {record.id}: {record.pair}")
        return record

    async def journal_failure(self, opportunity: ArbitrageOpportunity, error: Exception) -> TradeRecord:
        """Journal a failed execution."""
        record = TradeRecord(
            source_venue=opportunity.source_venue,
            target_venue=opportunity.target_venue,
            base_asset=opportunity.base_asset,
            quote_asset=opportunity.quote_asset,
            amount=opportunity.trade_size,
            net_profit_percent=opportunity.net_profit_percent,
            estimated_profit=Decimal("0"),
            status=TradeStatus.FAILED,
            buy_reference=getattr(error, "buy_reference", None),
            error=str(error),
        )
        await self.database.insert_trade(record)
        logger.debug(f"Journaled failed trade {record.id}: {record.pair}")
        return record

    async def get_performance_summary(self, days: int) -> PerformanceSummary:
        return await self.database.get_performance_summary(days)

    async def generate_report(self, days: int) -> str:
        """Generate trading report for last N days."""
        summary = await self.database.get_performance_summary(days)
        trades = await self.database.get_recent_trades(limit=10, days=days)

        report = f"""
=== TRADING REPORT (Last {days} days) ===
Performance Summary:
- Total Trades: {summary.total_trades}
- Successful: {summary.successful_trades}
- Simulated: {summary.simulated_trades}
- Failed: {summary.failed_trades}
- Success Rate: {summary.success_rate:.2%}
- Estimated Profit: {summary.total_estimated_profit:.6f}
- Average Profit: {summary.avg_profit_percent:.4f}%

Recent Trades:
"""
        for trade in trades:
            report += (f"- {trade.pair}: {trade.source_venue} -> {trade.target_venue} "
                       f"{trade.amount} @ {trade.net_profit_percent:.4f}% [{trade.status.value}]\n")
        return report
