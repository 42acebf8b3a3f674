"""Database operations for the DEX arbitrage bot."""

import sqlite3
import time
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
from loguru import logger

from .models import PerformanceSummary, TradeRecord, TradeStatus


class Database:
    """SQLite database interface."""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.connection: Optional[sqlite3.Connection] = None

    async def connect(self):
        """Connect to database."""
        try:
            self.connection = sqlite3.connect(self.db_path)
            self.connection.row_factory = sqlite3.Row
            await self._create_tables()
            logger.info(f"Connected to database: {self.db_path}")
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    async def disconnect(self):
        """Disconnect from database."""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("Disconnected from database")

    async def _create_tables(self):
        """Create database tables if they don't exist."""
        cursor = self.connection.cursor()

        # Decimals are stored as text to keep them exact
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS trades (
                id TEXT PRIMARY KEY,
                timestamp INTEGER NOT NULL,
                source_venue TEXT NOT NULL,
                target_venue TEXT NOT NULL,
                base_asset TEXT NOT NULL,
                quote_asset TEXT NOT NULL,
                amount TEXT NOT NULL,
                net_profit_percent TEXT NOT NULL,
                estimated_profit TEXT NOT NULL,
                status TEXT NOT NULL,
                buy_reference TEXT,
                sell_reference TEXT,
                error TEXT
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_trades_timestamp ON trades (timestamp)")

        self.connection.commit()
        logger.debug("Database tables created/verified")

    async def insert_trade(self, record: TradeRecord) -> None:
        """Insert a trade record."""
        if not self.connection:
            raise RuntimeError("Database not connected")

        self.connection.execute("""
            INSERT INTO trades (id, timestamp, source_venue, target_venue, base_asset, quote_asset,
                                amount, net_profit_percent, estimated_profit, status,
                                buy_reference, sell_reference, error)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            record.id,
            record.timestamp,
            record.source_venue,
            record.target_venue,
            record.base_asset,
            record.quote_asset,
            str(record.amount),
            str(record.net_profit_percent),
            str(record.estimated_profit),
            record.status.value,
            record.buy_reference,
            record.sell_reference,
            record.error,
        ))
        self.connection.commit()

    def _row_to_record(self, row: sqlite3.Row) -> TradeRecord:
        return TradeRecord(
            id=row["id"],
            timestamp=row["timestamp"],
            source_venue=row["source_venue"],
            target_venue=row["target_venue"],
            base_asset=row["base_asset"],
            quote_asset=row["quote_asset"],
            amount=Decimal(row["amount"]),
            net_profit_percent=Decimal(row["net_profit_percent"]),
            estimated_profit=Decimal(row["estimated_profit"]),
            status=TradeStatus(row["status"]),
            buy_reference=row["buy_reference"],
            sell_reference=row["sell_reference"],
            error=row["error"],
        )

    async def get_recent_trades(self, limit: int = 50, days: Optional[int] = None) -> List[TradeRecord]:
        """Get most recent trades, newest first."""
        if not self.connection:
            return []

        since = int(time.time()) - days * 86400 if days is not None else 0
        rows = self.connection.execute(
            "SELECT * FROM trades WHERE timestamp >= ? ORDER BY timestamp DESC LIMIT ?",
            (since, limit),
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    async def get_performance_summary(self, days: int) -> PerformanceSummary:
        """Aggregate trades from the last N days."""
        summary = PerformanceSummary()
        if not self.connection:
            return summary

        since = int(time.time()) - days * 86400
        rows = self.connection.execute(
            "SELECT status, net_profit_percent, estimated_profit FROM trades WHERE timestamp >= ?",
            (since,),
        ).fetchall()

        profit_percents = []
        for row in rows:
            summary.total_trades += 1
            status = TradeStatus(row["status"])
            if status == TradeStatus.FAILED:
                summary.failed_trades += 1
                continue
            if status == TradeStatus.SIMULATED:
                summary.simulated_trades += 1
            else:
                summary.successful_trades += 1
            summary.total_estimated_profit += Decimal(row["estimated_profit"])
            profit_percents.append(Decimal(row["net_profit_percent"]))

        if profit_percents:
            summary.avg_profit_percent = sum(profit_percents) / len(profit_percents)
        return summary
