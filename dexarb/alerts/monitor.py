"""Event sink for trades, errors and warnings."""

import time
from collections import deque
from decimal import Decimal
from typing import Any, Callable, Deque, Dict, List
from loguru import logger

EventListener = Callable[[Dict[str, Any]], None]


class Monitor:
    """Fire-and-forget event sink.

    Events are logged, counted and handed to registered listeners. Listener
    failures are logged and never reach the caller.
    """

    def __init__(self, log_trades: bool = True, history_size: int = 100):
        self.log_trades = log_trades
        self.trades_recorded = 0
        self.errors_recorded = 0
        self.warnings_recorded = 0
        self.recent_events: Deque[Dict[str, Any]] = deque(maxlen=history_size)
        self._listeners: List[EventListener] = []

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: Dict[str, Any]) -> None:
        self.recent_events.append(event)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Monitor listener failed on {event['kind']} event: {e}")

    def record_trade(self, source_venue: str, target_venue: str, net_profit_percent: Decimal,
                     dry_run: bool) -> None:
        """Record a successful arbitrage."""
        self.trades_recorded += 1
        mode = "SIMULATION" if dry_run else "LIVE"
        if self.log_trades:
            logger.info(f"[ARBITRAGE] {source_venue} -> {target_venue} | "
                        f"profit {net_profit_percent:.4f}% | {mode}")
        self._emit({
            "kind": "trade",
            "ts": int(time.time() * 1000),
            "source_venue": source_venue,
            "target_venue": target_venue,
            "net_profit_percent": str(net_profit_percent),
            "dry_run": dry_run,
        })

    def record_error(self, message: str) -> None:
        self.errors_recorded += 1
        logger.error(f"[ERROR] {message}")
        self._emit({"kind": "error", "ts": int(time.time() * 1000), "message": message})

    def record_warning(self, message: str) -> None:
        self.warnings_recorded += 1
        logger.warning(f"[WARNING] {message}")
        self._emit({"kind": "warning", "ts": int(time.time() * 1000), "message": message})

    def get_summary(self) -> Dict[str, Any]:
        return {
            "trades": self.trades_recorded,
            "errors": self.errors_recorded,
            "warnings": self.warnings_recorded,
        }
