"""Trade history storage for DEX arbitrage."""

from .db import Database
from .models import TradeRecord, TradeStatus, PerformanceSummary
from .journal import TradeJournal

__all__ = [
    'Database',
    'TradeRecord',
    'TradeStatus',
    'PerformanceSummary',
    'TradeJournal'
]
