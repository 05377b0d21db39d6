"""
Persistence services package.

Fire-and-forget recording with local buffering, durable stores and
read-only trend analysis.
"""

from harbor.services.persistence.stores import (
    RecordStore,
    InMemoryRecordStore,
    DatabaseRecordStore,
)
from harbor.services.persistence.sync_adapter import PersistenceAdapter, PendingWrite
from harbor.services.persistence.trends import (
    TrendDirection,
    TrendReport,
    analyze_trends,
)

__all__ = [
    # Stores
    "RecordStore",
    "InMemoryRecordStore",
    "DatabaseRecordStore",
    # Adapter
    "PersistenceAdapter",
    "PendingWrite",
    # Trends
    "TrendDirection",
    "TrendReport",
    "analyze_trends",
]
