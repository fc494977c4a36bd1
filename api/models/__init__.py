"""
API data models. Single import surface for DB entities.

DB entities (api.models.models):
- HistoryRecord
"""

from api.models.models import HistoryRecord

__all__ = [
    "HistoryRecord",
]
