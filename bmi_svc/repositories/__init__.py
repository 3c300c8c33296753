"""
Repository layer for record persistence.
"""
from repositories.record_repository import RecordRepository

__all__ = [
    "RecordRepository",
]
