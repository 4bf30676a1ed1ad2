"""
Pagination helpers for in-memory record lists.
"""

from typing import Any, Dict, List

from .timestamp_normalizer import EPOCH, record_time


def sort_by_timestamp_desc(records: List[Dict[str, Any]], field: str = "timestamp") -> List[Dict[str, Any]]:
    """
    Newest first. Records without a readable timestamp keep their relative
    order and sort after every dated record.
    """
    def sort_key(record: Dict[str, Any]):
        moment = record_time(record, field)
        if moment is None:
            return (1, 0.0)
        return (0, -(moment - EPOCH).total_seconds())

    return sorted(records, key=sort_key)


def paginate(records: List[Any], page: int, limit: int) -> Dict[str, Any]:
    """Slice an already-sorted list into a 1-based page."""
    page = max(page, 1)
    limit = max(limit, 1)
    start_index = (page - 1) * limit
    end_index = start_index + limit
    return {
        "items": records[start_index:end_index],
        "hasMore": end_index < len(records),
        "total": len(records),
        "page": page,
        "limit": limit,
    }
