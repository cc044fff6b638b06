"""Ingestion layer.

Turns raw coordination-store events into normalized node statuses.
"""

__all__: list[str] = []
