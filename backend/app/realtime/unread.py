"""Unread message counters for badge display.

Counts are derived from the message store on every call, so they are as
consistent as the store itself: a write followed by a read in the same
process always agrees.
"""
from typing import Dict

from app.messages.service import MessageStore


class UnreadAggregator:
    """Per-viewer unread message counts grouped by counterpart."""

    def __init__(self, messages: MessageStore) -> None:
        self._messages = messages

    def unread_counts(self, viewer_id: str) -> Dict[str, int]:
        """Map of sender id → unread, non-deleted messages to ``viewer_id``.

        Counterparts with nothing unread are absent.
        """
        return self._messages.unread_counts(viewer_id)

    def total_unread(self, viewer_id: str) -> int:
        return sum(self.unread_counts(viewer_id).values())
