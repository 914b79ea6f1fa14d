"""Bounded history of recent chat lines."""

import threading
from collections import deque
from typing import Deque, Optional, Tuple

from .models import ChatLogEntry

DEFAULT_CHAT_CAPACITY = 10


def format_chat_message(sender: Optional[str], message: str) -> str:
    if sender:
        return f"[{sender}] {message}"
    return f"[System] {message}"


class ChatLog:
    """Append-only ring of the most recent chat lines, oldest evicted first."""

    def __init__(self, capacity: int = DEFAULT_CHAT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: Deque[ChatLogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, sender: Optional[str], message: str) -> ChatLogEntry:
        entry = ChatLogEntry(formatted_text=format_chat_message(sender, message))
        with self._lock:
            self._entries.append(entry)
        return entry

    def entries(self) -> Tuple[ChatLogEntry, ...]:
        """Copy of the current entries, most recent last."""
        with self._lock:
            return tuple(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
