"""
In-memory store of the latest order book per exchange:pair key.
"""

import threading
from typing import Dict, List, Optional

from .types import NormalizedBook


class BookCache:
    """
    Latest NormalizedBook per "<exchange>:<pair>" key.

    Every put replaces the previous entry wholesale. Reads that return more
    than one entry hand back point-in-time copies, never live views.
    """

    def __init__(self):
        self._books: Dict[str, NormalizedBook] = {}
        self._lock = threading.RLock()

    def put(self, key: str, book: NormalizedBook) -> None:
        with self._lock:
            self._books[key] = book

    def get(self, key: str) -> Optional[NormalizedBook]:
        with self._lock:
            return self._books.get(key)

    def all_except(self, key: str) -> Dict[str, NormalizedBook]:
        """Snapshot of every entry other than key."""
        with self._lock:
            return {k: book for k, book in self._books.items() if k != key}

    def snapshot(self) -> Dict[str, NormalizedBook]:
        with self._lock:
            return dict(self._books)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._books)

    def exchanges(self) -> List[str]:
        """Distinct exchange names, in first-seen order."""
        with self._lock:
            return list(dict.fromkeys(book.exchange for book in self._books.values()))

    def remove(self, key: str) -> Optional[NormalizedBook]:
        with self._lock:
            return self._books.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._books.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._books

    def __len__(self) -> int:
        with self._lock:
            return len(self._books)
