"""Keeps responses to pipelined requests in the order the requests arrived."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, List

_PENDING = object()


class ResponseQueue:
    """Ordered slots for responses that may complete out of order.

    Each request reserves a slot with :meth:`reserve`. When a response is
    ready, :meth:`complete` stores it and returns every response that can now
    be written, in request order: the completed slot is released only once all
    earlier slots have been released.
    """

    def __init__(self) -> None:
        self._base = 0
        self._slots: Deque[Any] = deque()

    def reserve(self) -> int:
        """Reserve the next slot and return its index."""
        index = self._base + len(self._slots)
        self._slots.append(_PENDING)
        return index

    def complete(self, index: int, result: Any) -> List[Any]:
        """Store ``result`` for slot ``index``.

        Returns the responses that are now ready to be written, oldest first.
        Raises IndexError for an index that was never reserved or was already
        released, and ValueError for a slot completed twice.
        """
        offset = index - self._base
        if offset < 0 or offset >= len(self._slots):
            raise IndexError(f"response slot {index} is not reserved")
        if self._slots[offset] is not _PENDING:
            raise ValueError(f"response slot {index} is already completed")

        if offset != 0:
            self._slots[offset] = result
            return []

        self._slots.popleft()
        self._base += 1
        ready = [result]
        while self._slots and self._slots[0] is not _PENDING:
            ready.append(self._slots.popleft())
            self._base += 1
        return ready

    def is_empty(self) -> bool:
        """True when no slot is waiting to be released."""
        return not self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def __repr__(self) -> str:
        return f"ResponseQueue(base={self._base}, pending={len(self._slots)})"