"""Fixed-size ring buffer used by the serial port driver."""

from __future__ import annotations

from typing import Any

__all__ = ["UART_RBUFSZ", "RingBuffer"]

UART_RBUFSZ = 64


class RingBuffer:
    """A FIFO of fixed capacity with free-running head and tail counters."""

    def __init__(self, capacity: int = UART_RBUFSZ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._data: list[Any] = [None] * capacity
        self._hpos = 0  # where elements are removed
        self._tpos = 0  # where elements are inserted

    def empty(self) -> bool:
        return self._hpos == self._tpos

    def full(self) -> bool:
        return self._tpos - self._hpos == self.capacity

    def __len__(self) -> int:
        return self._tpos - self._hpos

    def put(self, c: Any) -> None:
        """Append ``c``; a full buffer raises ``OverflowError``."""
        if self.full():
            raise OverflowError("ring buffer full")
        self._data[self._tpos % self.capacity] = c
        self._tpos += 1

    def get(self) -> Any:
        """Remove and return the oldest element; an empty buffer raises ``IndexError``."""
        if self.empty():
            raise IndexError("ring buffer empty")
        c = self._data[self._hpos % self.capacity]
        self._hpos += 1
        return c

    def reset(self) -> None:
        """Discard all contents."""
        self._hpos = 0
        self._tpos = 0