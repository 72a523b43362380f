"""A write-through block cache in front of a storage device."""

from __future__ import annotations

import threading

from .devices import StorageDevice, storage_fetch, storage_store
from .errors import ErrorCode, KernelError

__all__ = ["CACHE_BLKSZ", "CACHE_SIZE", "BlockCache"]

CACHE_BLKSZ = 512  # size of one cached block
CACHE_SIZE = 64  # number of blocks held by a cache


class BlockCache:
    """Fixed-size LRU cache of ``CACHE_BLKSZ``-byte blocks of a storage device.

    A block obtained with :meth:`get_block` is held (locked) by the caller
    until it is handed back with :meth:`release_block`.  Modified blocks are
    written to the device when they are released.
    """

    def __init__(self, disk: StorageDevice | None) -> None:
        if disk is None:
            raise KernelError(ErrorCode.EINVAL, "cache needs a backing device")
        self.disk = disk
        self._blocks = [bytearray(CACHE_BLKSZ) for _ in range(CACHE_SIZE)]
        self._positions: list[int | None] = [None] * CACHE_SIZE
        # Higher value means less recently used.
        self._last_accessed = [0] * CACHE_SIZE
        self._locks = [threading.RLock() for _ in range(CACHE_SIZE)]

    def _fill(self, slot: int, pos: int) -> None:
        data = storage_fetch(self.disk, pos, CACHE_BLKSZ)
        block = self._blocks[slot]
        count = min(len(data), CACHE_BLKSZ)
        block[:count] = data[:count]
        block[count:] = bytes(CACHE_BLKSZ - count)

    def get_block(self, pos: int) -> bytearray:
        """Return the cached block at device position ``pos``, holding it."""
        if pos % CACHE_BLKSZ:
            raise KernelError(ErrorCode.EINVAL, "block position not aligned")

        if pos in self._positions:
            slot = self._positions.index(pos)
            self._locks[slot].acquire()
            return self._blocks[slot]

        if None in self._positions:
            slot = self._positions.index(None)
            self._locks[slot].acquire()
            self._positions[slot] = pos
            try:
                self._fill(slot, pos)
            except KernelError:
                self._positions[slot] = None
                self._locks[slot].release()
                raise
            return self._blocks[slot]

        lru = max(range(CACHE_SIZE), key=self._last_accessed.__getitem__)
        self._locks[lru].acquire()
        try:
            self._fill(lru, pos)
        except KernelError:
            self._locks[lru].release()
            raise
        self._positions[lru] = pos
        return self._blocks[lru]

    def _slot_of(self, block: bytearray) -> int:
        for slot, cached in enumerate(self._blocks):
            if cached is block:
                return slot
        raise KernelError(ErrorCode.EINVAL, "block does not belong to this cache")

    def release_block(self, block: bytearray, dirty: bool) -> None:
        """Hand back a block from :meth:`get_block`, writing it out if ``dirty``.

        If writing the block fails the error is raised and the block stays held.
        """
        slot = self._slot_of(block)
        lock = self._locks[slot]
        with lock:
            if dirty:
                storage_store(self.disk, self._positions[slot], bytes(block))
            for other in range(CACHE_SIZE):
                if other != slot:
                    self._last_accessed[other] += 1
            self._last_accessed[slot] = 0
        lock.release()

    def flush(self) -> None:
        """Wait until no block is held by another thread.

        Blocks are written through on release, so nothing else is pending.
        """
        for lock in self._locks:
            with lock:
                pass