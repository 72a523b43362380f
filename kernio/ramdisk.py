"""Read-only storage device backed by an in-memory byte string."""

from __future__ import annotations

from typing import Any

from .deviceio import Fcntl
from .devices import DeviceManager, DeviceType, StorageDevice
from .errors import ErrorCode, KernelError

__all__ = ["RAMDISK_NAME", "Ramdisk", "ramdisk_attach"]

RAMDISK_NAME = "ramdisk"


class Ramdisk(StorageDevice):
    """A byte-addressed (block size 1), read-only memory disk."""

    def __init__(self, data: bytes) -> None:
        data = bytes(data)
        super().__init__(1, len(data))
        self._data = data
        self.opened = False

    def open(self) -> None:
        if not self._data:
            raise KernelError(ErrorCode.EINVAL, "ramdisk has no data")
        self.opened = True

    def close(self) -> None:
        self.opened = False

    def _check_open(self) -> None:
        if not self.opened:
            raise KernelError(ErrorCode.EINVAL, "ramdisk not open")
        if not self._data:
            raise KernelError(ErrorCode.EINVAL, "ramdisk has no data")

    def fetch(self, pos: int, size: int) -> bytes:
        """Return up to ``size`` bytes at ``pos``; empty past the end."""
        self._check_open()
        if size == 0 or pos >= len(self._data):
            return b""
        return self._data[pos : pos + size]

    def cntl(self, op: int, arg: Any = None) -> Any:
        """Answer ``Fcntl.GETEND`` with the capacity; other operations are unsupported."""
        if not self.opened:
            raise KernelError(ErrorCode.EINVAL, "ramdisk not open")
        if op == Fcntl.GETEND:
            return self.capacity
        raise KernelError(ErrorCode.ENOTSUP, f"unsupported control operation {op}")


def ramdisk_attach(manager: DeviceManager, data: bytes) -> Ramdisk | None:
    """Register a ramdisk holding ``data``; nothing is registered for empty data."""
    if not data:
        return None
    disk = Ramdisk(data)
    manager.register(RAMDISK_NAME, DeviceType.STORAGE, disk)
    return disk