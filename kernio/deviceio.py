"""File-like access to registered devices through the device filesystem."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Iterator

from .devices import (
    DeviceManager,
    DeviceType,
    SerialDevice,
    StorageDevice,
    serial_recv,
    serial_send,
    storage_fetch,
    storage_store,
)
from .errors import ErrorCode, KernelError

__all__ = [
    "Fcntl",
    "ListingIO",
    "SerialIO",
    "StorageIO",
    "DevFS",
    "open_device",
]


class Fcntl(IntEnum):
    """Control operations understood by file-like device objects."""

    GETEND = 0
    GETPOS = 1
    SETPOS = 2


def _round_down(value: int, blksz: int) -> int:
    return value // blksz * blksz


class _DeviceIO:
    """Shared context-manager behaviour for device I/O objects."""

    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ListingIO(_DeviceIO):
    """Reads the names of registered devices, one name per read."""

    def __init__(self, manager: DeviceManager) -> None:
        self._labels: Iterator[str] = manager.listing()

    def read(self, size: int) -> bytes:
        """Return the next device name, cut to ``size`` bytes; ``b""`` at the end."""
        label = next(self._labels, None)
        if label is None:
            return b""
        return label.encode()[:size]

    def close(self) -> None:
        self._labels = iter(())


class SerialIO(_DeviceIO):
    """Stream access to an opened serial device."""

    def __init__(self, ser: SerialDevice) -> None:
        self.ser = ser

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes, filling a partial trailing block if possible."""
        blksz = self.ser.blksz
        aligned = _round_down(size, blksz)
        data = serial_recv(self.ser, aligned)
        remainder = size % blksz
        if remainder and len(data) == aligned:
            try:
                extra = serial_recv(self.ser, blksz)
            except KernelError:
                return data
            if not extra:
                return data
            return data + extra[:remainder]
        return data

    def write(self, data: bytes) -> int:
        """Send ``data``; return the number of bytes accepted."""
        return serial_send(self.ser, data)

    def cntl(self, op: int, arg: Any = None) -> Any:
        return self.ser.cntl(op, arg)

    def close(self) -> None:
        self.ser.close()


class StorageIO(_DeviceIO):
    """Byte-addressed, positioned access to an opened storage device."""

    def __init__(self, sto: StorageDevice) -> None:
        self.sto = sto
        self.pos = 0
        self._buffer = bytearray(sto.blksz)

    def _load_block(self) -> int:
        """Fetch the block holding ``pos`` into the internal buffer; return its start."""
        start = _round_down(self.pos, self.sto.blksz)
        block = storage_fetch(self.sto, start, self.sto.blksz)
        self._buffer[: len(block)] = block
        return start

    def _unaligned_fetch(self, size: int) -> bytes:
        blksz = self.sto.blksz
        self._load_block()
        offset = self.pos % blksz
        count = min(blksz - offset, size)
        return bytes(self._buffer[offset : offset + count])

    def _unaligned_store(self, data: bytes) -> int:
        blksz = self.sto.blksz
        start = self._load_block()
        offset = self.pos % blksz
        count = min(blksz - offset, len(data))
        self._buffer[offset : offset + count] = data[:count]
        storage_store(self.sto, start, bytes(self._buffer))
        return count

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes at the current position and advance it."""
        blksz = self.sto.blksz
        data = b""

        if self.pos % blksz:
            data = self._unaligned_fetch(size)
            if not data:
                return data
            self.pos += len(data)
            size -= len(data)

        if size == 0:
            return data

        wanted = _round_down(size, blksz)
        try:
            chunk = storage_fetch(self.sto, self.pos, wanted)
        except KernelError:
            if data:
                return data
            raise
        self.pos += len(chunk)
        if len(chunk) < wanted:
            return data + chunk
        data += chunk
        size -= len(chunk)

        if size % blksz:
            try:
                tail = self._unaligned_fetch(size)
            except KernelError:
                return data
            data += tail
            self.pos += len(tail)

        return data

    def write(self, data: bytes) -> int:
        """Write ``data`` at the current position and advance it; return the count."""
        blksz = self.sto.blksz
        data = bytes(data)
        written = 0

        if self.pos % blksz:
            written = self._unaligned_store(data)
            self.pos += written

        remaining = len(data) - written
        if remaining == 0:
            return written

        wanted = _round_down(remaining, blksz)
        try:
            result = storage_store(self.sto, self.pos, data[written : written + wanted])
        except KernelError:
            if written:
                return written
            raise
        self.pos += result
        if result < wanted:
            return written + result
        written += result
        remaining -= result

        if remaining % blksz:
            try:
                tail = self._unaligned_store(data[written:])
            except KernelError:
                return written
            written += tail
            self.pos += tail

        return written

    def cntl(self, op: int, arg: Any = None) -> Any:
        """Handle position control here; pass every other operation to the device."""
        if op == Fcntl.SETPOS:
            if arg is None or arg > self.sto.capacity:
                raise KernelError(ErrorCode.EINVAL, "position out of range")
            self.pos = arg
            return None
        if op == Fcntl.GETPOS:
            return self.pos
        return self.sto.cntl(op, arg)

    def close(self) -> None:
        self.sto.close()


def _split_name(name: str) -> tuple[str, int]:
    """Split ``name`` into a device name and its trailing instance number."""
    stem = name.rstrip("0123456789")
    if stem == name:
        raise KernelError(ErrorCode.ENOENT, f"no instance number in {name!r}")
    return stem, int(name[len(stem) :])


def open_device(manager: DeviceManager, name: str) -> SerialIO | StorageIO:
    """Open the device named like ``uart1`` and wrap it in an I/O object."""
    stem, instno = _split_name(name)
    for rec in manager.records():
        if rec.name != stem or rec.instno != instno:
            continue
        if rec.type is DeviceType.SERIAL:
            if rec.device is None:
                raise KernelError(ErrorCode.EINVAL, f"{name} has no device")
            rec.device.open()
            return SerialIO(rec.device)
        if rec.type is DeviceType.STORAGE:
            if rec.device is None:
                raise KernelError(ErrorCode.EINVAL, f"{name} has no device")
            rec.device.open()
            return StorageIO(rec.device)
        if rec.type is DeviceType.VIDEO:
            raise KernelError(ErrorCode.ENOTSUP, "video devices cannot be opened as files")
        raise KernelError(ErrorCode.EINVAL, "bad device type")
    raise KernelError(ErrorCode.ENOENT, f"no device {name!r}")


class DevFS:
    """Filesystem view of a device manager."""

    def __init__(self, manager: DeviceManager) -> None:
        self.manager = manager

    def open(self, name: str | None) -> ListingIO | SerialIO | StorageIO:
        """Open a device by name, or the device listing for an empty name."""
        if not name:
            return ListingIO(self.manager)
        return open_device(self.manager, name)