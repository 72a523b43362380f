"""Device classes, the device registry and checked device operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterator

from .errors import ErrorCode, KernelError

__all__ = [
    "DeviceType",
    "SerialDevice",
    "StorageDevice",
    "DeviceRecord",
    "DeviceManager",
    "device_type_short_name",
    "serial_recv",
    "serial_send",
    "storage_fetch",
    "storage_store",
]


class DeviceType(IntEnum):
    """Classes of device known to the device manager."""

    UNDEF = 0
    SERIAL = 1  # UART, RTC, rng, input
    STORAGE = 2  # block devices
    VIDEO = 3  # GPU


_SHORT_NAMES = {
    DeviceType.SERIAL: "ser",
    DeviceType.STORAGE: "sto",
    DeviceType.VIDEO: "vid",
}


def device_type_short_name(type: int) -> str:
    """Return the three-letter name of a device type, or ``UNK``."""
    try:
        return _SHORT_NAMES.get(DeviceType(type), "UNK")
    except ValueError:
        return "UNK"


class SerialDevice:
    """Base class for byte-stream devices.

    Subclasses override the operations they support; the defaults report
    ``ENOTSUP`` (``close`` does nothing).
    """

    def __init__(self, blksz: int = 1) -> None:
        self.blksz = blksz

    def open(self) -> None:
        raise KernelError(ErrorCode.ENOTSUP)

    def close(self) -> None:
        pass

    def recv(self, size: int) -> bytes:
        raise KernelError(ErrorCode.ENOTSUP)

    def send(self, data: bytes) -> int:
        raise KernelError(ErrorCode.ENOTSUP)

    def cntl(self, op: int, arg: Any = None) -> Any:
        raise KernelError(ErrorCode.ENOTSUP)


class StorageDevice:
    """Base class for block-addressed storage devices."""

    def __init__(self, blksz: int, capacity: int) -> None:
        self.blksz = blksz
        self.capacity = capacity

    def open(self) -> None:
        raise KernelError(ErrorCode.ENOTSUP)

    def close(self) -> None:
        pass

    def fetch(self, pos: int, size: int) -> bytes:
        raise KernelError(ErrorCode.ENOTSUP)

    def store(self, pos: int, data: bytes) -> int:
        raise KernelError(ErrorCode.ENOTSUP)

    def cntl(self, op: int, arg: Any = None) -> Any:
        raise KernelError(ErrorCode.ENOTSUP)


@dataclass(frozen=True)
class DeviceRecord:
    """One registered device."""

    name: str
    instno: int
    type: DeviceType
    device: Any

    @property
    def label(self) -> str:
        return f"{self.name}{self.instno}"


class DeviceManager:
    """Registry of devices, numbered per name in registration order."""

    def __init__(self) -> None:
        self._records: list[DeviceRecord] = []

    def register(self, name: str, type: int, device: Any) -> int:
        """Register a device and return its instance number."""
        try:
            dtype = DeviceType(type)
        except ValueError:
            raise KernelError(ErrorCode.EINVAL, f"bad device type {type!r}") from None
        if dtype is DeviceType.UNDEF:
            raise KernelError(ErrorCode.EINVAL, "bad device type UNDEF")
        instno = sum(1 for rec in self._records if rec.name == name)
        self._records.append(DeviceRecord(name, instno, dtype, device))
        return instno

    def find(self, name: str, type: int, instno: int) -> Any:
        """Return the device registered as ``name``/``instno`` of ``type``, or None."""
        for rec in self._records:
            if rec.type == type and rec.instno == instno and rec.name == name:
                return rec.device
        return None

    def listing(self) -> Iterator[str]:
        """Yield ``name`` + instance number for every device, in order."""
        for rec in self._records:
            yield rec.label

    def records(self) -> tuple[DeviceRecord, ...]:
        """Return all device records in registration order."""
        return tuple(self._records)


def _round_count(count: int, blksz: int) -> int:
    """Round a transfer size down to whole blocks; zero is allowed."""
    if count != 0 and count < blksz:
        raise KernelError(ErrorCode.EINVAL, "transfer smaller than block size")
    return count // blksz * blksz


def serial_recv(ser: SerialDevice | None, size: int) -> bytes:
    """Receive up to ``size`` bytes, rounded down to whole blocks."""
    if ser is None:
        raise KernelError(ErrorCode.EINVAL)
    return ser.recv(_round_count(size, ser.blksz))


def serial_send(ser: SerialDevice | None, data: bytes | None) -> int:
    """Send ``data`` rounded down to whole blocks; return the count sent."""
    if ser is None or data is None:
        raise KernelError(ErrorCode.EINVAL)
    count = _round_count(len(data), ser.blksz)
    return ser.send(bytes(data[:count]))


def _check_storage(sto: StorageDevice, pos: int, count: int) -> None:
    if (count != 0 and count < sto.blksz) or pos % sto.blksz != 0:
        raise KernelError(ErrorCode.EINVAL, "unaligned storage access")


def storage_fetch(sto: StorageDevice | None, pos: int, size: int) -> bytes:
    """Fetch ``size`` bytes at block-aligned ``pos``."""
    if sto is None:
        raise KernelError(ErrorCode.EINVAL)
    _check_storage(sto, pos, size)
    return sto.fetch(pos, size)


def storage_store(sto: StorageDevice | None, pos: int, data: bytes | None) -> int:
    """Store ``data`` at block-aligned ``pos``; return the count written."""
    if sto is None or data is None:
        raise KernelError(ErrorCode.EINVAL)
    _check_storage(sto, pos, len(data))
    return sto.store(pos, bytes(data))