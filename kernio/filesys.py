"""Mount table: named filesystems and the operations routed to them."""

from __future__ import annotations

from typing import Any, Iterator

from .deviceio import DevFS
from .devices import DeviceManager
from .errors import ErrorCode, KernelError

__all__ = ["Filesystem", "NullFilesystem", "MountTable", "parse_path"]


class Filesystem:
    """Base class for mountable filesystems.

    Operations a subclass does not override report ``ENOTSUP``; ``flush``
    does nothing.
    """

    def open(self, name: str | None) -> Any:
        raise KernelError(ErrorCode.ENOTSUP)

    def create(self, name: str) -> None:
        raise KernelError(ErrorCode.ENOTSUP)

    def delete(self, name: str) -> None:
        raise KernelError(ErrorCode.ENOTSUP)

    def flush(self) -> None:
        pass


class NullFilesystem(Filesystem):
    """A filesystem that holds no files."""

    def open(self, name: str | None) -> Any:
        raise KernelError(ErrorCode.ENOENT, f"no file {name!r}")


class _MountListingIO:
    """Reads the names of mount points, one name per read."""

    def __init__(self, names: tuple[str, ...]) -> None:
        self._names: Iterator[str] = iter(names)

    def read(self, size: int) -> bytes:
        """Return the next mount point name, cut to ``size`` bytes; ``b""`` at the end."""
        name = next(self._names, None)
        if name is None:
            return b""
        return name.encode()[:size]

    def close(self) -> None:
        self._names = iter(())

    def __enter__(self) -> "_MountListingIO":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _call(fs: Any, operation: str, *args: Any) -> Any:
    method = getattr(fs, operation, None)
    if method is None:
        raise KernelError(ErrorCode.ENOTSUP, f"filesystem does not support {operation}")
    return method(*args)


class MountTable:
    """Filesystems attached under unique mount point names, in mount order."""

    def __init__(self) -> None:
        self._mounts: dict[str, Any] = {}

    def attach(self, name: str, fs: Any) -> None:
        """Attach ``fs`` under ``name``; an existing name raises ``EEXIST``."""
        if name in self._mounts:
            raise KernelError(ErrorCode.EEXIST, f"mount point {name!r} exists")
        self._mounts[name] = fs

    def _getfs(self, mpname: str) -> Any:
        try:
            return self._mounts[mpname]
        except KeyError:
            raise KernelError(ErrorCode.ENOENT, f"no mount point {mpname!r}") from None

    def open_file(self, mpname: str | None, flname: str | None) -> Any:
        """Open ``flname`` on mount point ``mpname``.

        An empty or missing mount point name opens a listing of mount points.
        """
        if mpname is None and flname is not None:
            raise KernelError(ErrorCode.EINVAL, "file name given without mount point")
        if not mpname:
            return _MountListingIO(tuple(self._mounts))
        return _call(self._getfs(mpname), "open", flname)

    def create_file(self, mpname: str | None, flname: str | None) -> None:
        """Create ``flname`` on mount point ``mpname``."""
        if mpname is None or flname is None:
            raise KernelError(ErrorCode.EINVAL)
        _call(self._getfs(mpname), "create", flname)

    def delete_file(self, mpname: str | None, flname: str | None) -> None:
        """Delete ``flname`` from mount point ``mpname``."""
        if mpname is None or flname is None:
            raise KernelError(ErrorCode.EINVAL)
        _call(self._getfs(mpname), "delete", flname)

    def flushall(self) -> None:
        """Flush every mounted filesystem that supports flushing."""
        for fs in self._mounts.values():
            flush = getattr(fs, "flush", None)
            if flush is not None:
                flush()

    def mount_nullfs(self, name: str) -> NullFilesystem:
        """Mount an empty filesystem under ``name``."""
        fs = NullFilesystem()
        self.attach(name, fs)
        return fs

    def mount_devfs(self, name: str, manager: DeviceManager) -> DevFS:
        """Mount the devices of ``manager`` under ``name``."""
        fs = DevFS(manager)
        self.attach(name, fs)
        return fs


def parse_path(path: str | None) -> tuple[str, str | None]:
    """Split ``path`` at its first ``/`` into mount point and file name.

    A path without ``/`` names only a mount point; the file name is then None.
    """
    if path is None:
        raise KernelError(ErrorCode.EINVAL)
    mpname, sep, flname = path.partition("/")
    if not sep:
        return path, None
    return mpname, flname