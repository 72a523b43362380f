"""Kernel error codes and the exception that carries them."""

from __future__ import annotations

from enum import IntEnum

__all__ = ["ErrorCode", "KernelError", "error_name"]


class ErrorCode(IntEnum):
    """Numeric error codes used throughout the kernel I/O layer."""

    EINVAL = 1  # Invalid argument
    EBUSY = 2  # Device or resource busy
    ENOTSUP = 3  # Operation not supported
    EIO = 4  # I/O error
    EBADFMT = 5  # Bad format
    ENOENT = 6  # No such file or directory
    EACCESS = 7  # Permission denied
    EBADFD = 8  # File descriptor in bad state
    EMFILE = 9  # Too many open files
    EMPROC = 10  # Too many processes
    EMTHR = 11  # Too many threads
    ECHILD = 12  # No child process
    ENOMEM = 13  # Out of memory
    EPIPE = 14  # Broken pipe
    EEXIST = 15  # Object exists
    ENODATABLKS = 16  # No data blocks
    ENOINODEBLKS = 17  # No inode blocks


# Codes that have a printable name. EPIPE and the block-exhaustion codes are
# deliberately absent and report as unknown.
_ERROR_NAMES: dict[int, str] = {
    0: "(success)",
    ErrorCode.EINVAL: "EINVAL",
    ErrorCode.EBUSY: "EBUSY",
    ErrorCode.ENOTSUP: "ENOTSUP",
    ErrorCode.EIO: "EIO",
    ErrorCode.EBADFMT: "EBADFMT",
    ErrorCode.ENOENT: "ENOENT",
    ErrorCode.EACCESS: "EACCESS",
    ErrorCode.EBADFD: "EBADFD",
    ErrorCode.EMFILE: "EMFILE",
    ErrorCode.EMPROC: "EMPROC",
    ErrorCode.EMTHR: "EMTHR",
    ErrorCode.ECHILD: "ECHILD",
    ErrorCode.ENOMEM: "ENOMEM",
    ErrorCode.EEXIST: "EEXIST",
}


def error_name(code: int) -> str:
    """Return the symbolic name of an error code; negative codes are accepted."""
    return _ERROR_NAMES.get(abs(int(code)), "(unknown)")


class KernelError(Exception):
    """An operation failed with one of the kernel error codes."""

    def __init__(self, code: int, message: str | None = None) -> None:
        self.code = ErrorCode(abs(int(code)))
        self.message = message if message is not None else error_name(self.code)
        super().__init__(self.message)

    def __str__(self) -> str:
        name = error_name(self.code)
        if self.message == name:
            return name
        return f"{name}: {self.message}"