"""Line-disciplined console on top of a character device."""

from __future__ import annotations

import threading
from typing import Any, Callable

__all__ = ["Console"]


class Console:
    """Console I/O with CR/LF translation and simple line editing.

    ``device_putc`` writes one character to the device and ``device_getc``
    reads one. Without them output is discarded and input is an error.
    """

    def __init__(
        self,
        device_putc: Callable[[str], Any] | None = None,
        device_getc: Callable[[], str] | None = None,
        device_init: Callable[[], Any] | None = None,
    ) -> None:
        self._device_putc = device_putc
        self._device_getc = device_getc
        if device_init is not None:
            device_init()
        self._out_prev = "\0"
        self._in_prev = "\0"
        self._lock = threading.RLock()
        self.initialized = True

    def _emit(self, c: str) -> None:
        if self._device_putc is not None:
            self._device_putc(c)

    def _receive(self) -> str:
        if self._device_getc is None:
            raise RuntimeError("no getc")
        return self._device_getc()

    def putc(self, c: str) -> None:
        """Write one character; newlines become CR LF and a lone CR gets an LF."""
        if c == "\r":
            self._emit("\r")
            self._emit("\n")
        else:
            if c == "\n" and self._out_prev != "\r":
                self._emit("\r")
            self._emit(c)
        self._out_prev = c

    def getc(self) -> str:
        """Read one character; CR followed by any number of LF reads as one LF."""
        while True:
            c = self._receive()
            if not (c == "\n" and self._in_prev == "\r"):
                break
        self._in_prev = c
        return "\n" if c == "\r" else c

    def puts(self, text: str) -> None:
        """Write ``text`` followed by a newline, without interleaving."""
        with self._lock:
            for c in text:
                self.putc(c)
            self.putc("\n")

    def getsn(self, n: int) -> str:
        """Read and echo a line of at most ``n - 1`` characters.

        Backspace and DEL erase the previous character; characters beyond
        the limit are refused with a bell. The newline is not returned.
        """
        line: list[str] = []
        while True:
            c = self.getc()
            if c == "\r":
                continue
            if c == "\n":
                self.putc("\n")
                return "".join(line)
            if c in ("\b", "\x7f"):
                if line:
                    self.putc("\b")
                    self.putc(" ")
                    self.putc("\b")
                    line.pop()
            elif len(line) < n - 1:
                self.putc(c)
                line.append(c)
            else:
                self.putc("\a")

    def printf(self, fmt: str, *args: Any) -> None:
        """Write ``fmt`` formatted with ``args`` (``%``-style), without interleaving."""
        text = fmt % args if args else fmt
        with self._lock:
            for c in text:
                self.putc(c)