"""Device registry, device streams, block cache, ramdisk, mount table, ELF loader, console, ring buffer and VirtIO helpers."""

__version__ = "0.1.0"
__all__ = [
    "errors",
    "devices",
    "deviceio",
    "cache",
    "ramdisk",
    "filesys",
    "elf",
    "console",
    "ringbuf",
    "virtio",
]