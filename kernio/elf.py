"""Validation and loading of 64-bit little-endian RISC-V ELF executables."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Any

from .deviceio import Fcntl
from .errors import ErrorCode, KernelError

__all__ = [
    "SegmentFlags",
    "ElfHeader",
    "ProgramHeader",
    "LoadedSegment",
    "ElfImage",
    "elf_load",
    "USER_START",
    "USER_END",
]

ELF_MAGIC = b"\x7fELF"
EI_CLASS = 4
EI_DATA = 5
EI_VERSION = 6
ELFCLASS64 = 2
ELFDATA2LSB = 1
EV_CURRENT = 1
EM_RISCV = 243

PF_X = 0x1
PF_W = 0x2
PF_R = 0x4

USER_START = 0x0C0000000  # lowest address a segment may occupy
USER_END = 0x100000000  # first address past the user region

_EHDR = struct.Struct("<16sHHIQQQIHHHHHH")
_PHDR = struct.Struct("<IIQQQQQQ")


class _ElfType(IntEnum):
    NONE = 0
    REL = 1
    EXEC = 2
    DYN = 3
    CORE = 4


class _SegmentType(IntEnum):
    NULL = 0
    LOAD = 1
    DYNAMIC = 2
    INTERP = 3
    NOTE = 4
    SHLIB = 5
    PHDR = 6
    TLS = 7


class SegmentFlags(IntFlag):
    """Page permission bits given to a loaded segment."""

    R = 1 << 1
    W = 1 << 2
    X = 1 << 3
    U = 1 << 4


@dataclass(frozen=True)
class ElfHeader:
    """The ELF file header."""

    ident: bytes
    type: int
    machine: int
    version: int
    entry: int
    phoff: int
    shoff: int
    flags: int
    ehsize: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int

    SIZE = _EHDR.size

    @classmethod
    def parse(cls, data: bytes) -> "ElfHeader":
        """Decode a header from the first bytes of ``data``."""
        if len(data) < _EHDR.size:
            raise KernelError(ErrorCode.EBADFMT, "ELF header truncated")
        return cls(*_EHDR.unpack_from(data))


@dataclass(frozen=True)
class ProgramHeader:
    """One entry of the program header table."""

    type: int
    flags: int
    offset: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    align: int

    SIZE = _PHDR.size

    @classmethod
    def parse(cls, data: bytes) -> "ProgramHeader":
        """Decode a program header from the first bytes of ``data``."""
        if len(data) < _PHDR.size:
            raise KernelError(ErrorCode.EBADFMT, "program header truncated")
        return cls(*_PHDR.unpack_from(data))


@dataclass(frozen=True)
class LoadedSegment:
    """A segment placed in memory: ``memsz`` bytes at ``vaddr``."""

    vaddr: int
    memsz: int
    flags: SegmentFlags
    data: bytes


@dataclass(frozen=True)
class ElfImage:
    """The result of loading an executable."""

    entry: int
    segments: tuple[LoadedSegment, ...]


def _seek(io: Any, pos: int, code: ErrorCode) -> None:
    try:
        io.cntl(Fcntl.SETPOS, pos)
    except KernelError as err:
        raise KernelError(code, f"cannot seek to {pos}") from err


def _validate(ehdr: ElfHeader) -> None:
    ident = ehdr.ident
    if ident[:4] != ELF_MAGIC:
        raise KernelError(ErrorCode.EBADFMT, "not an ELF file")
    if ident[EI_CLASS] != ELFCLASS64:
        raise KernelError(ErrorCode.EBADFMT, "not a 64-bit ELF file")
    if ident[EI_DATA] != ELFDATA2LSB:
        raise KernelError(ErrorCode.EBADFMT, "not little-endian")
    if ident[EI_VERSION] != EV_CURRENT:
        raise KernelError(ErrorCode.EBADFMT, "unknown ELF version")
    if ehdr.type not in (_ElfType.EXEC, _ElfType.DYN):
        raise KernelError(ErrorCode.EBADFMT, "not an executable")
    if ehdr.machine != EM_RISCV:
        raise KernelError(ErrorCode.EBADFMT, "not a RISC-V executable")


def _segment_flags(p_flags: int) -> SegmentFlags:
    flags = SegmentFlags.U
    if p_flags & PF_R:
        flags |= SegmentFlags.R
    if p_flags & PF_W:
        flags |= SegmentFlags.W
    if p_flags & PF_X:
        flags |= SegmentFlags.X
    return flags


def elf_load(io: Any) -> ElfImage:
    """Validate the ELF file behind ``io`` and load its ``PT_LOAD`` segments.

    ``io`` must support ``cntl(Fcntl.SETPOS, pos)`` and ``read(size)``.
    Segments must lie within ``USER_START`` .. ``USER_END``. Segments whose
    alignment is 0 or 1 are checked for range but not loaded.
    """
    if io is None:
        raise KernelError(ErrorCode.EINVAL)

    _seek(io, 0, ErrorCode.EIO)
    try:
        raw = io.read(ElfHeader.SIZE)
    except KernelError as err:
        raise KernelError(ErrorCode.EIO, "cannot read ELF header") from err
    if len(raw) != ElfHeader.SIZE:
        raise KernelError(ErrorCode.EIO, "short read of ELF header")
    ehdr = ElfHeader.parse(raw)
    _validate(ehdr)

    segments: list[LoadedSegment] = []
    for index in range(ehdr.phnum):
        _seek(io, ehdr.phoff + index * ehdr.phentsize, ErrorCode.EIO)
        try:
            raw = io.read(ProgramHeader.SIZE)
        except KernelError as err:
            raise KernelError(ErrorCode.ENOTSUP, "cannot read program header") from err
        if len(raw) != ProgramHeader.SIZE:
            raise KernelError(ErrorCode.EIO, "short read of program header")
        phdr = ProgramHeader.parse(raw)

        if phdr.type != _SegmentType.LOAD:
            continue
        if phdr.vaddr < USER_START or phdr.vaddr + phdr.memsz > USER_END:
            raise KernelError(ErrorCode.EBADFMT, "segment outside user memory")
        if phdr.align <= 1:
            continue
        if phdr.align & (phdr.align - 1):
            raise KernelError(ErrorCode.EBADFMT, "alignment not a power of two")
        if phdr.vaddr % phdr.align:
            raise KernelError(ErrorCode.EBADFMT, "segment address misaligned")

        memory = bytearray(phdr.memsz)
        _seek(io, phdr.offset, ErrorCode.ENOTSUP)
        try:
            content = io.read(phdr.filesz)
        except KernelError:
            content = b""
        content = content[: phdr.memsz]
        memory[: len(content)] = content

        segments.append(
            LoadedSegment(
                vaddr=phdr.vaddr,
                memsz=phdr.memsz,
                flags=_segment_flags(phdr.flags),
                data=bytes(memory),
            )
        )

    return ElfImage(entry=ehdr.entry, segments=tuple(segments))