# kernio

`kernio` is the I/O core of a small kernel, written in plain Python with no dependencies outside the standard library. It provides:

- a device registry and checked device operations;
- file-like streams over serial and storage devices, plus a device filesystem;
- a block cache and a read-only ramdisk;
- a mount table;
- an ELF64 validator and loader;
- console line handling;
- the ring buffer used by a serial port;
- VirtIO feature negotiation and device identification.

Every failure is raised as `kernio.errors.KernelError`. The exception's `code` attribute holds an `ErrorCode`, such as `EINVAL`, `ENOENT`, `ENOTSUP` or `EBADFMT`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

### `kernio.errors`

- `ErrorCode` is an `IntEnum` of the error numbers.
- `KernelError(code, message=None)` takes either sign of code. Its message defaults to the code's name.
- `error_name(code)` accepts negative codes. For example, `error_name(-2) == "EBUSY"`. An unnamed code gives `"(unknown)"`.

### `kernio.devices`

- `DeviceType` has the values `UNDEF`, `SERIAL`, `STORAGE` and `VIDEO`. `device_type_short_name` maps them to `"ser"`, `"sto"`, `"vid"` or `"UNK"`.
- `SerialDevice` and `StorageDevice` are base classes. Subclasses override `open`, `close`, `recv`/`send` or `fetch`/`store`, and `cntl`. Any operation that is not overridden raises `ENOTSUP`, except `close`, which does nothing.
- `DeviceManager`:
  - `register(name, type, device)` returns an instance number, counted per name.
  - `find(name, type, instno)` returns the device, or `None`.
  - `listing()` yields labels such as `ramdisk0`.
  - `records()` returns the `DeviceRecord` tuples.
- `serial_recv`, `serial_send`, `storage_fetch` and `storage_store` check their arguments before calling the device:
  - Sizes below the block size raise `EINVAL`, except zero.
  - Serial transfers are rounded down to whole blocks.
  - Storage positions must be block-aligned.

### `kernio.deviceio`

- `DevFS(manager).open(name)` returns one of two things:
  - For an empty name, a `ListingIO`. Each `read` of it returns one device label.
  - Otherwise, the result of `open_device(manager, name)`.
- `open_device` splits a name such as `uart1` into a device name and an instance number. It opens the device and returns a `SerialIO` or a `StorageIO`.
  - A video device raises `ENOTSUP`.
  - An unknown name raises `ENOENT`.
- `StorageIO` keeps a byte position and handles unaligned reads and writes by read-modify-write of whole blocks.
  - `cntl(Fcntl.SETPOS, pos)` sets the position. A position past the capacity raises `EINVAL`.
  - `cntl(Fcntl.GETPOS)` returns the position.
  - Any other operation is passed to the device.
- `SerialIO` fills a partial trailing block with one extra receive.
- All stream objects are context managers. Leaving the block closes the stream.

### `kernio.cache`

`BlockCache(disk)` caches `CACHE_SIZE` (64) blocks of `CACHE_BLKSZ` (512) bytes.

- `get_block(pos)` returns a `bytearray` and holds it.
  - The position must be a multiple of 512.
  - When every slot is in use, the least recently released block is evicted.
- `release_block(block, dirty)` hands the block back. If `dirty` is true, it writes the block to the disk first.
- `flush()` waits until no block is held by another thread.

### `kernio.ramdisk`

- `Ramdisk(data)` is a read-only storage device with a block size of 1 and a capacity of `len(data)`.
  - It must be opened before use.
  - Reads past the end return `b""`.
  - `cntl(Fcntl.GETEND)` returns the capacity.
- `ramdisk_attach(manager, data)` registers a ramdisk under the name `ramdisk` and returns it. For empty data it registers nothing and returns `None`.

### `kernio.filesys`

- `MountTable`:
  - `attach(name, fs)` attaches a filesystem. A duplicate name raises `EEXIST`.
  - `open_file(mpname, flname)` opens a file. An empty mount point name opens a listing of mount points.
  - `create_file` and `delete_file` create and delete files.
  - `flushall()` flushes every mounted filesystem.
  - `mount_nullfs(name)` and `mount_devfs(name, manager)` mount the two built-in filesystems.
- `Filesystem` is the base class. `NullFilesystem` holds no files, so opening anything on it raises `ENOENT`.
- `parse_path("dev/ramdisk0")` returns `("dev", "ramdisk0")`. `parse_path("dev")` returns `("dev", None)`.

### `kernio.elf`

`elf_load(io)` reads from any object with `read(size)` and `cntl(Fcntl.SETPOS, pos)`. It returns an `ElfImage` with the entry point and a tuple of `LoadedSegment`s.

The file must be a 64-bit, little-endian, RISC-V executable or shared object. Otherwise `elf_load` raises `EBADFMT`.

For each `PT_LOAD` segment:

- The segment must lie between `USER_START` (0xC0000000) and `USER_END` (0x100000000).
- A segment whose alignment is 0 or 1 is range-checked but not included in the result.
- Any other alignment must be a power of two, and the segment address must be aligned to it.
- The segment's data is its file contents, zero-filled up to `memsz`.
- Its `SegmentFlags` always include `U`.

`ElfHeader.parse` and `ProgramHeader.parse` decode the raw headers.

### `kernio.console`

`Console(device_putc=None, device_getc=None, device_init=None)` wraps a character device.

- `putc` sends `\n` as `\r\n`.
- `getc` reads `\r` as `\n` and drops the line feeds that follow it.
- `puts(text)` writes the text followed by a newline.
- `getsn(n)` reads an echoed line of at most `n - 1` characters.
  - Backspace and DEL erase the previous character.
  - When the line is full, further characters are refused and a bell is written instead.
- `printf(fmt, *args)` formats with `%` and writes the result.
- Without `device_getc`, reading raises `RuntimeError`.

### `kernio.ringbuf`

`RingBuffer(capacity=64)` is a fixed-size FIFO with the methods `empty`, `full`, `put`, `get`, `reset` and `len()`.

- `put` on a full buffer raises `OverflowError`.
- `get` on an empty buffer raises `IndexError`.

### `kernio.virtio`

- Constants: `VirtioStatus`, `VirtqDescFlags`, `VirtioFeature` and `VirtioDeviceId`.
- `FeatureSet` is a set of feature bits stored as four 32-bit words.
  - `add`, `test` and `word` work on single bits and words.
  - `from_words` builds a set from words.
- `negotiate_features(offered, wanted, needed)` returns the features that are both offered and wanted. If a needed feature is not offered, it raises `ENOTSUP`.
- `identify_device(magic, version, device_id)` returns the device type to attach a driver for. It returns `None` in any of these cases:
  - the magic value is wrong;
  - the version is not 2;
  - the slot is empty;
  - the device type is not one of console, block, rng, gpu or input.

## Example

```python
from kernio.devices import DeviceManager
from kernio.ramdisk import ramdisk_attach
from kernio.filesys import MountTable, parse_path

manager = DeviceManager()
ramdisk_attach(manager, b"hello, disk")

mounts = MountTable()
mounts.mount_devfs("dev", manager)

mpname, flname = parse_path("dev/ramdisk0")
with mounts.open_file(mpname, flname) as io:
    print(io.read(5))  # b'hello'
```

## What it does not do

- It has no hardware drivers. There is no real UART, VirtIO block or RNG device and no memory-mapped register access. Devices are Python objects that subclass `SerialDevice` or `StorageDevice`.
- It has no on-disk filesystem. `NullFilesystem` and `DevFS` are the only filesystems provided.
- `elf_load` does not map memory or run programs. It returns the segment contents and permissions.
- There is no command-line program.