import pytest

from kernio.deviceio import Fcntl, open_device
from kernio.devices import DeviceManager, DeviceType, storage_store
from kernio.errors import ErrorCode, KernelError
from kernio.ramdisk import RAMDISK_NAME, Ramdisk, ramdisk_attach

DATA = b"hello ramdisk contents"


@pytest.fixture
def disk():
    rd = Ramdisk(DATA)
    rd.open()
    return rd


def test_fetch_before_open_rejected():
    rd = Ramdisk(DATA)
    with pytest.raises(KernelError) as err:
        rd.fetch(0, 4)
    assert err.value.code == ErrorCode.EINVAL


def test_open_empty_rejected():
    with pytest.raises(KernelError) as err:
        Ramdisk(b"").open()
    assert err.value.code == ErrorCode.EINVAL


def test_fetch_returns_slice(disk):
    assert disk.fetch(0, 5) == DATA[:5]
    assert disk.fetch(6, 7) == DATA[6:13]


def test_fetch_truncated_at_end(disk):
    assert disk.fetch(len(DATA) - 3, 100) == DATA[-3:]


def test_fetch_past_end_is_empty(disk):
    assert disk.fetch(len(DATA), 10) == b""
    assert disk.fetch(len(DATA) + 50, 10) == b""


def test_fetch_zero_bytes(disk):
    assert disk.fetch(0, 0) == b""


def test_geometry(disk):
    assert disk.blksz == 1
    assert disk.capacity == len(DATA)


def test_cntl_getend(disk):
    assert disk.cntl(Fcntl.GETEND) == len(DATA)


def test_cntl_other_unsupported(disk):
    with pytest.raises(KernelError) as err:
        disk.cntl(Fcntl.GETPOS)
    assert err.value.code == ErrorCode.ENOTSUP


def test_cntl_before_open_rejected():
    with pytest.raises(KernelError) as err:
        Ramdisk(DATA).cntl(Fcntl.GETEND)
    assert err.value.code == ErrorCode.EINVAL


def test_store_unsupported(disk):
    with pytest.raises(KernelError) as err:
        storage_store(disk, 0, b"x")
    assert err.value.code == ErrorCode.ENOTSUP


def test_close_then_fetch_rejected(disk):
    disk.close()
    with pytest.raises(KernelError) as err:
        disk.fetch(0, 1)
    assert err.value.code == ErrorCode.EINVAL


def test_attach_registers_device():
    manager = DeviceManager()
    rd = ramdisk_attach(manager, DATA)
    assert manager.find(RAMDISK_NAME, DeviceType.STORAGE, 0) is rd
    assert list(manager.listing()) == ["ramdisk0"]


def test_attach_empty_registers_nothing():
    manager = DeviceManager()
    assert ramdisk_attach(manager, b"") is None
    assert manager.records() == ()


def test_read_through_device_file():
    manager = DeviceManager()
    ramdisk_attach(manager, DATA)
    with open_device(manager, "ramdisk0") as io:
        assert io.read(5) == DATA[:5]
        assert io.read(100) == DATA[5:]
        assert io.cntl(Fcntl.GETPOS) == len(DATA)
        assert io.cntl(Fcntl.GETEND) == len(DATA)