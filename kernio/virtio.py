"""VirtIO MMIO constants, feature sets and device identification."""

from __future__ import annotations

from enum import IntEnum, IntFlag
from typing import Iterable, Iterator

from .errors import ErrorCode, KernelError

__all__ = [
    "VIRTIO_MAGIC",
    "VIRTIO_VERSION",
    "VIRTIO_FEATLEN",
    "VIRTQ_LEN_MAX",
    "VirtioStatus",
    "VirtqDescFlags",
    "VirtioFeature",
    "VirtioDeviceId",
    "FeatureSet",
    "negotiate_features",
    "identify_device",
]

VIRTIO_MAGIC = 0x74726976  # "virt" read as a little-endian word
VIRTIO_VERSION = 2  # only the modern MMIO interface is supported
VIRTIO_FEATLEN = 4  # number of 32-bit words in a feature set
VIRTQ_LEN_MAX = 32768

_WORD_BITS = 32
_WORD_MASK = (1 << _WORD_BITS) - 1
_FEATURE_BITS = VIRTIO_FEATLEN * _WORD_BITS


class VirtioStatus(IntFlag):
    """Bits of the device status register."""

    ACKNOWLEDGE = 1 << 0
    DRIVER = 1 << 1
    DRIVER_OK = 1 << 2
    FEATURES_OK = 1 << 3
    DEVICE_NEEDS_RESET = 1 << 6
    FAILED = 1 << 7


class VirtqDescFlags(IntFlag):
    """Flags of a virtqueue descriptor."""

    NEXT = 1 << 0
    WRITE = 1 << 1
    INDIRECT = 1 << 2


class VirtioFeature(IntEnum):
    """Device-independent feature bit numbers."""

    ANY_LAYOUT = 27
    INDIRECT_DESC = 28
    EVENT_IDX = 29
    RING_RESET = 40


class VirtioDeviceId(IntEnum):
    """VirtIO subsystem device identifiers."""

    NONE = 0
    NET = 1
    BLOCK = 2
    CONSOLE = 3
    RNG = 4
    BALLOON = 5
    IOMEM = 6
    RPMSG = 7
    SCSI = 8
    NINE_P = 9
    MAC80211_WLAN = 10
    RPROC_SERIAL = 11
    CAIF = 12
    MEMORY_BALLOON = 13
    GPU = 16
    CLOCK = 17
    INPUT = 18
    VSOCK = 19
    CRYPTO = 20
    SIGNAL_DIST = 21
    PSTORE = 22
    IOMMU = 23
    MEM = 24
    SOUND = 25
    FS = 26
    PMEM = 27
    RPMB = 28
    MAC80211_HWSIM = 29
    VIDEO_ENCODER = 30
    VIDEO_DECODER = 31
    SCMI = 32
    NITRO_SEC_MOD = 33
    I2C_ADAPTER = 34
    WATCHDOG = 35
    CAN = 36
    DMABUF = 37
    PARAM_SERV = 38
    AUDIO_POLICY = 39
    BT = 40
    GPIO = 41


# Device types for which a driver exists.
_DRIVEN = frozenset(
    {
        VirtioDeviceId.CONSOLE,
        VirtioDeviceId.BLOCK,
        VirtioDeviceId.RNG,
        VirtioDeviceId.GPU,
        VirtioDeviceId.INPUT,
    }
)


def _check_bit(bit: int) -> int:
    bit = int(bit)
    if not 0 <= bit < _FEATURE_BITS:
        raise ValueError(f"feature bit {bit} out of range 0..{_FEATURE_BITS - 1}")
    return bit


class FeatureSet:
    """A set of feature bit numbers, stored as ``VIRTIO_FEATLEN`` 32-bit words."""

    def __init__(self, bits: Iterable[int] = ()) -> None:
        self._mask = 0
        for bit in bits:
            self.add(bit)

    @classmethod
    def from_words(cls, words: Iterable[int]) -> "FeatureSet":
        """Build a set from up to ``VIRTIO_FEATLEN`` register words."""
        words = list(words)
        if len(words) > VIRTIO_FEATLEN:
            raise ValueError(f"at most {VIRTIO_FEATLEN} feature words")
        fs = cls()
        for index, word in enumerate(words):
            fs._mask |= (int(word) & _WORD_MASK) << (index * _WORD_BITS)
        return fs

    def add(self, bit: int) -> None:
        """Add feature ``bit`` to the set."""
        self._mask |= 1 << _check_bit(bit)

    def test(self, bit: int) -> bool:
        """Return whether feature ``bit`` is in the set."""
        return bool(self._mask >> _check_bit(bit) & 1)

    def word(self, index: int) -> int:
        """Return the 32-bit word ``index`` as written to the feature register."""
        if not 0 <= index < VIRTIO_FEATLEN:
            raise IndexError(f"feature word {index} out of range")
        return (self._mask >> (index * _WORD_BITS)) & _WORD_MASK

    @property
    def words(self) -> tuple[int, ...]:
        return tuple(self.word(i) for i in range(VIRTIO_FEATLEN))

    def __contains__(self, bit: object) -> bool:
        return isinstance(bit, int) and 0 <= bit < _FEATURE_BITS and self.test(bit)

    def __iter__(self) -> Iterator[int]:
        return (bit for bit in range(_FEATURE_BITS) if self._mask >> bit & 1)

    def __len__(self) -> int:
        return bin(self._mask).count("1")

    def __and__(self, other: "FeatureSet") -> "FeatureSet":
        result = FeatureSet()
        result._mask = self._mask & other._mask
        return result

    def issubset(self, other: "FeatureSet") -> bool:
        return self._mask & ~other._mask == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureSet):
            return NotImplemented
        return self._mask == other._mask

    def __hash__(self) -> int:
        return hash(self._mask)

    def __repr__(self) -> str:
        return f"FeatureSet({sorted(self)!r})"


def negotiate_features(
    offered: FeatureSet, wanted: FeatureSet, needed: FeatureSet
) -> FeatureSet:
    """Return the features to enable: those both offered and wanted.

    Raises ``ENOTSUP`` if the device does not offer every needed feature.
    """
    if not needed.issubset(offered):
        missing = sorted(set(needed) - set(offered))
        raise KernelError(ErrorCode.ENOTSUP, f"device lacks features {missing}")
    return offered & wanted


def identify_device(magic: int, version: int, device_id: int) -> VirtioDeviceId | None:
    """Return the device type to attach a driver for, or None if there is none.

    A wrong magic value, a version other than 2, an empty slot and device
    types without a driver all give None.
    """
    if magic != VIRTIO_MAGIC or version != VIRTIO_VERSION:
        return None
    try:
        dev = VirtioDeviceId(device_id)
    except ValueError:
        return None
    return dev if dev in _DRIVEN else None