import struct

import pytest

from kernio.errors import ErrorCode, KernelError
from kernio.virtio import (
    VIRTIO_MAGIC,
    FeatureSet,
    VirtioDeviceId,
    VirtioFeature,
    identify_device,
    negotiate_features,
)


def test_magic_spells_virt():
    magic = struct.unpack("<I", b"virt")[0]
    assert identify_device(magic, 2, 2) is VirtioDeviceId.BLOCK


def test_documented_ids_are_identified():
    assert identify_device(VIRTIO_MAGIC, 2, 2) == 2
    assert identify_device(VIRTIO_MAGIC, 2, 4) == 4
    assert identify_device(VIRTIO_MAGIC, 2, 18) == 18


def test_add_then_test_round_trip():
    fs = FeatureSet()
    fs.add(VirtioFeature.RING_RESET)
    assert fs.test(VirtioFeature.RING_RESET)
    assert not fs.test(VirtioFeature.INDIRECT_DESC)
    assert list(fs) == [VirtioFeature.RING_RESET]


def test_words_round_trip():
    fs = FeatureSet([0, 31, 32, 40, 127])
    assert FeatureSet.from_words(fs.words) == fs


def test_bit_lands_in_its_word():
    fs = FeatureSet([VirtioFeature.INDIRECT_DESC])
    assert fs.word(0) == 1 << VirtioFeature.INDIRECT_DESC
    assert fs.word(1) == 0
    assert fs.word(3) == 0


def test_bad_bit_and_word_index():
    fs = FeatureSet()
    with pytest.raises(ValueError):
        fs.add(128)
    with pytest.raises(ValueError):
        fs.test(-1)
    with pytest.raises(IndexError):
        fs.word(4)


def test_negotiate_intersection():
    offered = FeatureSet([6, 10, 28, 40])
    wanted = FeatureSet([6, 10, 11])
    needed = FeatureSet([28, 40])
    enabled = negotiate_features(offered, wanted, needed)
    assert enabled == FeatureSet([6, 10])
    assert enabled.issubset(offered) and enabled.issubset(wanted)


def test_negotiate_missing_needed_feature():
    offered = FeatureSet([28])
    needed = FeatureSet([28, 40])
    with pytest.raises(KernelError) as info:
        negotiate_features(offered, FeatureSet(), needed)
    assert info.value.code == ErrorCode.ENOTSUP


def test_negotiate_nothing_wanted_enables_nothing():
    enabled = negotiate_features(FeatureSet([1, 2]), FeatureSet(), FeatureSet())
    assert len(enabled) == 0


@pytest.mark.parametrize(
    "dev",
    [
        VirtioDeviceId.CONSOLE,
        VirtioDeviceId.BLOCK,
        VirtioDeviceId.RNG,
        VirtioDeviceId.GPU,
        VirtioDeviceId.INPUT,
    ],
)
def test_identify_driven_devices(dev):
    assert identify_device(VIRTIO_MAGIC, 2, int(dev)) is dev


@pytest.mark.parametrize(
    "magic, version, device_id",
    [
        (0, 2, 2),
        (VIRTIO_MAGIC, 1, 2),
        (VIRTIO_MAGIC, 2, 0),
        (VIRTIO_MAGIC, 2, 1),
        (VIRTIO_MAGIC, 2, 999),
    ],
)
def test_identify_rejects(magic, version, device_id):
    assert identify_device(magic, version, device_id) is None