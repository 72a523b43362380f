import pytest

from kernio.errors import ErrorCode, KernelError, error_name


def test_known_names():
    assert error_name(1) == "EINVAL"
    assert error_name(ErrorCode.EEXIST) == "EEXIST"
    assert error_name(0) == "(success)"


def test_negative_codes_are_folded():
    assert error_name(-2) == "EBUSY"
    assert error_name(-ErrorCode.ENOENT) == error_name(ErrorCode.ENOENT)


@pytest.mark.parametrize(
    "code",
    [c for c in ErrorCode if c not in (ErrorCode.EPIPE, ErrorCode.ENODATABLKS, ErrorCode.ENOINODEBLKS)],
)
def test_named_codes_match_enum_names(code):
    assert error_name(code) == code.name


@pytest.mark.parametrize("code", [ErrorCode.EPIPE, ErrorCode.ENODATABLKS, ErrorCode.ENOINODEBLKS, 99, -1000])
def test_unlisted_codes_are_unknown(code):
    assert error_name(code) == "(unknown)"


def test_kernel_error_carries_code():
    err = KernelError(ErrorCode.ENOTSUP)
    assert err.code is ErrorCode.ENOTSUP
    assert str(err) == "ENOTSUP"


def test_kernel_error_accepts_negative_code_and_message():
    err = KernelError(-4, "disk went away")
    assert err.code is ErrorCode.EIO
    assert err.message == "disk went away"
    assert "EIO" in str(err)


def test_kernel_error_from_positive_int_with_message():
    err = KernelError(5, "bad header")
    assert err.code is ErrorCode.EBADFMT
    assert err.message == "bad header"
    assert "EBADFMT" in str(err)


def test_kernel_error_rejects_bad_code():
    with pytest.raises(ValueError):
        KernelError(500)