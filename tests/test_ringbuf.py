import pytest

from kernio.ringbuf import UART_RBUFSZ, RingBuffer


def test_default_capacity_matches_uart_buffer():
    assert RingBuffer().capacity == UART_RBUFSZ == 64


def test_new_buffer_is_empty():
    rb = RingBuffer(4)
    assert rb.empty()
    assert not rb.full()
    assert len(rb) == 0


def test_fifo_order():
    rb = RingBuffer(4)
    for c in "abc":
        rb.put(c)
    assert [rb.get() for _ in range(3)] == ["a", "b", "c"]
    assert rb.empty()


def test_full_after_capacity_puts():
    rb = RingBuffer(3)
    for c in "xyz":
        rb.put(c)
    assert rb.full()
    with pytest.raises(OverflowError):
        rb.put("w")


def test_get_from_empty_raises():
    with pytest.raises(IndexError):
        RingBuffer(2).get()


def test_wraps_around_many_times():
    rb = RingBuffer(3)
    received = []
    for i in range(20):
        rb.put(i)
        if len(rb) == 2:
            received.append(rb.get())
    while not rb.empty():
        received.append(rb.get())
    assert received == list(range(20))


def test_reset_discards_contents():
    rb = RingBuffer(4)
    rb.put("a")
    rb.put("b")
    rb.reset()
    assert rb.empty()
    rb.put("c")
    assert rb.get() == "c"


def test_invalid_capacity():
    with pytest.raises(ValueError):
        RingBuffer(0)