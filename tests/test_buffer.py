import os

import pytest

from reactornet.buffer import Buffer


@pytest.fixture
def pipe():
    r, w = os.pipe()
    yield r, w
    for fd in (r, w):
        try:
            os.close(fd)
        except OSError:
            pass


def test_initial_layout():
    buf = Buffer()
    assert buf.readable_bytes() == 0
    assert buf.writable_bytes() == Buffer.INITIAL_SIZE
    assert buf.prependable_bytes() == Buffer.CHEAP_PREPEND


def test_append_and_retrieve_round_trip():
    buf = Buffer()
    buf.append(b"hello world")
    assert buf.peek() == b"hello world"
    assert buf.retrieve_as_bytes(5) == b"hello"
    assert buf.prependable_bytes() == Buffer.CHEAP_PREPEND + 5
    assert buf.retrieve_all_as_bytes() == b" world"
    assert buf.readable_bytes() == 0
    assert buf.prependable_bytes() == Buffer.CHEAP_PREPEND


def test_retrieve_everything_resets():
    buf = Buffer()
    buf.append(b"abc")
    buf.retrieve(10)
    assert len(buf) == 0
    assert buf.prependable_bytes() == Buffer.CHEAP_PREPEND
    assert buf.writable_bytes() == Buffer.INITIAL_SIZE


def test_growth_when_space_short():
    buf = Buffer()
    data = bytes(range(256)) * 8
    buf.append(data)
    assert buf.peek() == data
    assert buf.writable_bytes() == 0


def test_compaction_reuses_prepend_space():
    buf = Buffer()
    buf.append(b"x" * 1000)
    buf.retrieve(900)
    buf.append(b"y" * 900)
    assert buf.prependable_bytes() == Buffer.CHEAP_PREPEND
    assert buf.peek() == b"x" * 100 + b"y" * 900
    assert buf.readable_bytes() + buf.writable_bytes() + buf.prependable_bytes() == (
        Buffer.CHEAP_PREPEND + Buffer.INITIAL_SIZE
    )


def test_negative_length_rejected():
    buf = Buffer()
    with pytest.raises(ValueError):
        buf.retrieve(-1)


def test_read_fd_small(pipe):
    r, w = pipe
    os.write(w, b"ping")
    buf = Buffer()
    assert buf.read_fd(r) == 4
    assert buf.retrieve_all_as_bytes() == b"ping"


def test_read_fd_overflows_into_extra(pipe):
    r, w = pipe
    data = os.urandom(3000)
    os.write(w, data)
    buf = Buffer()
    assert buf.read_fd(r) == len(data)
    assert buf.peek() == data


def test_read_fd_eof(pipe):
    r, w = pipe
    os.close(w)
    buf = Buffer()
    assert buf.read_fd(r) == 0
    assert buf.readable_bytes() == 0


def test_write_fd_does_not_consume(pipe):
    r, w = pipe
    buf = Buffer()
    buf.append(b"hello")
    assert buf.write_fd(w) == 5
    assert os.read(r, 16) == b"hello"
    assert buf.peek() == b"hello"