import socket

import pytest

from reactornet.inet_address import InetAddress
from reactornet.logger import FatalError
from reactornet.sockets import Socket


@pytest.fixture
def raw():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    yield sock
    sock.close()


@pytest.fixture
def listening(raw):
    wrapped = Socket(raw)
    wrapped.bind_address(InetAddress(0))
    wrapped.listen()
    return raw, wrapped


def test_fd_matches_underlying(raw):
    assert Socket(raw).fd() == raw.fileno()


def test_tcp_no_delay_toggle(raw):
    wrapped = Socket(raw)
    wrapped.set_tcp_no_delay(True)
    assert bool(raw.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY)) is True
    wrapped.set_tcp_no_delay(False)
    assert raw.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY) == 0


def test_reuse_addr_and_keep_alive(raw):
    wrapped = Socket(raw)
    wrapped.set_reuse_addr(True)
    wrapped.set_keep_alive(True)
    assert bool(raw.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR)) is True
    assert bool(raw.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE)) is True
    wrapped.set_keep_alive(False)
    assert raw.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE) == 0


def test_bind_conflict_is_fatal(listening):
    raw, _ = listening
    port = raw.getsockname()[1]
    other = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    with Socket(other) as wrapped:
        with pytest.raises(FatalError):
            wrapped.bind_address(InetAddress(port))


def test_accept_returns_peer_and_nonblocking(listening):
    raw, wrapped = listening
    port = raw.getsockname()[1]
    client = socket.create_connection(("127.0.0.1", port), timeout=5)
    try:
        conn, peer = wrapped.accept()
        try:
            assert peer.to_port() == client.getsockname()[1]
            assert peer.to_ip() == "127.0.0.1"
            assert conn.getblocking() is False
        finally:
            conn.close()
    finally:
        client.close()


def test_shutdown_write_sends_eof(listening):
    raw, wrapped = listening
    port = raw.getsockname()[1]
    client = socket.create_connection(("127.0.0.1", port), timeout=5)
    try:
        conn, _ = wrapped.accept()
        with Socket(conn) as server_side:
            server_side.shutdown_write()
            assert client.recv(16) == b""
    finally:
        client.close()


def test_close_releases_descriptor(raw):
    wrapped = Socket(raw)
    wrapped.close()
    assert wrapped.fd() == -1