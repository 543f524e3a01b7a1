import socket
import threading
import time

import pytest

from reactornet.echo_server import EchoServer, main
from reactornet.event_loop_thread import EventLoopThread
from reactornet.inet_address import InetAddress


def _call(loop, fn):
    done = threading.Event()
    box = {}

    def run():
        try:
            box["value"] = fn()
        except BaseException as exc:
            box["error"] = exc
        finally:
            done.set()

    loop.run_in_loop(run)
    assert done.wait(10)
    if "error" in box:
        raise box["error"]
    return box.get("value")


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def echo():
    thread = EventLoopThread(name="echo-base")
    loop = thread.start_loop()
    server = EchoServer(loop, InetAddress(0), "EchoServer-01", threads=1)
    server.start()
    _call(loop, lambda: None)
    yield server
    _call(loop, server.server.close)
    thread.stop()


def _recv_until_eof(sock):
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def test_echoes_once_then_closes(echo):
    addr = echo.server.listen_address.sockaddr()
    with socket.create_connection(addr, timeout=5) as client:
        client.sendall(b"hello")
        assert _recv_until_eof(client) == b"hello"


def test_connection_is_forgotten_after_echo(echo):
    addr = echo.server.listen_address.sockaddr()
    with socket.create_connection(addr, timeout=5) as client:
        client.sendall(b"x")
        assert _recv_until_eof(client) == b"x"
    assert _wait_until(lambda: not echo.server.connections)


def test_logs_connection_up_and_down(echo, capsys):
    addr = echo.server.listen_address.sockaddr()
    with socket.create_connection(addr, timeout=5) as client:
        client.sendall(b"hi")
        assert _recv_until_eof(client) == b"hi"
    assert _wait_until(lambda: not echo.server.connections)
    time.sleep(0.05)
    out = capsys.readouterr().out
    assert "Conn Up: 127.0.0.1:" in out
    assert "Conn Down: 127.0.0.1:" in out


def test_main_rejects_non_numeric_port():
    with pytest.raises(SystemExit):
        main(["--port", "not-a-port"])


def test_main_rejects_out_of_range_port():
    with pytest.raises(ValueError):
        main(["--port", "70000"])