import pytest

from reactornet.inet_address import InetAddress


def test_port_only_uses_loopback():
    assert InetAddress(8080).to_ip_port() == "127.0.0.1:8080"


def test_accessors():
    addr = InetAddress(9000, "10.0.0.1")
    assert addr.to_ip() == "10.0.0.1"
    assert addr.to_port() == 9000
    assert addr.sockaddr() == ("10.0.0.1", 9000)


def test_sockaddr_round_trip():
    addr = InetAddress(1234, "192.168.1.20")
    assert InetAddress.from_sockaddr(addr.sockaddr()) == addr


def test_from_sockaddr_ignores_extra_fields():
    addr = InetAddress.from_sockaddr(("127.0.0.1", 80, 0, 0))
    assert addr.to_ip_port() == "127.0.0.1:80"


def test_short_form_is_normalized():
    assert InetAddress(1, "127.1").to_ip() == "127.0.0.1"


@pytest.mark.parametrize("ip", ["not-an-ip", "", "1.2.3.4.5"])
def test_invalid_ip_rejected(ip):
    with pytest.raises(ValueError):
        InetAddress(80, ip)


@pytest.mark.parametrize("port", [-1, 65536])
def test_invalid_port_rejected(port):
    with pytest.raises(ValueError):
        InetAddress(port)