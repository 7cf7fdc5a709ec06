import socket

import pytest

from dockertests.config import HarnessConfig
from dockertests.tests.fakes import FakeBackend
from dockertests.tests.tls_fixtures import make_self_signed, serve_rpc, server_context

RPC_USER = "localuser"
RPC_PASS = "localuserpwd"


@pytest.fixture
def backend():
    return FakeBackend(max_attempts=3)


@pytest.fixture
def config():
    return HarnessConfig(
        RPC_USER=RPC_USER,
        RPC_PASS=RPC_PASS,
        RPC_CONNECT_TRIES=1,
        DIAL_TIMEOUT=1.0,
        RPC_TIMEOUT=5.0,
    )


@pytest.fixture(scope="session")
def self_signed():
    """(cert_pem, key_pem) shared by the whole session; RSA keygen is slow."""
    return make_self_signed()


@pytest.fixture
def tls_rpc_server(tmp_path, self_signed):
    """HTTPS JSON-RPC server presenting the self-signed certificate."""
    cert_pem, key_pem = self_signed
    context = server_context(tmp_path, cert_pem, key_pem)
    with serve_rpc(RPC_USER, RPC_PASS, context=context) as server:
        yield server


@pytest.fixture
def plain_rpc_server():
    with serve_rpc(RPC_USER, RPC_PASS) as server:
        yield server


@pytest.fixture
def tcp_listener():
    """Listening TCP socket on 127.0.0.1; yields its port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(8)
    try:
        yield sock.getsockname()[1]
    finally:
        sock.close()


@pytest.fixture
def closed_port():
    """A port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
