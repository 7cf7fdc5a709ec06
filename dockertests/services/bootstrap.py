# Where: dockertests/services/bootstrap.py
# What: Turn the daemon's self-signed RPC certificate into an authenticated client.
# Why: The client cannot trust the server until the certificate is harvested from a live handshake.
import logging
from typing import Callable, Optional

from dockertests.backend.protocol import OrchestrationBackend
from dockertests.config import HarnessConfig
from dockertests.constants import RPC_PORT
from dockertests.core.cert import harvest_certificates
from dockertests.models import ConnConfig
from dockertests.rpc.client import RpcClient
from dockertests.services.readiness import await_ready, format_address, tcp_dialer

logger = logging.getLogger("dockertests.bootstrap")

ClientFactory = Callable[[ConnConfig], RpcClient]


def build_conn_config(
    address: str, certificates: bytes, config: HarnessConfig, user: str, password: str
) -> ConnConfig:
    return ConnConfig(
        host=address,
        endpoint=config.RPC_ENDPOINT,
        user=user,
        password=password,
        certificates=certificates,
        disable_connect_on_new=True,
        timeout=config.RPC_TIMEOUT,
    )


def bootstrap(
    backend: OrchestrationBackend,
    host: str,
    config: HarnessConfig,
    port: int = RPC_PORT,
    user: Optional[str] = None,
    password: Optional[str] = None,
    client_factory: ClientFactory = RpcClient,
) -> RpcClient:
    """
    RPC クライアントを安全に初期化する

    1. Wait for the RPC port to accept TCP connections.
    2. One unverified TLS handshake; harvest the peer chain as PEM.
    3. Build ConnConfig from the harvested bundle (no connect on construction).
    4. Connect explicitly with the configured number of tries.

    Raises:
        ReadinessTimeoutError: port never opened within the retry budget
        HandshakeError: handshake or certificate harvest failed
        RpcConnectError: client could not connect
    """
    address = format_address(host, port)
    user = user if user is not None else config.RPC_USER
    password = password if password is not None else config.RPC_PASS

    await_ready(backend, tcp_dialer(host, port, config.DIAL_TIMEOUT), address)

    certificates = harvest_certificates(host, port, timeout=config.DIAL_TIMEOUT)

    conn_config = build_conn_config(address, certificates, config, user, password)
    client = client_factory(conn_config)
    try:
        client.connect(config.RPC_CONNECT_TRIES)
    except BaseException:
        client.shutdown()
        raise

    logger.info(f"RPC session established with {address} as {user}")
    return client
