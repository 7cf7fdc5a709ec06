"""
Readiness Poller

A daemon is ready only once its port accepts a connection. Presence is proven
with the backend's bounded retry loop; absence is checked with exactly one
immediate dial (the retry loop defines success as "reachable", so it cannot
prove a port is closed).
"""

import logging
import socket
import ssl
from typing import Callable, Optional, Protocol

import httpx

from dockertests.backend.protocol import OrchestrationBackend
from dockertests.core.cert import insecure_client_context
from dockertests.core.exceptions import HandshakeError, ReadinessTimeoutError
from dockertests.core.retry import RetryBudgetExceededError

logger = logging.getLogger("dockertests.readiness")


class Closable(Protocol):
    def close(self) -> None: ...


Dialer = Callable[[], Closable]


def format_address(host: str, port: int) -> str:
    return f"{host}:{port}"


def tcp_dialer(host: str, port: int, timeout: float = 2.0) -> Dialer:
    """Plain TCP connect."""

    def dial() -> socket.socket:
        return socket.create_connection((host, port), timeout=timeout)

    return dial


def tls_dialer(
    host: str,
    port: int,
    timeout: float = 2.0,
    context: Optional[ssl.SSLContext] = None,
) -> Dialer:
    """TCP connect followed by a TLS handshake (unverified unless a context is given)."""
    ctx = context or insecure_client_context()

    def dial() -> ssl.SSLSocket:
        raw = socket.create_connection((host, port), timeout=timeout)
        try:
            return ctx.wrap_socket(raw, server_hostname=host)
        except BaseException:
            raw.close()
            raise

    return dial


def await_ready(backend: OrchestrationBackend, dial: Dialer, address: str) -> None:
    """
    Block until ``dial`` succeeds or the backend's retry budget runs out.

    Each successful connection is closed immediately; it is only a probe.

    Raises:
        ReadinessTimeoutError: budget exhausted
    """

    def probe() -> None:
        try:
            conn = dial()
        except OSError as e:
            logger.debug(f"Not able to connect to {address}, err {e}")
            raise
        conn.close()

    try:
        backend.retry(probe)
    except RetryBudgetExceededError as e:
        raise ReadinessTimeoutError(address, e.last_error) from e

    logger.info(f"{address} is accepting connections")


def probe_closed(dial: Dialer) -> bool:
    """One immediate dial; True when the port refused it."""
    try:
        conn = dial()
    except OSError as e:
        logger.debug(f"Dial failed as expected: {e}")
        return True
    conn.close()
    return False


def probe_tls(host: str, port: int, timeout: float = 2.0) -> str:
    """
    One unverified TLS handshake.

    Returns:
        negotiated protocol version (e.g. "TLSv1.3")

    Raises:
        HandshakeError: connect or handshake failed
    """
    address = format_address(host, port)
    try:
        tls_sock = tls_dialer(host, port, timeout)()
    except OSError as e:
        raise HandshakeError(address, e) from e
    try:
        return tls_sock.version()
    finally:
        tls_sock.close()


def probe_plaintext_rpc(host: str, port: int, timeout: float = 2.0) -> bool:
    """
    Send one JSON-RPC request over plain HTTP.

    True when an RPC handler answered it (200, or 401 for missing credentials).
    A TLS-only listener either drops the connection or replies 400.
    """
    url = f"http://{format_address(host, port)}/"
    payload = {"jsonrpc": "1.0", "id": 0, "method": "getblockcount", "params": []}
    try:
        response = httpx.post(url, json=payload, timeout=timeout)
    except httpx.TransportError as e:
        logger.debug(f"Plaintext request to {url} failed: {e}")
        return False

    logger.debug(f"Plaintext request to {url} answered {response.status_code}")
    return response.status_code in (200, 401)
