import logging
import socket
import ssl
from typing import Iterable, List

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from dockertests.core.exceptions import HandshakeError


logger = logging.getLogger(__name__)


def insecure_client_context() -> ssl.SSLContext:
    """
    証明書検証なしの TLS コンテキスト

    The daemon's certificate is self-signed and not yet known to the client;
    this context is only for harvesting it, never for trust.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def peer_chain_der(tls_sock: ssl.SSLSocket) -> List[bytes]:
    """DER bytes of every certificate the peer sent, leaf first."""
    # get_unverified_chain is available from Python 3.13
    get_chain = getattr(tls_sock, "get_unverified_chain", None)
    if get_chain is not None:
        chain = get_chain()
        if chain:
            return [bytes(der) for der in chain]

    leaf = tls_sock.getpeercert(binary_form=True)
    if not leaf:
        raise ssl.SSLError("peer presented no certificate")
    return [leaf]


def encode_pem_bundle(chain: Iterable[bytes]) -> bytes:
    """DER 証明書列を PEM 形式で連結する"""
    bundle = b""
    for der in chain:
        cert = x509.load_der_x509_certificate(der)
        bundle += cert.public_bytes(serialization.Encoding.PEM)
    if not bundle:
        raise ValueError("empty certificate chain")
    return bundle


def harvest_certificates(host: str, port: int, timeout: float = 5.0) -> bytes:
    """
    Perform one unverified TLS handshake and return the peer chain as a PEM bundle.

    The harvesting connection is closed before returning.

    Raises:
        HandshakeError: TCP connect, handshake or re-encoding failed
    """
    address = f"{host}:{port}"
    context = insecure_client_context()
    try:
        with socket.create_connection((host, port), timeout=timeout) as raw:
            with context.wrap_socket(raw, server_hostname=host) as tls_sock:
                chain = peer_chain_der(tls_sock)
                logger.debug(f"Negotiated {tls_sock.version()} with {address}")
    except OSError as e:
        raise HandshakeError(address, e) from e

    try:
        bundle = encode_pem_bundle(chain)
    except ValueError as e:
        raise HandshakeError(address, e) from e

    logger.info(f"Harvested {len(chain)} certificate(s) from {address}")
    return bundle
