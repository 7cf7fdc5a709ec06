"""
Harness exceptions

Every failure outside the readiness poller's retry budget is fatal for the
scenario that hit it. Each error names the step that failed and keeps the
underlying transport error as ``cause`` (also chained via ``raise ... from``).
"""

from typing import Optional


class HarnessError(Exception):
    """Base class for all harness failures."""

    pass


class BackendUnavailableError(HarnessError):
    """Docker エンジンに接続できない (リトライなし)"""

    def __init__(self, base_url: Optional[str], cause: Exception):
        self.base_url = base_url
        self.cause = cause
        target = base_url or "environment default"
        super().__init__(f"Could not connect to docker ({target}): {cause}")


class ResourceCreationError(HarnessError):
    """Network or container could not be created."""

    def __init__(self, resource: str, cause: Exception):
        self.resource = resource
        self.cause = cause
        super().__init__(f"Could not create {resource}: {cause}")


class TeardownError(HarnessError):
    """
    Network or container could not be released.

    Kept separate from the scenario's own failure: a leaked resource breaks the
    next run that reuses the same fixed names.
    """

    def __init__(self, resource: str, cause: Exception):
        self.resource = resource
        self.cause = cause
        super().__init__(f"Could not purge {resource}: {cause}")


class ReadinessTimeoutError(HarnessError):
    """Retry budget exhausted before the target port accepted a connection."""

    def __init__(self, address: str, cause: Optional[BaseException]):
        self.address = address
        self.cause = cause
        super().__init__(f"{address} not open, err {cause}")


class HandshakeError(HarnessError):
    """TLS handshake or certificate harvest failed."""

    def __init__(self, address: str, cause: Exception):
        self.address = address
        self.cause = cause
        super().__init__(f"Failed to TLS connect to {address}: {cause}")


class RpcConnectError(HarnessError):
    """RPC client could not establish a session within its tries."""

    def __init__(self, host: str, cause: Optional[Exception]):
        self.host = host
        self.cause = cause
        super().__init__(f"Failed to connect to RPC Server {host}, err {cause}")


class RpcAuthError(RpcConnectError):
    """RPC server rejected the credentials (HTTP 401)."""

    def __init__(self, host: str, user: str):
        self.user = user
        super().__init__(host, Exception(f"authentication failed for user '{user}'"))


class RpcError(HarnessError):
    """JSON-RPC error object returned by the server."""

    def __init__(self, method: str, code: int, message: str):
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"RPC call {method} failed ({code}): {message}")
