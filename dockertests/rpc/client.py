"""
RpcClient - JSON-RPC session over a TLS websocket with a pinned certificate bundle

Trust is anchored only at the PEM bundle in ConnConfig (harvested from the
daemon's own TLS handshake). Credentials travel as HTTP basic auth on the
websocket upgrade. Construction connects immediately unless
disable_connect_on_new is set, in which case the caller calls connect().
"""

import base64
import json
import logging
import ssl
import time
from typing import Any, Callable, Optional

import websocket

from dockertests.core.exceptions import RpcAuthError, RpcConnectError, RpcError
from dockertests.models import ConnConfig

logger = logging.getLogger("dockertests.rpc")

# Linear back-off between connect tries (seconds × attempt)
CONNECT_RETRY_INTERVAL = 5.0

Connector = Callable[..., websocket.WebSocket]


class RpcClient:
    def __init__(
        self,
        config: ConnConfig,
        connector: Connector = websocket.create_connection,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            config: connection settings (host, endpoint, credentials, PEM bundle)
            connector: websocket factory (websocket.create_connection signature)
            sleep: back-off sleep between connect tries
        """
        self.config = config
        self._connector = connector
        self._sleep = sleep
        self._ws: Optional[websocket.WebSocket] = None
        self._next_id = 0
        self._is_shutdown = False

        if not config.disable_connect_on_new:
            self.connect(1)

    @property
    def connected(self) -> bool:
        return self._ws is not None

    def _ssl_context(self) -> ssl.SSLContext:
        try:
            return ssl.create_default_context(cadata=self.config.certificates.decode("ascii"))
        except (ssl.SSLError, UnicodeDecodeError, ValueError) as e:
            raise RpcConnectError(self.config.host, e) from e

    def _dial(self, context: ssl.SSLContext) -> websocket.WebSocket:
        credentials = f"{self.config.user}:{self.config.password}".encode()
        token = base64.b64encode(credentials).decode("ascii")
        return self._connector(
            self.config.url,
            timeout=self.config.timeout,
            header=[f"Authorization: Basic {token}"],
            sslopt={"context": context},
        )

    def connect(self, tries: int = 1) -> None:
        """
        Open the websocket session.

        Each try performs the upgrade and one ``ping`` round-trip; only a
        well-formed JSON-RPC reply (result or error object) proves the session.

        Raises:
            RpcAuthError: credentials rejected on upgrade (not retried)
            RpcConnectError: all tries failed
        """
        if self._is_shutdown:
            raise RpcConnectError(self.config.host, RuntimeError("client already shut down"))
        if self._ws is not None:
            return
        if tries < 1:
            raise ValueError("tries must be >= 1")

        context = self._ssl_context()
        last_error: Optional[Exception] = None

        for attempt in range(1, tries + 1):
            try:
                self._ws = self._open(context)
                break
            except RpcAuthError:
                raise
            except RpcConnectError as e:
                last_error = e.cause
                logger.debug(f"Connect attempt {attempt}/{tries} to {self.config.host} failed: {e.cause}")
                if attempt < tries:
                    self._sleep(CONNECT_RETRY_INTERVAL * attempt)
        else:
            raise RpcConnectError(self.config.host, last_error) from last_error

        logger.info(f"Connected to RPC server {self.config.url}")

    def _open(self, context: ssl.SSLContext) -> websocket.WebSocket:
        try:
            ws = self._dial(context)
        except websocket.WebSocketBadStatusException as e:
            if e.status_code == 401:
                raise RpcAuthError(self.config.host, self.config.user) from e
            raise RpcConnectError(self.config.host, e) from e
        except (websocket.WebSocketException, OSError) as e:
            raise RpcConnectError(self.config.host, e) from e

        try:
            self._request(ws, "ping", ())
        except RpcError:
            # Method-level error still means the session is live
            pass
        except RpcConnectError:
            ws.close()
            raise
        return ws

    def _request(self, ws: websocket.WebSocket, method: str, params) -> Any:
        self._next_id += 1
        request_id = self._next_id
        payload = {"jsonrpc": "1.0", "id": request_id, "method": method, "params": list(params)}

        try:
            ws.send(json.dumps(payload))
            while True:
                raw = ws.recv()
                try:
                    data = json.loads(raw)
                except ValueError as e:
                    raise RpcConnectError(
                        self.config.host, ValueError(f"non-JSON reply to {method}: {str(raw)[:100]}")
                    ) from e
                if isinstance(data, dict) and "method" in data:
                    # Server notification, not our reply
                    continue
                if not isinstance(data, dict) or ("result" not in data and "error" not in data):
                    raise RpcConnectError(
                        self.config.host, ValueError(f"malformed reply to {method}: {str(raw)[:100]}")
                    )
                if data.get("id") == request_id:
                    break
        except (websocket.WebSocketException, OSError) as e:
            raise RpcConnectError(self.config.host, e) from e

        error = data.get("error")
        if error:
            if not isinstance(error, dict):
                raise RpcConnectError(self.config.host, ValueError(f"malformed error object: {error}"))
            raise RpcError(method, error.get("code", -1), error.get("message", ""))
        return data.get("result")

    def call(self, method: str, *params: Any) -> Any:
        """
        Raises:
            RpcError: server returned a JSON-RPC error
            RpcConnectError: not connected, or the session failed
        """
        if self._ws is None:
            raise RpcConnectError(self.config.host, RuntimeError("not connected"))
        return self._request(self._ws, method, params)

    def get_block_count(self) -> int:
        count = self.call("getblockcount")
        if count is None:
            raise RpcError("getblockcount", -1, "null result")
        return int(count)

    def shutdown(self) -> None:
        """Close the session. Safe to call more than once."""
        if self._is_shutdown:
            return
        self._is_shutdown = True
        if self._ws is not None:
            self._ws.close()
            self._ws = None
        logger.debug(f"RPC client for {self.config.host} shut down")

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
