"""
サービスパッケージ

ネットワーク分離、コンテナライフサイクル、起動待ち、TLS ブートストラップ、ログ中継を提供します。
"""

from .bootstrap import bootstrap
from .log_relay import LogRelay, LoggerBridge
from .network import IsolationBoundary
from .readiness import (
    await_ready,
    format_address,
    probe_closed,
    probe_plaintext_rpc,
    probe_tls,
    tcp_dialer,
    tls_dialer,
)

__all__ = [
    "bootstrap",
    "LogRelay",
    "LoggerBridge",
    "IsolationBoundary",
    "await_ready",
    "format_address",
    "probe_closed",
    "probe_plaintext_rpc",
    "probe_tls",
    "tcp_dialer",
    "tls_dialer",
]
