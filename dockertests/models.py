from dataclasses import dataclass, field
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Orchestration resources
# =============================================================================


@dataclass
class NetworkHandle:
    """
    Isolation boundary の状態

    closed は close() 済みかどうか (二重 close を no-op にするため)
    """

    id: str  # Docker network ID
    name: str  # 固定名 (btcd_dockertests_network)
    internal: bool = True  # 外部へのルートなし
    closed: bool = False

    def __eq__(self, other):
        if isinstance(other, NetworkHandle):
            return self.id == other.id
        return False

    def __hash__(self):
        return hash(self.id)


@dataclass
class DaemonInstance:
    """
    1 シナリオが専有するデーモンコンテナ

    __eq__, __hash__ は id ベース
    """

    id: str  # コンテナID (Docker ID)
    name: str  # コンテナ名
    image: str  # repository:tag
    network: Optional[str] = None  # 接続ネットワーク名 (None = network_mode none)
    args: Tuple[str, ...] = field(default_factory=tuple)  # デーモンの起動引数
    removed: bool = False

    def __eq__(self, other):
        if isinstance(other, DaemonInstance):
            return self.id == other.id
        return False

    def __hash__(self):
        return hash(self.id)


# =============================================================================
# RPC connection contract
# =============================================================================


class ConnConfig(BaseModel):
    """Immutable connection settings for exactly one RPC client session."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(..., description="ip:port of the RPC listener")
    endpoint: str = Field(default="ws", description="websocket sub-endpoint")
    user: str = Field(..., description="RPC ユーザー")
    password: str = Field(..., description="RPC パスワード")
    certificates: bytes = Field(..., description="PEM bundle harvested from the server")
    disable_connect_on_new: bool = Field(default=False, description="生成時に接続しない")
    timeout: float = Field(default=10.0, gt=0, description="per-request timeout (seconds)")

    @property
    def url(self) -> str:
        return f"wss://{self.host}/{self.endpoint.lstrip('/')}"
