# Where: dockertests/config.py
# What: Environment-driven settings for the docker scenarios.
# Why: Let CI point the scenarios at another image, engine or retry budget without code changes.
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dockertests.core.retry import RetryPolicy


class HarnessConfig(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, extra="ignore")

    # Daemon image (built outside this repository)
    DAEMON_IMAGE: str = Field(default="btcd-dockertests", description="デーモンイメージ名")
    DAEMON_TAG: str = Field(default="latest", description="デーモンイメージタグ")

    # Isolation boundary
    NETWORK_NAME: str = Field(default="btcd_dockertests_network")

    # RPC listener flags and client credentials
    RPC_USER: str = Field(default="localuser")
    RPC_PASS: str = Field(default="localuserpwd")
    RPC_LISTEN: str = Field(default="0.0.0.0")
    RPC_ENDPOINT: str = Field(default="ws", description="websocket sub-endpoint")
    RPC_CONNECT_TRIES: int = Field(default=1, ge=1)
    RPC_TIMEOUT: float = Field(default=10.0, gt=0)

    # Retry budget for readiness polling
    RETRY_MAX_WAIT: float = Field(default=60.0, gt=0)
    RETRY_INITIAL_INTERVAL: float = Field(default=0.5, gt=0)
    RETRY_MULTIPLIER: float = Field(default=1.5, ge=1.0)
    RETRY_MAX_INTERVAL: float = Field(default=5.0, gt=0)
    RETRY_RANDOMIZATION: float = Field(default=0.5, ge=0.0, lt=1.0)

    # Per-dial socket timeout
    DIAL_TIMEOUT: float = Field(default=2.0, gt=0)

    # Docker engine (None = DOCKER_HOST / default socket)
    DOCKER_BASE_URL: Optional[str] = None

    LOG_CONFIG_PATH: str = "config/dockertests_log.yaml"

    @property
    def image(self) -> str:
        return f"{self.DAEMON_IMAGE}:{self.DAEMON_TAG}"

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_wait=self.RETRY_MAX_WAIT,
            initial_interval=self.RETRY_INITIAL_INTERVAL,
            multiplier=self.RETRY_MULTIPLIER,
            max_interval=self.RETRY_MAX_INTERVAL,
            randomization=self.RETRY_RANDOMIZATION,
        )

    def rpc_args(self) -> list[str]:
        """Command-line flags that enable the daemon's RPC listener."""
        return [
            f"--rpcuser={self.RPC_USER}",
            f"--rpcpass={self.RPC_PASS}",
            f"--rpclisten={self.RPC_LISTEN}",
        ]


def load_config() -> HarnessConfig:
    """Read settings from the current process environment."""
    return HarnessConfig()
