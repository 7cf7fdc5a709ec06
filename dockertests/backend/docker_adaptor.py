# Where: dockertests/backend/docker_adaptor.py
# What: Docker SDK implementation of OrchestrationBackend.
# Why: Keep docker-py calls and their error types out of the harness services.
import logging
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, TypeVar

import docker
import docker.errors

from dockertests.backend.protocol import LogChunk
from dockertests.core.exceptions import BackendUnavailableError
from dockertests.core.retry import RetryPolicy, retry

logger = logging.getLogger("dockertests.docker")

T = TypeVar("T")

MANAGED_LABEL = "dockertests.managed"


class DockerAdaptor:
    """
    Docker エンジンへの接続ハンドル (1 シナリオにつき 1 つ)

    NotFound は LookupError に変換し、それ以外の docker.errors はそのまま送出する。
    """

    def __init__(self, client: docker.DockerClient, policy: Optional[RetryPolicy] = None):
        self.client = client
        self.policy = policy or RetryPolicy()

    @classmethod
    def connect(
        cls, base_url: Optional[str] = None, policy: Optional[RetryPolicy] = None
    ) -> "DockerAdaptor":
        """
        Open a client and ping the engine.

        Raises:
            BackendUnavailableError: engine unreachable (no retry)
        """
        try:
            if base_url:
                client = docker.DockerClient(base_url=base_url)
            else:
                client = docker.from_env()
            client.ping()
        except (docker.errors.DockerException, OSError) as e:
            raise BackendUnavailableError(base_url, e) from e

        logger.debug(f"Connected to docker ({base_url or 'environment default'})")
        return cls(client, policy)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "DockerAdaptor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Networks
    # ------------------------------------------------------------------

    def create_network(self, name: str, internal: bool = True) -> str:
        network = self.client.networks.create(
            name,
            driver="bridge",
            internal=internal,
            labels={MANAGED_LABEL: "true"},
        )
        logger.info(f"Docker network {name} created (internal={internal})")
        return network.id

    def list_networks(self, name: str) -> List[str]:
        # The engine's name filter also matches substrings
        return [n.id for n in self.client.networks.list(names=[name]) if n.name == name]

    def network_containers(self, network_id: str) -> List[str]:
        network = self._get_network(network_id)
        network.reload()
        return list((network.attrs.get("Containers") or {}).keys())

    def connect_network(self, network_id: str, container_id: str) -> None:
        self._get_network(network_id).connect(container_id)

    def disconnect_network(self, network_id: str, container_id: str, force: bool = True) -> None:
        network = self._get_network(network_id)
        try:
            network.disconnect(container_id, force=force)
        except docker.errors.NotFound as e:
            raise LookupError(f"container {container_id} not attached to {network_id}") from e

    def remove_network(self, network_id: str) -> None:
        self._get_network(network_id).remove()
        logger.info(f"Docker network {network_id[:12]} removed")

    def _get_network(self, network_id: str):
        try:
            return self.client.networks.get(network_id)
        except docker.errors.NotFound as e:
            raise LookupError(f"network {network_id} not found") from e

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def run_container(
        self, image: str, network: Optional[str], command: Sequence[str]
    ) -> Tuple[str, str]:
        kwargs = {
            "image": image,
            "command": list(command) or None,
            "detach": True,
            "labels": {MANAGED_LABEL: "true"},
        }
        if network is None:
            # No network driver at all; nothing can be published.
            kwargs["network_mode"] = "none"
        else:
            kwargs["network"] = network
            kwargs["publish_all_ports"] = True

        container = self.client.containers.run(**kwargs)
        logger.info(f"Started container {container.name} ({image}) on {network or 'no network'}")
        return container.id, container.name

    def remove_container(self, container_id: str) -> None:
        self._get_container(container_id).remove(force=True, v=True)
        logger.info(f"Container {container_id[:12]} purged")

    def get_ip_in_network(self, container_id: str, network: str) -> str:
        container = self._get_container(container_id)
        networks = container.attrs.get("NetworkSettings", {}).get("Networks") or {}
        return (networks.get(network) or {}).get("IPAddress", "")

    def get_host_port(self, container_id: str, port_spec: str) -> str:
        container = self._get_container(container_id)
        ports = container.attrs.get("NetworkSettings", {}).get("Ports") or {}
        bindings = ports.get(port_spec) or []
        if not bindings:
            return ""
        return bindings[0].get("HostPort", "")

    def ensure_image(self, image: str) -> bool:
        """起動前チェック: イメージがローカルに存在するか"""
        try:
            self.client.images.get(image)
            return True
        except docker.errors.ImageNotFound:
            return False

    def _get_container(self, container_id: str):
        try:
            return self.client.containers.get(container_id)
        except docker.errors.NotFound as e:
            raise LookupError(f"container {container_id} not found") from e

    # ------------------------------------------------------------------
    # Logs / timing
    # ------------------------------------------------------------------

    def stream_logs(self, container_id: str) -> Iterator[LogChunk]:
        container = self._get_container(container_id)
        return container.attach(stdout=True, stderr=True, stream=True, logs=True, demux=True)

    def retry(self, operation: Callable[[], T]) -> T:
        return retry(operation, self.policy, retry_on=(OSError,))
