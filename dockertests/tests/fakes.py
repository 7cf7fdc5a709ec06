"""In-memory OrchestrationBackend for unit tests."""

import itertools
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, TypeVar

from dockertests.backend.protocol import LogChunk
from dockertests.core.retry import RetryPolicy, retry

T = TypeVar("T")


class FakeBackend:
    def __init__(self, max_attempts: int = 5):
        self.networks: Dict[str, dict] = {}
        self.containers: Dict[str, dict] = {}
        self.calls: List[tuple] = []
        self.fail_on: Dict[str, Exception] = {}
        self.log_chunks: List[LogChunk] = []
        self.log_error: Optional[Exception] = None
        self.sleeps: List[float] = []
        self.policy = RetryPolicy(max_attempts=max_attempts, randomization=0.0)
        self._ids = itertools.count(1)

    def _record(self, op: str, *args):
        self.calls.append((op, *args))
        if op in self.fail_on:
            raise self.fail_on[op]

    # --- networks ---
    def create_network(self, name: str, internal: bool = True) -> str:
        self._record("create_network", name, internal)
        network_id = f"net{next(self._ids):04d}" + "0" * 56
        self.networks[network_id] = {"name": name, "internal": internal, "containers": set()}
        return network_id

    def list_networks(self, name: str) -> List[str]:
        self._record("list_networks", name)
        return [nid for nid, n in self.networks.items() if n["name"] == name]

    def network_containers(self, network_id: str) -> List[str]:
        self._record("network_containers", network_id)
        return sorted(self._network(network_id)["containers"])

    def connect_network(self, network_id: str, container_id: str) -> None:
        self._record("connect_network", network_id, container_id)
        self._network(network_id)["containers"].add(container_id)

    def disconnect_network(self, network_id: str, container_id: str, force: bool = True) -> None:
        self._record("disconnect_network", network_id, container_id, force)
        containers = self._network(network_id)["containers"]
        if container_id not in containers:
            raise LookupError(container_id)
        containers.discard(container_id)

    def remove_network(self, network_id: str) -> None:
        self._record("remove_network", network_id)
        self._network(network_id)
        del self.networks[network_id]

    def _network(self, network_id: str) -> dict:
        if network_id not in self.networks:
            raise LookupError(network_id)
        return self.networks[network_id]

    # --- containers ---
    def run_container(
        self, image: str, network: Optional[str], command: Sequence[str]
    ) -> Tuple[str, str]:
        self._record("run_container", image, network, list(command))
        n = next(self._ids)
        container_id = f"ctr{n:04d}" + "0" * 56
        name = f"fake_daemon_{n}"
        self.containers[container_id] = {
            "name": name,
            "image": image,
            "network": network,
            "command": list(command),
            "ip": f"172.30.0.{n}" if network else "",
        }
        if network is not None:
            for net in self.networks.values():
                if net["name"] == network:
                    net["containers"].add(container_id)
        return container_id, name

    def remove_container(self, container_id: str) -> None:
        self._record("remove_container", container_id)
        if container_id not in self.containers:
            raise LookupError(container_id)
        del self.containers[container_id]
        for net in self.networks.values():
            net["containers"].discard(container_id)

    def get_ip_in_network(self, container_id: str, network: str) -> str:
        container = self.containers[container_id]
        return container["ip"] if container["network"] == network else ""

    def get_host_port(self, container_id: str, port_spec: str) -> str:
        container = self.containers[container_id]
        if container["network"] is None:
            return ""
        return "49153" if port_spec == "8333/tcp" else ""

    # --- logs / timing ---
    def stream_logs(self, container_id: str) -> Iterator[LogChunk]:
        self._record("stream_logs", container_id)
        yield from self.log_chunks
        if self.log_error is not None:
            raise self.log_error

    def retry(self, operation: Callable[[], T]) -> T:
        return retry(operation, self.policy, retry_on=(OSError,), sleep=self.sleeps.append)
