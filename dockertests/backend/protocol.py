"""
OrchestrationBackend

Capabilities the harness needs from whatever manages networks and processes.
Readiness polling and secure bootstrap only depend on this protocol, so unit
tests substitute an in-memory fake for the Docker adaptor.
"""

from typing import Callable, Iterator, List, Optional, Protocol, Sequence, Tuple, TypeVar

T = TypeVar("T")

LogChunk = Tuple[Optional[bytes], Optional[bytes]]


class OrchestrationBackend(Protocol):
    # --- networks ---
    def create_network(self, name: str, internal: bool = True) -> str:
        """Create a network and return its ID."""
        ...

    def list_networks(self, name: str) -> List[str]:
        """IDs of networks whose name is exactly ``name``."""
        ...

    def network_containers(self, network_id: str) -> List[str]:
        """IDs of containers attached to the network."""
        ...

    def connect_network(self, network_id: str, container_id: str) -> None: ...

    def disconnect_network(self, network_id: str, container_id: str, force: bool = True) -> None: ...

    def remove_network(self, network_id: str) -> None:
        """Raise LookupError when the network does not exist."""
        ...

    # --- processes ---
    def run_container(
        self, image: str, network: Optional[str], command: Sequence[str]
    ) -> Tuple[str, str]:
        """Start a detached container and return (id, name)."""
        ...

    def remove_container(self, container_id: str) -> None:
        """Force-remove with volumes. Raise LookupError when already gone."""
        ...

    def get_ip_in_network(self, container_id: str, network: str) -> str: ...

    def get_host_port(self, container_id: str, port_spec: str) -> str:
        """Published host port for e.g. ``8334/tcp``; empty string when not published."""
        ...

    # --- logs / timing ---
    def stream_logs(self, container_id: str) -> Iterator[LogChunk]:
        """Follow (stdout, stderr) chunks until the container goes away."""
        ...

    def retry(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` under the backend's retry budget (OSError is retried)."""
        ...
