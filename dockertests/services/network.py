"""
IsolationBoundary - ephemeral internal network for one scenario

The network uses a fixed name, so a network leaked by an earlier run is
removed before a new one is created, and close() must never silently fail.
"""

import logging

from dockertests.backend.protocol import OrchestrationBackend
from dockertests.core.exceptions import ResourceCreationError, TeardownError
from dockertests.models import NetworkHandle

logger = logging.getLogger("dockertests.network")


class IsolationBoundary:
    def __init__(self, backend: OrchestrationBackend, handle: NetworkHandle):
        self.backend = backend
        self.handle = handle

    @property
    def name(self) -> str:
        return self.handle.name

    @property
    def closed(self) -> bool:
        return self.handle.closed

    @classmethod
    def create(
        cls, backend: OrchestrationBackend, name: str, internal: bool = True
    ) -> "IsolationBoundary":
        """
        Create the named network.

        Raises:
            ResourceCreationError: stale network could not be removed or creation failed
        """
        try:
            for stale_id in backend.list_networks(name):
                logger.warning(f"Removing stale network {name} ({stale_id[:12]}) from a previous run")
                try:
                    _purge_network(backend, stale_id)
                except LookupError:
                    logger.debug(f"Stale network {stale_id[:12]} vanished before removal")
            network_id = backend.create_network(name, internal=internal)
        except Exception as e:
            raise ResourceCreationError(f"network {name}", e) from e

        return cls(backend, NetworkHandle(id=network_id, name=name, internal=internal))

    def close(self) -> None:
        """
        Detach leftover containers and remove the network.

        A second call, or a network already gone, is a no-op.

        Raises:
            TeardownError: the backend refused to remove the network
        """
        if self.handle.closed:
            logger.debug(f"Network {self.name} already closed")
            return

        try:
            _purge_network(self.backend, self.handle.id)
        except LookupError:
            logger.debug(f"Network {self.name} already gone")
        except Exception as e:
            raise TeardownError(f"network {self.name}", e) from e

        self.handle.closed = True

    def attach(self, container_id: str) -> None:
        """Attach an already-running container (e.g. one started without a network)."""
        if self.handle.closed:
            raise ResourceCreationError(f"attachment to {self.name}", RuntimeError("network closed"))
        try:
            self.backend.connect_network(self.handle.id, container_id)
        except Exception as e:
            raise ResourceCreationError(f"attachment to {self.name}", e) from e

    def detach(self, container_id: str) -> None:
        try:
            self.backend.disconnect_network(self.handle.id, container_id, force=True)
        except LookupError:
            logger.debug(f"{container_id[:12]} already detached from {self.name}")

    def __enter__(self) -> "IsolationBoundary":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _purge_network(backend: OrchestrationBackend, network_id: str) -> None:
    for container_id in backend.network_containers(network_id):
        logger.debug(f"Detaching {container_id[:12]} from {network_id[:12]}")
        backend.disconnect_network(network_id, container_id, force=True)
    backend.remove_network(network_id)
