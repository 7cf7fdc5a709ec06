# Where: dockertests/services/lifecycle.py
# What: Start, inspect and purge the daemon container of one scenario.
# Why: Scenarios differ only in network attachment and RPC flags.
import logging
from typing import Optional, Sequence

from dockertests.backend.protocol import OrchestrationBackend
from dockertests.config import HarnessConfig
from dockertests.core.exceptions import ResourceCreationError, TeardownError
from dockertests.models import DaemonInstance
from dockertests.services.network import IsolationBoundary

logger = logging.getLogger("dockertests.lifecycle")


def start(
    backend: OrchestrationBackend,
    image: str,
    tag: str,
    network: Optional[IsolationBoundary] = None,
    args: Sequence[str] = (),
) -> DaemonInstance:
    """
    Start a daemon container.

    network=None runs the container with no network driver at all.

    Raises:
        ResourceCreationError: container could not be started
    """
    image_ref = f"{image}:{tag}"
    network_name = network.name if network is not None else None
    if network is not None and network.closed:
        raise ResourceCreationError(
            f"container {image_ref}", RuntimeError(f"network {network_name} is closed")
        )

    try:
        container_id, name = backend.run_container(image_ref, network_name, list(args))
    except Exception as e:
        raise ResourceCreationError(f"container {image_ref}", e) from e

    return DaemonInstance(
        id=container_id,
        name=name,
        image=image_ref,
        network=network_name,
        args=tuple(args),
    )


def start_default(
    backend: OrchestrationBackend,
    config: HarnessConfig,
    network: Optional[IsolationBoundary] = None,
) -> DaemonInstance:
    """デフォルト設定で起動 (RPC サーバーなし)"""
    return start(backend, config.DAEMON_IMAGE, config.DAEMON_TAG, network)


def start_with_rpc(
    backend: OrchestrationBackend, config: HarnessConfig, network: IsolationBoundary
) -> DaemonInstance:
    """RPC サーバー有効で起動"""
    return start(
        backend, config.DAEMON_IMAGE, config.DAEMON_TAG, network, args=config.rpc_args()
    )


def get_address(
    backend: OrchestrationBackend, instance: DaemonInstance, network: IsolationBoundary
) -> str:
    """IP of the instance inside the network; empty when not attached."""
    return backend.get_ip_in_network(instance.id, network.name)


def get_exposed_port(backend: OrchestrationBackend, instance: DaemonInstance, port_spec: str) -> str:
    """Host port published for ``port_spec``; empty when the port is not exposed."""
    return backend.get_host_port(instance.id, port_spec)


def stop(backend: OrchestrationBackend, instance: DaemonInstance) -> None:
    """
    Purge the container and its volumes.

    Calling it again, or on a container that is already gone, is a no-op.

    Raises:
        TeardownError: the backend refused to remove the container
    """
    if instance.removed:
        logger.debug(f"Container {instance.name} already purged")
        return

    try:
        backend.remove_container(instance.id)
    except LookupError:
        logger.debug(f"Container {instance.name} already gone")
    except Exception as e:
        raise TeardownError(f"container {instance.name}", e) from e

    instance.removed = True
