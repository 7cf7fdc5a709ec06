"""
Docker シナリオ共通フィクスチャ

Each scenario gets its own Docker connection, network and daemon container.
Fixture finalizers purge the container before the network, on every exit path.
"""

import logging

import pytest

from dockertests.backend import DockerAdaptor
from dockertests.config import load_config
from dockertests.core.exceptions import BackendUnavailableError
from dockertests.core.logging_config import setup_logging
from dockertests.services import IsolationBoundary, LogRelay, lifecycle

# Container output is relayed here (cont-out> / cont-err> prefixed)
CONTAINER_SINK = logging.getLogger("dockertests.container")


@pytest.fixture(scope="session")
def harness_config():
    config = load_config()
    setup_logging(config.LOG_CONFIG_PATH)
    return config


@pytest.fixture
def adaptor(harness_config):
    """Docker エンジンへの接続 (到達できなければ即失敗)"""
    try:
        backend = DockerAdaptor.connect(harness_config.DOCKER_BASE_URL, harness_config.retry_policy())
    except BackendUnavailableError as e:
        pytest.fail(str(e))
    with backend:
        yield backend


@pytest.fixture
def network(adaptor, harness_config):
    boundary = IsolationBoundary.create(adaptor, harness_config.NETWORK_NAME)
    yield boundary
    boundary.close()


def _launch(adaptor, instance):
    LogRelay(adaptor, instance, CONTAINER_SINK).start()
    return instance


@pytest.fixture
def isolated_daemon(adaptor, harness_config):
    """ネットワークなしで起動したデーモン"""
    instance = _launch(adaptor, lifecycle.start_default(adaptor, harness_config))
    yield instance
    lifecycle.stop(adaptor, instance)


@pytest.fixture
def p2p_daemon(adaptor, harness_config, network):
    """デフォルト設定 (RPC なし) でネットワーク内に起動したデーモン"""
    instance = _launch(adaptor, lifecycle.start_default(adaptor, harness_config, network))
    yield instance
    lifecycle.stop(adaptor, instance)


@pytest.fixture
def rpc_daemon(adaptor, harness_config, network):
    """RPC フラグ付きでネットワーク内に起動したデーモン"""
    instance = _launch(adaptor, lifecycle.start_with_rpc(adaptor, harness_config, network))
    yield instance
    lifecycle.stop(adaptor, instance)


@pytest.fixture
def rpc_host(adaptor, network, rpc_daemon):
    host = lifecycle.get_address(adaptor, rpc_daemon, network)
    assert host, f"{rpc_daemon.name} has no address in {network.name}"
    return host
