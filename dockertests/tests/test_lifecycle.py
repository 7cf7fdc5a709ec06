import pytest

from dockertests.constants import P2P_PORT_SPEC, RPC_PORT_SPEC
from dockertests.core.exceptions import ResourceCreationError, TeardownError
from dockertests.services import lifecycle
from dockertests.services.network import IsolationBoundary


@pytest.fixture
def network(backend, config):
    boundary = IsolationBoundary.create(backend, config.NETWORK_NAME)
    yield boundary
    boundary.close()


class TestStart:
    def test_start_without_network(self, backend, config):
        instance = lifecycle.start_default(backend, config)

        assert instance.network is None
        assert instance.image == "btcd-dockertests:latest"
        assert instance.args == ()
        assert backend.containers[instance.id]["network"] is None

    def test_start_in_network(self, backend, config, network):
        instance = lifecycle.start_default(backend, config, network)

        assert instance.network == config.NETWORK_NAME
        assert instance.id in backend.networks[network.handle.id]["containers"]

    def test_start_with_rpc_passes_flags(self, backend, config, network):
        """RPC フラグがコンテナの起動引数として渡されること"""
        instance = lifecycle.start_with_rpc(backend, config, network)

        assert instance.args == (
            "--rpcuser=localuser",
            "--rpcpass=localuserpwd",
            "--rpclisten=0.0.0.0",
        )
        assert backend.containers[instance.id]["command"] == list(instance.args)

    def test_custom_image_and_args(self, backend):
        instance = lifecycle.start(backend, "btcd", "v0.24", None, args=["--simnet"])

        assert instance.image == "btcd:v0.24"
        assert instance.args == ("--simnet",)

    def test_run_failure_wrapped(self, backend, config):
        backend.fail_on["run_container"] = RuntimeError("No such image: btcd-dockertests:latest")

        with pytest.raises(ResourceCreationError) as exc_info:
            lifecycle.start_default(backend, config)

        assert "btcd-dockertests:latest" in str(exc_info.value)

    def test_closed_network_rejected(self, backend, config, network):
        network.close()

        with pytest.raises(ResourceCreationError):
            lifecycle.start_default(backend, config, network)

        assert backend.containers == {}


class TestInspect:
    def test_address_inside_network(self, backend, config, network):
        instance = lifecycle.start_default(backend, config, network)
        assert lifecycle.get_address(backend, instance, network).startswith("172.30.0.")

    def test_no_address_when_not_attached(self, backend, config, network):
        instance = lifecycle.start_default(backend, config)
        assert lifecycle.get_address(backend, instance, network) == ""

    def test_rpc_port_not_exposed_without_network(self, backend, config):
        instance = lifecycle.start_default(backend, config)

        assert lifecycle.get_exposed_port(backend, instance, RPC_PORT_SPEC) == ""
        assert lifecycle.get_exposed_port(backend, instance, P2P_PORT_SPEC) == ""


class TestStop:
    def test_stop_purges_container(self, backend, config, network):
        instance = lifecycle.start_default(backend, config, network)

        lifecycle.stop(backend, instance)

        assert instance.removed
        assert backend.containers == {}
        assert instance.id not in backend.networks[network.handle.id]["containers"]

    def test_stop_twice_is_noop(self, backend, config):
        instance = lifecycle.start_default(backend, config)
        lifecycle.stop(backend, instance)
        calls = len(backend.calls)

        lifecycle.stop(backend, instance)

        assert len(backend.calls) == calls

    def test_already_gone_container(self, backend, config):
        instance = lifecycle.start_default(backend, config)
        del backend.containers[instance.id]

        lifecycle.stop(backend, instance)

        assert instance.removed

    def test_refused_removal_raises_teardown_error(self, backend, config):
        instance = lifecycle.start_default(backend, config)
        backend.fail_on["remove_container"] = RuntimeError("device or resource busy")

        with pytest.raises(TeardownError):
            lifecycle.stop(backend, instance)

        assert not instance.removed
