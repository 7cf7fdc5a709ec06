from .docker_adaptor import DockerAdaptor
from .protocol import OrchestrationBackend

__all__ = ["DockerAdaptor", "OrchestrationBackend"]
