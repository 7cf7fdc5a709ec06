"""
LogRelay - container stdout/stderr into the test log

Runs on a daemon thread for the container's whole lifetime, including the
period while the readiness poller is still blocking the test thread. The only
shared object is the sink (a logging.Logger), which serializes writes itself.
"""

import logging
import threading
from typing import Optional

from dockertests.backend.protocol import OrchestrationBackend
from dockertests.constants import STDERR_PREFIX, STDOUT_PREFIX
from dockertests.models import DaemonInstance

logger = logging.getLogger("dockertests.log_relay")


class LoggerBridge:
    """
    Writer that forwards every write to the sink as one record.

    Line terminators are stripped so the sink's own line-oriented output does
    not fragment.
    """

    def __init__(self, sink: logging.Logger, prefix: str, extra: Optional[dict] = None):
        self.sink = sink
        self.prefix = prefix
        self.extra = extra or {}

    def write(self, data: bytes) -> int:
        text = data.decode("utf-8", errors="replace")
        line = text.replace("\n", "").replace("\r", "")
        self.sink.info(self.prefix + line, extra=self.extra)
        # Report the full input as written
        return len(data)


class LogRelay:
    def __init__(
        self,
        backend: OrchestrationBackend,
        instance: DaemonInstance,
        sink: logging.Logger,
    ):
        self.backend = backend
        self.instance = instance
        self.stdout = LoggerBridge(
            sink, STDOUT_PREFIX, {"container": instance.name, "stream": "stdout"}
        )
        self.stderr = LoggerBridge(
            sink, STDERR_PREFIX, {"container": instance.name, "stream": "stderr"}
        )
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "LogRelay":
        """Start relaying in the background and return immediately."""
        if self._thread is not None:
            raise RuntimeError(f"Log relay for {self.instance.name} already started")
        self._thread = threading.Thread(
            target=self._run, name=f"log-relay-{self.instance.name}", daemon=True
        )
        self._thread.start()
        logger.debug(f"Log relay started for {self.instance.name}")
        return self

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the stream to end; True once the relay thread has exited."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        try:
            for out, err in self.backend.stream_logs(self.instance.id):
                if out:
                    self.stdout.write(out)
                if err:
                    self.stderr.write(err)
        except Exception as e:
            # Container purge closes the stream under us
            logger.warning(f"Log relay for {self.instance.name} stopped: {e}")
            return
        logger.debug(f"Log relay for {self.instance.name} reached end of stream")
