"""Ports baked into the daemon image. Not configurable per scenario."""

P2P_PORT = 8333
RPC_PORT = 8334

P2P_PORT_SPEC = f"{P2P_PORT}/tcp"
RPC_PORT_SPEC = f"{RPC_PORT}/tcp"

STDOUT_PREFIX = "cont-out> "
STDERR_PREFIX = "cont-err> "
