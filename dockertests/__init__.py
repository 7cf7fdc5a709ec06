"""
Docker scenarios for the node daemon's network exposure.

Isolation network → daemon container → log relay → readiness poll →
(RPC scenarios) secure bootstrap → assertions → teardown.
"""
