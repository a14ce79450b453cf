"""Core type aliases for the simulation."""

from typing import NewType

# Flow identification - positive integer assigned in creation order starting at 1
FlowId = NewType("FlowId", int)

# Reserved id, never assigned to a flow
SENTINEL_FLOW_ID = FlowId(0)

# finish_turn value for flows that still have packets to send
UNFINISHED = -1
