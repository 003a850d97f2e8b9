"""
Error taxonomy for the flow runtime.

Structural and format errors subclass ValueError so the route layer reports
them as client errors. Node execution errors never leave the runner; they are
stored on the failing node instead.
"""

from __future__ import annotations

from typing import Iterable, List


class FlowError(Exception):
    """Base class for every error raised by the flow runtime."""


class StructuralError(FlowError, ValueError):
    """Dangling edge endpoint or duplicate node id."""


class FormatError(FlowError, ValueError):
    """A flow document does not have the expected shape."""


class CycleDetected(FlowError):
    """The graph has no topological order; nothing was executed."""

    def __init__(self, node_ids: Iterable[str]):
        self.node_ids: List[str] = list(node_ids)
        super().__init__(
            f"Cycle detected between nodes: {', '.join(self.node_ids)}"
        )


class NodeExecutionError(FlowError):
    """Failure of a single node. Recorded in the node's lastError."""

    SCRIPT = "script"
    ARITHMETIC = "arithmetic"
    NETWORK = "network"
    TIMEOUT = "timeout"

    def __init__(self, message: str, kind: str):
        super().__init__(message)
        self.kind = kind
