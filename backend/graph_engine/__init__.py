"""
Flow execution package
======================

Provides the core building blocks for the flow runtime:

- Node/edge definitions and the GraphModel with structural validation
- Flow document conversion
- Scheduling (Kahn's algorithm) into an execution order
- Node executor registry for code, arithmetic and HTTP nodes
"""

from .errors import CycleDetected, FormatError, NodeExecutionError, StructuralError  # noqa: F401
from .graph_model import GraphModel  # noqa: F401
from .planner import ExecutionPlan, Scheduler  # noqa: F401
from .schema import Edge, Node, NodeType  # noqa: F401
