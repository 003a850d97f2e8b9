"""
Shared execution context passed to node executors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .graph_model import GraphModel
from .sandbox import ScriptSandbox


@dataclass
class FlowExecutionContext:
    graph: GraphModel
    order: List[str]
    http_session: Any
    http_timeout: float
    sandbox: ScriptSandbox

    def __post_init__(self):
        self.executed: List[str] = []
        self.errors: Dict[str, str] = {}
        self.should_cancel = False

    def record_failure(self, node_id: str, message: str) -> None:
        self.errors[node_id] = message
