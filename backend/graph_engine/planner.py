"""
Build execution orders for flow graphs.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, List

from .errors import CycleDetected
from .graph_model import GraphModel


@dataclass
class ExecutionPlan:
    ordered_nodes: List[str]
    downstream: Dict[str, List[str]]
    upstream: Dict[str, List[str]]


class Scheduler:
    """Kahn's algorithm with declaration order as the tie-break."""

    def build(self, graph: GraphModel) -> ExecutionPlan:
        downstream: Dict[str, List[str]] = {node_id: [] for node_id in graph.nodes}
        upstream: Dict[str, List[str]] = {node_id: [] for node_id in graph.nodes}
        for edge in graph.edges:
            downstream[edge.source].append(edge.target)
            upstream[edge.target].append(edge.source)

        indegree = {node_id: len(sources) for node_id, sources in upstream.items()}
        queue = deque(node_id for node_id in graph.nodes if indegree[node_id] == 0)
        ordered: List[str] = []

        while queue:
            node_id = queue.popleft()
            ordered.append(node_id)
            for target_id in downstream[node_id]:
                indegree[target_id] -= 1
                if indegree[target_id] == 0:
                    queue.append(target_id)

        if len(ordered) != len(graph.nodes):
            placed = set(ordered)
            raise CycleDetected(node_id for node_id in graph.nodes if node_id not in placed)

        return ExecutionPlan(ordered_nodes=ordered, downstream=downstream, upstream=upstream)

    def order(self, graph: GraphModel) -> List[str]:
        return self.build(graph).ordered_nodes

    def levels(self, graph: GraphModel) -> List[List[str]]:
        """
        Group the topological order into waves.

        Every node's sources sit in an earlier wave, so running one wave at
        a time keeps dependencies ahead of dependents. Within a wave nodes
        keep their position in the sequential order.
        """
        plan = self.build(graph)
        depth: Dict[str, int] = {}
        for node_id in plan.ordered_nodes:
            sources = plan.upstream[node_id]
            depth[node_id] = 1 + max((depth[s] for s in sources), default=-1)

        waves: List[List[str]] = []
        for node_id in plan.ordered_nodes:
            level = depth[node_id]
            while len(waves) <= level:
                waves.append([])
            waves[level].append(node_id)
        return waves
