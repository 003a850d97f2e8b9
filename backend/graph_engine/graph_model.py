"""
In-memory flow graph with structural validation and change notification.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional

from .errors import StructuralError
from .schema import Edge, Node, NodeData, NodeType, default_node_data

logger = logging.getLogger(__name__)

GraphListener = Callable[["GraphModel"], None]


class GraphModel:
    """
    Owns the nodes and edges of a flow.

    Nodes keep their declaration order, which the scheduler uses as its
    tie-break. Every mutation notifies subscribed listeners (autosave).
    """

    def __init__(self, nodes: Optional[Iterable[Node]] = None,
                 edges: Optional[Iterable[Edge]] = None):
        node_list = list(nodes or [])
        self._duplicate_ids = [
            node_id for node_id, count in Counter(n.id for n in node_list).items() if count > 1
        ]
        self.nodes: Dict[str, Node] = {}
        for node in node_list:
            self.nodes.setdefault(node.id, node)
        self.edges: List[Edge] = list(edges or [])
        self._listeners: List[GraphListener] = []

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        problems = []
        if self._duplicate_ids:
            problems.append(f"duplicate node ids: {', '.join(self._duplicate_ids)}")
        for edge in self.edges:
            missing = [end for end in (edge.source, edge.target) if end not in self.nodes]
            if missing:
                problems.append(
                    f"edge {edge.source}->{edge.target} references unknown node(s): "
                    f"{', '.join(missing)}"
                )
        if problems:
            raise StructuralError("Invalid graph: " + "; ".join(problems))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize(self) -> Dict[str, Any]:
        from .document import to_document
        return to_document(self)

    @classmethod
    def deserialize(cls, document: Any) -> "GraphModel":
        from .document import from_document
        return from_document(document)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: GraphListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: GraphListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify_changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_node(self, node: Node) -> Node:
        if node.id in self.nodes:
            raise StructuralError(f"Node id already exists: {node.id}")
        self.nodes[node.id] = node
        self.notify_changed()
        return node

    def create_node(self, node_type: str, position: Any = None) -> Node:
        """Add a node of the given type with default data and a fresh id."""
        kind = NodeType.from_name(node_type)
        node = Node(
            id=self.next_node_id(),
            type=node_type,
            data=default_node_data(kind),
            position=position if position is not None else {'x': 0, 'y': 0},
        )
        return self.add_node(node)

    def next_node_id(self) -> str:
        numeric = [int(node_id) for node_id in self.nodes if node_id.isdigit()]
        return str(max(numeric, default=0) + 1)

    def remove_node(self, node_id: str) -> Node:
        if node_id not in self.nodes:
            raise StructuralError(f"Unknown node: {node_id}")
        node = self.nodes.pop(node_id)
        self.edges = [e for e in self.edges if node_id not in (e.source, e.target)]
        self.notify_changed()
        return node

    def connect(self, source: str, target: str, edge_id: Optional[str] = None) -> Edge:
        missing = [end for end in (source, target) if end not in self.nodes]
        if missing:
            raise StructuralError(
                f"Cannot connect {source}->{target}: unknown node(s) {', '.join(missing)}"
            )
        edge = Edge(source=source, target=target, id=edge_id)
        self.edges.append(edge)
        self.notify_changed()
        return edge

    def disconnect(self, source: str, target: str) -> int:
        before = len(self.edges)
        self.edges = [e for e in self.edges if (e.source, e.target) != (source, target)]
        removed = before - len(self.edges)
        if removed:
            self.notify_changed()
        return removed

    def update_node_data(self, node_id: str, data: NodeData) -> Node:
        node = self.get_node(node_id)
        node.data = data
        self.notify_changed()
        return node

    def record_result(self, node_id: str, data: NodeData, notify: bool = True) -> None:
        """Write an executor result back onto its node."""
        self.get_node(node_id).data = data
        if notify:
            self.notify_changed()

    def replace(self, other: "GraphModel") -> None:
        """Full replacement, as when loading a new document."""
        other.validate()
        self.nodes = dict(other.nodes)
        self.edges = list(other.edges)
        self._duplicate_ids = []
        self.notify_changed()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise StructuralError(f"Unknown node: {node_id}") from None

    def node_ids(self) -> List[str]:
        return list(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphModel):
            return NotImplemented
        return list(self.nodes.values()) == list(other.nodes.values()) and self.edges == other.edges

    def __repr__(self) -> str:
        return f"GraphModel(nodes={len(self.nodes)}, edges={len(self.edges)})"
