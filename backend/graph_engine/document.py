"""
Conversion between GraphModel and the JSON flow document.

Document shape::

    {"nodes": [{"id", "type", "position", "data"}, ...],
     "edges": [{"source", "target"}, ...]}

Missing top-level keys are rejected instead of defaulted.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .errors import FormatError
from .graph_model import GraphModel
from .schema import Edge, Node, NodeType, parse_node_data

# Node types written by the original canvas app, mapped to current names.
LEGACY_TYPES = {
    'codeNode': NodeType.CODE.value,
    'arithmeticNode': NodeType.ARITHMETIC.value,
    'httpNode': NodeType.HTTP.value,
}

LEGACY_DATA_KEYS = {
    NodeType.CODE.value: {'code': 'source'},
    NodeType.ARITHMETIC.value: {'a': 'operandA', 'b': 'operandB', 'op': 'operator'},
    NodeType.HTTP.value: {},
}


def to_document(graph: GraphModel) -> Dict[str, Any]:
    return {
        'nodes': [node.to_dict() for node in graph.nodes.values()],
        'edges': [edge.to_dict() for edge in graph.edges],
    }


def from_document(document: Any) -> GraphModel:
    """Build a validated graph from a document; raises FormatError/StructuralError."""
    if not isinstance(document, dict):
        raise FormatError("Flow document must be a JSON object")
    for key in ('nodes', 'edges'):
        if key not in document:
            raise FormatError(f"Flow document is missing '{key}'")
        if not isinstance(document[key], list):
            raise FormatError(f"Flow document '{key}' must be a list")

    nodes = [_parse_node(raw, index) for index, raw in enumerate(document['nodes'])]
    edges = [_parse_edge(raw, index) for index, raw in enumerate(document['edges'])]

    graph = GraphModel(nodes, edges)
    graph.validate()
    return graph


def _parse_node(raw: Any, index: int) -> Node:
    if not isinstance(raw, dict):
        raise FormatError(f"Node #{index} must be an object")
    for key in ('id', 'type', 'data'):
        if key not in raw:
            raise FormatError(f"Node #{index} is missing '{key}'")
    node_id, node_type = raw['id'], raw['type']
    if not isinstance(node_id, str) or not node_id:
        raise FormatError(f"Node #{index}: 'id' must be a non-empty string")
    if not isinstance(node_type, str):
        raise FormatError(f"Node {node_id}: 'type' must be a string")

    data = raw['data']
    if node_type in LEGACY_TYPES:
        node_type = LEGACY_TYPES[node_type]
        data = _upgrade_legacy_data(node_type, data)

    return Node(
        id=node_id,
        type=node_type,
        data=parse_node_data(NodeType.from_name(node_type), data, node_id),
        position=raw.get('position'),
    )


def _upgrade_legacy_data(node_type: str, data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    renames = LEGACY_DATA_KEYS[node_type]
    return {renames.get(key, key): value for key, value in data.items()}


def _parse_edge(raw: Any, index: int) -> Edge:
    if not isinstance(raw, dict):
        raise FormatError(f"Edge #{index} must be an object")
    for key in ('source', 'target'):
        if not isinstance(raw.get(key), str):
            raise FormatError(f"Edge #{index}: '{key}' must be a string node id")
    edge_id = raw.get('id')
    if edge_id is not None and not isinstance(edge_id, str):
        raise FormatError(f"Edge #{index}: 'id' must be a string")
    return Edge(source=raw['source'], target=raw['target'], id=edge_id)


def graph_summary(graph: GraphModel) -> Dict[str, List[str]]:
    """Node ids grouped by type, for log lines."""
    summary: Dict[str, List[str]] = {}
    for node in graph.nodes.values():
        summary.setdefault(node.type, []).append(node.id)
    return summary
