import pytest

from graph_engine.document import from_document, to_document
from graph_engine.errors import FormatError, StructuralError
from graph_engine.graph_model import GraphModel
from graph_engine.schema import ArithmeticData, CodeData, GenericData, HttpData


def test_round_trip_preserves_nodes_edges_and_positions(sample_graph):
    sample_graph.get_node("2").data.last_error = "division by zero"
    restored = from_document(to_document(sample_graph))

    assert restored == sample_graph
    assert restored.node_ids() == ["1", "2", "3", "4"]
    assert restored.get_node("3").position == {"x": 10, "y": 20}
    assert restored.edges[-1].id == "e1-4"


def test_serialize_uses_document_keys(sample_graph):
    document = sample_graph.serialize()
    assert set(document) == {"nodes", "edges"}
    assert document["nodes"][1] == {
        "id": "2",
        "type": "arithmetic",
        "position": {"x": 0, "y": 0},
        "data": {"operandA": 6, "operandB": 3, "operator": "*", "result": None, "lastError": None},
    }
    assert document["edges"][0] == {"source": "1", "target": "2"}


def test_deserialize_builds_typed_data():
    graph = GraphModel.deserialize({
        "nodes": [
            {"id": "a", "type": "code", "position": {"x": 1, "y": 2}, "data": {"source": "x = 1"}},
            {"id": "b", "type": "http", "data": {"url": "http://x", "method": "POST"}},
            {"id": "c", "type": "output", "data": {"label": "Out", "extra": [1, 2]}},
        ],
        "edges": [{"source": "a", "target": "b"}],
    })
    assert graph.get_node("a").data == CodeData(source="x = 1")
    assert graph.get_node("b").data == HttpData(url="http://x", method="POST")
    assert graph.get_node("c").data == GenericData(payload={"label": "Out", "extra": [1, 2]})
    assert graph.get_node("b").position is None


@pytest.mark.parametrize("document", [
    {"nodes": []},
    {"edges": []},
    [],
    "flow",
    None,
])
def test_missing_or_malformed_top_level_is_format_error(document):
    with pytest.raises(FormatError):
        from_document(document)


def test_missing_edges_key_is_not_defaulted():
    with pytest.raises(FormatError, match="missing 'edges'"):
        from_document({"nodes": [{"id": "1", "type": "default", "data": {}}]})


@pytest.mark.parametrize("node, message", [
    ({"type": "code", "data": {"source": ""}}, "missing 'id'"),
    ({"id": "1", "type": "code", "data": {}}, "missing 'source'"),
    ({"id": "1", "type": "code", "data": "x = 1"}, "'data' must be an object"),
    ({"id": "1", "type": "arithmetic", "data": {"operandA": "4", "operandB": 0, "operator": "/"}},
     "'operandA' has invalid type str"),
    ({"id": "1", "type": "arithmetic", "data": {"operandA": True, "operandB": 0, "operator": "/"}},
     "'operandA' has invalid type bool"),
    ({"id": "1", "type": "http", "data": {"url": "http://x"}}, "missing 'method'"),
])
def test_bad_node_payloads_are_format_errors(node, message):
    with pytest.raises(FormatError, match=message):
        from_document({"nodes": [node], "edges": []})


def test_dangling_edge_in_document_is_structural_error():
    with pytest.raises(StructuralError):
        from_document({
            "nodes": [{"id": "1", "type": "default", "data": {}}],
            "edges": [{"source": "1", "target": "2"}],
        })


def test_duplicate_ids_in_document_are_structural_error():
    node = {"id": "1", "type": "default", "data": {}}
    with pytest.raises(StructuralError):
        from_document({"nodes": [node, dict(node)], "edges": []})


def test_legacy_canvas_document_is_upgraded():
    graph = from_document({
        "nodes": [
            {"id": "1", "type": "default", "data": {"label": "Start Node"}, "position": {"x": 250, "y": 5}},
            {"id": "2", "type": "codeNode", "data": {"code": "// write JS here"}, "position": {"x": 100, "y": 100}},
            {"id": "3", "type": "arithmeticNode", "data": {"a": 2, "b": 5, "op": "+", "result": None},
             "position": {"x": 200, "y": 200}},
            {"id": "4", "type": "httpNode", "data": {"url": "", "method": "GET", "response": None},
             "position": {"x": 300, "y": 300}},
        ],
        "edges": [{"source": "1", "target": "2", "id": "reactflow__edge-1-2"}],
    })
    assert graph.get_node("2").type == "code"
    assert graph.get_node("2").data.source == "// write JS here"
    assert graph.get_node("3").data == ArithmeticData(operand_a=2, operand_b=5, operator="+")
    assert graph.get_node("4").type == "http"
    assert to_document(graph)["nodes"][2]["type"] == "arithmetic"
