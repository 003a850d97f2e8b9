import pytest

from conftest import arithmetic, chain, code, generic
from graph_engine.errors import StructuralError
from graph_engine.graph_model import GraphModel
from graph_engine.schema import ArithmeticData, CodeData, Edge, NodeType


def test_validate_accepts_well_formed_graph(sample_graph):
    sample_graph.validate()


def test_validate_rejects_dangling_edge():
    graph = GraphModel([generic("1")], [Edge(source="1", target="missing")])
    with pytest.raises(StructuralError, match="missing"):
        graph.validate()


def test_validate_rejects_duplicate_ids():
    graph = GraphModel([generic("1"), code("1", "x = 1")])
    with pytest.raises(StructuralError, match="duplicate node ids: 1"):
        graph.validate()


def test_connect_rejects_unknown_endpoint():
    graph = GraphModel([generic("1")])
    with pytest.raises(StructuralError):
        graph.connect("1", "2")
    assert graph.edges == []


def test_remove_node_cascades_to_incident_edges():
    graph = GraphModel([generic("1"), generic("2"), generic("3")], chain("1", "2", "3"))
    graph.remove_node("2")
    assert graph.node_ids() == ["1", "3"]
    assert graph.edges == []


def test_create_node_allocates_next_free_id():
    graph = GraphModel([generic("1"), generic("5")])
    node = graph.create_node("arithmetic", {"x": 200, "y": 200})
    assert node.id == "6"
    assert node.kind is NodeType.ARITHMETIC
    assert node.data == ArithmeticData(operand_a=0, operand_b=0, operator="+")


def test_create_node_after_delete_does_not_reuse_live_id():
    graph = GraphModel([generic("1"), generic("2")])
    graph.remove_node("1")
    assert graph.create_node("code").id == "3"


def test_unknown_type_is_generic_kind():
    graph = GraphModel()
    node = graph.create_node("input")
    assert node.type == "input"
    assert node.kind is NodeType.DEFAULT


def test_mutations_notify_listeners():
    graph = GraphModel([generic("1")])
    seen = []
    graph.subscribe(lambda g: seen.append(len(g.edges)))

    graph.add_node(code("2", "x = 1"))
    graph.connect("1", "2")
    graph.update_node_data("2", CodeData(source="y = 2"))
    graph.disconnect("1", "2")
    graph.remove_node("2")

    assert seen == [0, 1, 1, 0, 0]


def test_record_result_can_skip_notification():
    graph = GraphModel([arithmetic("1", 1, 2, "+")])
    seen = []
    graph.subscribe(seen.append)
    graph.record_result("1", ArithmeticData(1, 2, "+", result=3), notify=False)
    assert seen == []
    assert graph.get_node("1").data.result == 3


def test_disconnect_missing_edge_is_silent():
    graph = GraphModel([generic("1"), generic("2")])
    seen = []
    graph.subscribe(seen.append)
    assert graph.disconnect("1", "2") == 0
    assert seen == []


def test_replace_validates_before_swapping():
    graph = GraphModel([generic("1")])
    broken = GraphModel([generic("2")], [Edge(source="2", target="9")])
    with pytest.raises(StructuralError):
        graph.replace(broken)
    assert graph.node_ids() == ["1"]
