import os
import tempfile

# Keep config's data dir out of the source tree during tests
os.environ.setdefault("FLOWRUNNER_DATA_DIR", tempfile.mkdtemp(prefix="flowrunner-test-"))

import pytest  # noqa: E402

from database import FlowStore  # noqa: E402
from graph_engine.graph_model import GraphModel  # noqa: E402
from graph_engine.schema import (  # noqa: E402
    ArithmeticData,
    CodeData,
    Edge,
    GenericData,
    HttpData,
    Node,
)
from persistence import PersistenceAdapter  # noqa: E402


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeSession:
    """Stands in for requests.Session; records calls and replays canned bodies."""

    def __init__(self, bodies=None, error=None):
        self.bodies = bodies or {}
        self.error = error
        self.calls = []

    def request(self, method, url, timeout=None):
        self.calls.append((method, url, timeout))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.bodies.get(url, ""))


def arithmetic(node_id, a, b, op, result=None):
    return Node(id=node_id, type="arithmetic",
                data=ArithmeticData(operand_a=a, operand_b=b, operator=op, result=result),
                position={"x": 0, "y": 0})


def code(node_id, source):
    return Node(id=node_id, type="code", data=CodeData(source=source), position={"x": 10, "y": 20})


def http(node_id, url, method="GET"):
    return Node(id=node_id, type="http", data=HttpData(url=url, method=method))


def generic(node_id, label="Start Node"):
    return Node(id=node_id, type="default", data=GenericData(payload={"label": label}),
                position={"x": 250, "y": 5})


def chain(*node_ids):
    return [Edge(source=a, target=b) for a, b in zip(node_ids, node_ids[1:])]


@pytest.fixture
def fake_session():
    return FakeSession(bodies={"http://example.test/data": "hello"})


@pytest.fixture
def store(tmp_path):
    return FlowStore(tmp_path / "flows.duckdb")


@pytest.fixture
def persistence(store):
    return PersistenceAdapter(store=store)


@pytest.fixture
def sample_graph():
    return GraphModel(
        [generic("1"), arithmetic("2", 6, 3, "*"), code("3", "print('done')"),
         http("4", "http://example.test/data")],
        chain("1", "2", "3") + [Edge(source="1", target="4", id="e1-4")],
    )
