import io
import json

import pytest

from conftest import FakeSession
from database import FlowStore
from flow_runner import FlowRunner
from persistence import PersistenceAdapter
from server import create_app


@pytest.fixture
def client(persistence):
    app = create_app(persistence=persistence, runner=FlowRunner(http_session=FakeSession()))
    app.config['TESTING'] = True
    return app.test_client()


def add(client, node_type, **data):
    node = client.post('/flow/nodes', json={'type': node_type, 'position': {'x': 1, 'y': 1}}).get_json()
    if data:
        node = client.patch(f"/flow/nodes/{node['id']}", json={'data': data}).get_json()
    return node


def test_fresh_session_starts_with_default_node(client):
    document = client.get('/flow').get_json()
    assert document['nodes'][0]['data'] == {'label': 'Start Node'}
    assert document['edges'] == []


def test_health(client):
    assert client.get('/health').get_json()['status'] == 'ok'


def test_apps_in_one_process_keep_separate_graphs(tmp_path):
    clients = []
    for name in ('first', 'second'):
        persistence = PersistenceAdapter(store=FlowStore(tmp_path / f'{name}.duckdb'))
        app = create_app(persistence=persistence, runner=FlowRunner(http_session=FakeSession()))
        app.config['TESTING'] = True
        clients.append(app.test_client())
    first, second = clients

    add(first, 'code')

    assert len(first.get('/flow').get_json()['nodes']) == 2
    assert len(second.get('/flow').get_json()['nodes']) == 1


def test_edit_and_execute_flow(client, persistence):
    node = add(client, 'arithmetic', operandA=6, operandB=3, operator='*')
    assert client.post('/flow/edges', json={'source': '1', 'target': node['id']}).status_code == 201

    response = client.post('/flow/execute')
    assert response.status_code == 200
    body = response.get_json()
    executed = {n['id']: n for n in body['flow']['nodes']}
    assert executed[node['id']]['data']['result'] == 18
    assert body['report']['order'] == ['1', node['id']]

    assert persistence.restore().get_node(node['id']).data.result == 18


def test_execute_cycle_returns_conflict(client):
    a = add(client, 'code')
    client.post('/flow/edges', json={'source': '1', 'target': a['id']})
    client.post('/flow/edges', json={'source': a['id'], 'target': '1'})

    response = client.post('/flow/execute')
    assert response.status_code == 409
    assert set(response.get_json()['cycle']) == {'1', a['id']}


def test_connect_unknown_node_is_bad_request(client):
    response = client.post('/flow/edges', json={'source': '1', 'target': '99'})
    assert response.status_code == 400
    assert '99' in response.get_json()['error']


def test_update_with_bad_type_is_bad_request(client):
    node = add(client, 'arithmetic')
    response = client.patch(f"/flow/nodes/{node['id']}", json={'data': {'operandA': 'four'}})
    assert response.status_code == 400


def test_delete_node_cascades(client):
    node = add(client, 'http')
    client.post('/flow/edges', json={'source': '1', 'target': node['id']})
    assert client.delete(f"/flow/nodes/{node['id']}").status_code == 200
    assert client.get('/flow').get_json()['edges'] == []


def test_disconnect(client):
    node = add(client, 'code')
    client.post('/flow/edges', json={'source': '1', 'target': node['id']})
    response = client.delete('/flow/edges', json={'source': '1', 'target': node['id']})
    assert response.get_json()['removed'] == 1


def test_export_downloads_flow_json(client):
    response = client.get('/flow/export')
    assert response.status_code == 200
    assert 'flow.json' in response.headers['Content-Disposition']
    assert json.loads(response.data)['nodes'][0]['id'] == '1'


def test_import_upload_replaces_graph(client, sample_graph):
    payload = json.dumps(sample_graph.serialize()).encode()
    response = client.post(
        '/flow/import',
        data={'file': (io.BytesIO(payload), 'flow.json')},
        content_type='multipart/form-data',
    )
    assert response.status_code == 200
    assert [n['id'] for n in client.get('/flow').get_json()['nodes']] == ['1', '2', '3', '4']


def test_import_without_edges_is_rejected(client):
    response = client.put('/flow', json={'nodes': []})
    assert response.status_code == 400
    assert "missing 'edges'" in response.get_json()['error']
    assert len(client.get('/flow').get_json()['nodes']) == 1


def test_cancel_endpoint(client):
    assert client.post('/flow/cancel').get_json()['success'] is True
