"""
Flow routes: graph editing, execution, export/import.

Every mutation goes through the GraphModel so the attached persistence
adapter autosaves it.
"""
import io
import logging
import threading

from flask import Blueprint, request, send_file

from app.utils.request_validators import (
    RequestField,
    extract_json_fields,
    is_object,
    non_empty_string,
)
from app.utils.route_decorators import handle_route_errors, success_response
from config import EXPORT_FILENAME
from graph_engine.schema import parse_node_data

logger = logging.getLogger(__name__)


def init_routes(graph, persistence, runner):
    """Initialize routes with dependencies; each app gets its own blueprint."""
    bp = Blueprint('flow', __name__)
    run_lock = threading.Lock()

    @bp.route('/flow', methods=['GET'])
    @handle_route_errors("getting flow")
    def get_flow():
        return graph.serialize()

    @bp.route('/flow', methods=['PUT'])
    @handle_route_errors("replacing flow")
    def replace_flow():
        document = request.get_json(silent=True)
        graph.replace(persistence.from_document(document))
        logger.info("Replaced flow: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
        return graph.serialize()

    @bp.route('/flow/nodes', methods=['POST'])
    @handle_route_errors("adding node")
    def add_node():
        data = extract_json_fields(
            RequestField('type', required=True, validator=non_empty_string),
            RequestField('position', validator=is_object),
        )
        node = graph.create_node(data['type'], data['position'])
        return node.to_dict(), 201

    @bp.route('/flow/nodes/<node_id>', methods=['PATCH'])
    @handle_route_errors("updating node")
    def update_node(node_id):
        data = extract_json_fields(RequestField('data', required=True, validator=is_object))
        node = graph.get_node(node_id)
        merged = {**node.data.to_dict(), **data['data']}
        node = graph.update_node_data(node_id, parse_node_data(node.kind, merged, node_id))
        return node.to_dict()

    @bp.route('/flow/nodes/<node_id>', methods=['DELETE'])
    @handle_route_errors("deleting node")
    def delete_node(node_id):
        graph.remove_node(node_id)
        return success_response(message=f"Deleted node {node_id}")

    @bp.route('/flow/edges', methods=['POST'])
    @handle_route_errors("connecting nodes")
    def connect_nodes():
        data = _edge_fields()
        edge = graph.connect(data['source'], data['target'], data['id'])
        return edge.to_dict(), 201

    @bp.route('/flow/edges', methods=['DELETE'])
    @handle_route_errors("disconnecting nodes")
    def disconnect_nodes():
        data = _edge_fields()
        removed = graph.disconnect(data['source'], data['target'])
        return success_response(removed=removed)

    @bp.route('/flow/execute', methods=['POST'])
    @handle_route_errors("executing flow")
    def execute_flow():
        if not run_lock.acquire(blocking=False):
            raise ValueError("A flow run is already in progress")
        try:
            runner.run_sync(graph)
        finally:
            run_lock.release()
        return {
            "success": True,
            "flow": graph.serialize(),
            "report": runner.last_report.to_dict(),
        }

    @bp.route('/flow/cancel', methods=['POST'])
    @handle_route_errors("cancelling flow")
    def cancel_flow():
        runner.cancel()
        logger.info("Flow cancellation requested")
        return success_response(message="Flow cancellation requested")

    @bp.route('/flow/export', methods=['GET'])
    @handle_route_errors("exporting flow")
    def export_flow():
        return send_file(
            io.BytesIO(persistence.export_bytes(graph)),
            mimetype='application/json',
            as_attachment=True,
            download_name=EXPORT_FILENAME,
        )

    @bp.route('/flow/import', methods=['POST'])
    @handle_route_errors("importing flow")
    def import_flow():
        upload = request.files.get('file')
        raw = upload.read() if upload else request.get_data()
        if not raw:
            raise ValueError("No flow document provided")
        graph.replace(persistence.import_bytes(raw))
        logger.info("Imported flow: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
        return graph.serialize()

    return bp


def _edge_fields():
    return extract_json_fields(
        RequestField('source', required=True, validator=non_empty_string),
        RequestField('target', required=True, validator=non_empty_string),
        RequestField('id', validator=non_empty_string),
    )
