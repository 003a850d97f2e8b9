import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from app.middleware import register_error_handlers
from app.routes import register_blueprints
from config import CONCURRENT_EXECUTION, MAX_FILE_SIZE, SERVER_PORT
from flow_runner import FlowRunner
from persistence import PersistenceAdapter
from utils.async_helpers import shutdown_thread_pools
from utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def create_app(persistence: Optional[PersistenceAdapter] = None,
               runner: Optional[FlowRunner] = None) -> Flask:
    """
    Build the Flask app around one graph.

    The autosave slot is read once here; every later mutation is written
    back through the adapter.
    """
    persistence = persistence or PersistenceAdapter()
    runner = runner or FlowRunner(concurrent=CONCURRENT_EXECUTION)
    graph = persistence.load_or_default()

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = MAX_FILE_SIZE
    CORS(app)

    register_error_handlers(app)
    register_blueprints(app, graph, persistence, runner)

    @app.route('/health')
    def health():
        return {"status": "ok", "nodes": len(graph.nodes), "edges": len(graph.edges)}

    app.extensions['flow_graph'] = graph
    logger.info("Flow server ready with %d nodes", len(graph.nodes))
    return app


def main():
    setup_logging()
    try:
        create_app().run(host='0.0.0.0', port=SERVER_PORT)
    finally:
        shutdown_thread_pools()


if __name__ == '__main__':
    main()
