"""
Route blueprints registration.
"""
from . import flow


def register_blueprints(app, graph, persistence, runner):
    """Register all route blueprints with the Flask app."""
    flow_bp = flow.init_routes(graph, persistence, runner)
    app.register_blueprint(flow_bp)
