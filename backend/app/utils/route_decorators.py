"""
Route decorators for standardized error handling and response formatting.

Handles:
- CycleDetected → 409 Conflict, with the implicated node ids
- ValueError (StructuralError, FormatError, bad input) → 400 Bad Request
- Exception → 500 Internal Server Error
"""

import logging
from functools import wraps

from flask import jsonify

from graph_engine.errors import CycleDetected

logger = logging.getLogger(__name__)


def handle_route_errors(route_description=None):
    """
    Decorator to standardize error handling across all routes.

    Args:
        route_description: Optional human-readable description for logging.
                          If not provided, defaults to the function name.

    Usage:
        @bp.route('/flow', methods=['GET'])
        @handle_route_errors("getting flow")
        def get_flow():
            return graph.serialize()
    """
    def decorator(f):
        desc = route_description or f.__name__

        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return _format_response(f(*args, **kwargs))
            except CycleDetected as e:
                logger.warning("%s - %s", desc, e)
                return jsonify({"error": str(e), "cycle": e.node_ids}), 409
            except ValueError as e:
                logger.warning("%s - ValueError: %s", desc, str(e))
                return jsonify({"error": str(e)}), 400
            except Exception as e:
                logger.exception("Error in %s: %s", desc, e)
                return jsonify({"error": str(e)}), 500

        return wrapper

    return decorator


def _format_response(result):
    """
    Format route handler response for Flask.

    Response objects pass through; dicts/lists (or the first element of a
    tuple) are wrapped in jsonify.
    """
    if hasattr(result, 'status_code'):
        return result

    if isinstance(result, tuple):
        data = result[0]
        rest = result[1:]
        if isinstance(data, (dict, list)):
            return (jsonify(data), *rest)
        return result

    if isinstance(result, (dict, list)):
        return jsonify(result)

    return result


def success_response(data=None, message=None, **kwargs):
    """Build a standardized success response dictionary."""
    response = {"success": True}

    if message:
        response["message"] = message

    if data is not None:
        response["data"] = data

    response.update(kwargs)
    return response
