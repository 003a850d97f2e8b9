"""
Database package for durable flow storage.

Usage:
    from database import FlowStore

    store = FlowStore()
    store.save("flow", document)
    raw = store.load_raw("flow")
"""

from .flow_store import FlowStore

__all__ = ['FlowStore']
