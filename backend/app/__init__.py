"""
HTTP layer for the flow engine.
"""
