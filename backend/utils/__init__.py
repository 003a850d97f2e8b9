"""
Shared helpers: logging setup and async I/O.
"""
