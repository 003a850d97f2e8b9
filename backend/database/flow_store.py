"""
Flow Store - durable keyed storage for autosaved flow documents.

One row per key; the autosave slot is overwritten on every graph mutation and
keeps no history.
"""

import duckdb
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Union

from config import DATABASE_PATH

logger = logging.getLogger(__name__)


class FlowStore:
    """Stores flow documents in DuckDB, keyed by name."""

    def __init__(self, db_path: Union[str, Path, None] = None):
        self.db_path = Path(db_path or DATABASE_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()
        logger.info("Flow store initialized with database: %s", self.db_path)

    def _init_database(self) -> None:
        """Create flow_documents table if not exists."""
        conn = self._get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS flow_documents (
                    key TEXT PRIMARY KEY,
                    document_json TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        finally:
            conn.close()

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """
        Get new database connection.

        DuckDB handles concurrency internally, each connection
        should be used from a single thread.
        """
        return duckdb.connect(str(self.db_path), read_only=False)

    def save(self, key: str, document: Dict[str, Any]) -> None:
        """
        Overwrite the document stored under ``key``.

        Args:
            key: Slot name
            document: JSON-serializable flow document
        """
        payload = json.dumps(document, ensure_ascii=False)
        conn = self._get_connection()
        try:
            conn.execute("""
                INSERT OR REPLACE INTO flow_documents (key, document_json, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            """, (key, payload))
            logger.debug("Saved flow document %s (%d bytes)", key, len(payload))
        finally:
            conn.close()

    def load_raw(self, key: str) -> Optional[str]:
        """
        Get the stored JSON text for ``key``.

        Returns:
            The JSON text, or None when the slot is empty
        """
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT document_json FROM flow_documents WHERE key = ?", (key,)
            ).fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def delete(self, key: str) -> bool:
        conn = self._get_connection()
        try:
            existed = conn.execute(
                "SELECT COUNT(*) FROM flow_documents WHERE key = ?", (key,)
            ).fetchone()[0] > 0
            conn.execute("DELETE FROM flow_documents WHERE key = ?", (key,))
            return existed
        finally:
            conn.close()
