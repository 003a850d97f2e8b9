"""
Persistence Adapter - flow documents on disk, in downloads and in autosave.

The adapter is created once at startup and injected into the routes and the
CLI. ``restore`` reads the autosave slot once; ``attach`` writes the graph
back to the slot after every mutation.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from config import AUTOSAVE_KEY, EXPORT_FILENAME
from database import FlowStore
from graph_engine.document import from_document, to_document
from graph_engine.errors import FormatError
from graph_engine.graph_model import GraphModel
from graph_engine.schema import GenericData, Node

logger = logging.getLogger(__name__)


def default_graph() -> GraphModel:
    """The single start node shown on a fresh canvas."""
    return GraphModel([
        Node(
            id='1',
            type='default',
            data=GenericData(payload={'label': 'Start Node'}),
            position={'x': 250, 'y': 5},
        )
    ])


class PersistenceAdapter:

    def __init__(self, store: Optional[FlowStore] = None, key: str = AUTOSAVE_KEY):
        self.store = store if store is not None else FlowStore()
        self.key = key

    # ------------------------------------------------------------------
    # Document conversion
    # ------------------------------------------------------------------

    @staticmethod
    def to_document(graph: GraphModel) -> Dict[str, Any]:
        return to_document(graph)

    @staticmethod
    def from_document(document: Any) -> GraphModel:
        return from_document(document)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_bytes(self, graph: GraphModel) -> bytes:
        return json.dumps(self.to_document(graph), indent=2, ensure_ascii=False).encode('utf-8')

    def export_file(self, graph: GraphModel, directory: Union[str, Path]) -> Path:
        """Write ``flow.json`` into ``directory`` and return its path."""
        path = Path(directory) / EXPORT_FILENAME
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.export_bytes(graph))
        logger.info("Exported flow with %d nodes to %s", len(graph), path)
        return path

    @staticmethod
    def import_bytes(raw: Union[bytes, str]) -> GraphModel:
        try:
            document = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FormatError(f"Flow document is not valid JSON: {e}") from e
        return from_document(document)

    @staticmethod
    def import_file(path: Union[str, Path]) -> GraphModel:
        """Needs no store, so the CLI can call it on the class."""
        return PersistenceAdapter.import_bytes(Path(path).read_bytes())

    # ------------------------------------------------------------------
    # Autosave
    # ------------------------------------------------------------------

    def autosave(self, graph: GraphModel) -> None:
        self.store.save(self.key, self.to_document(graph))

    def attach(self, graph: GraphModel) -> GraphModel:
        """Write-through autosave for every later mutation of ``graph``."""
        graph.subscribe(self.autosave)
        return graph

    def detach(self, graph: GraphModel) -> None:
        graph.unsubscribe(self.autosave)

    def restore(self) -> Optional[GraphModel]:
        """
        Read the autosave slot.

        Returns None when nothing was saved yet. A corrupt slot raises
        FormatError rather than falling back to an empty graph.
        """
        raw = self.store.load_raw(self.key)
        if raw is None:
            return None
        graph = self.import_bytes(raw)
        logger.info("Restored autosaved flow with %d nodes", len(graph))
        return graph

    def load_or_default(self) -> GraphModel:
        graph = self.restore()
        if graph is None:
            graph = default_graph()
            self.autosave(graph)
        return self.attach(graph)
