"""One editing session of a graph tool.

Ties the engine, the edge dialog, the tool's codec and the persistence
client together and turns every collaborator or import failure into a
transient status message. Failures never leave a half-applied graph: save
failures keep the current graph, load failures fall back to an empty graph
in local mode, and clear always clears locally.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from .codec import write_export
from .config import Settings
from .errors import CollaboratorError, CollaboratorUnavailable, ImportFormatError
from .graph.edge_selection import EdgeEditor
from .graph.engine import GraphEngine, node_from_form
from .graph.model import Graph, Node
from .remote.graph_store import GraphStoreClient
from .tools import KNOWLEDGE_GRAPH, ToolProfile

logger = logging.getLogger(__name__)

Confirm = Callable[[], bool]

MSG_LOAD_UNAVAILABLE = "Database connection unavailable - working in local mode only"
MSG_LOAD_FAILED = "Working in local mode - changes won't be saved to database"
MSG_SAVE_UNAVAILABLE = "Database unavailable - working in local mode"
MSG_SAVED = "Saved successfully!"
MSG_CLEAR_UNAVAILABLE = "Database unavailable - cleared UI only"
MSG_CLEARED = "Graph cleared successfully!"
MSG_IMPORTED = "JSON imported successfully!"
MSG_IMPORT_CANCELLED = "Import cancelled"


@dataclass(frozen=True)
class StatusMessage:
    text: str
    expires_at: float
    is_error: bool = False


class StatusBoard:
    """Named transient messages (``load``, ``save``, ``clear``, ``import``)."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self._clock = clock
        self._messages: dict[str, StatusMessage] = {}

    def post(self, channel: str, text: str, ttl_s: float, *, is_error: bool = False) -> None:
        self._messages[channel] = StatusMessage(text, self._clock() + ttl_s, is_error)

    def dismiss(self, channel: str) -> None:
        self._messages.pop(channel, None)

    def get(self, channel: str) -> str | None:
        message = self.active().get(channel)
        return message.text if message else None

    def active(self) -> dict[str, StatusMessage]:
        now = self._clock()
        self._messages = {k: m for k, m in self._messages.items() if m.expires_at > now}
        return dict(self._messages)


class GraphSession:
    def __init__(
        self,
        profile: ToolProfile = KNOWLEDGE_GRAPH,
        *,
        store: GraphStoreClient | None = None,
        settings: Settings | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.profile = profile
        self.settings = settings or Settings()
        self.store = store
        self.engine = GraphEngine(require_explicit_ids=profile.require_explicit_ids)
        self.edges = EdgeEditor(self.engine)
        self.codec = profile.make_codec()
        self.status = StatusBoard(clock or time.monotonic)
        self.offline = not profile.persistent or store is None
        self.is_loading = False
        self.is_saving = False
        self.is_clearing = False
        self.is_importing = False

    @property
    def graph(self) -> Graph:
        return self.engine.graph

    def _ok(self, channel: str, text: str) -> None:
        self.status.post(channel, text, self.settings.status_short_s)

    def _fail(self, channel: str, text: str) -> None:
        self.status.post(channel, text, self.settings.status_long_s, is_error=True)

    def _go_local(self, message: str) -> None:
        self.engine.clear()
        self.offline = True
        self._fail("load", message)

    # Loading

    def load(self) -> bool:
        """Initial load from the persistence collaborator.

        Returns True when a remote graph was loaded; otherwise the session
        continues in local mode with an empty graph.
        """
        if not self.profile.persistent:
            self.engine.clear()
            return False
        if self.store is None:
            self._go_local(MSG_LOAD_FAILED)
            return False

        self.is_loading = True
        try:
            graph = self.store.load()
        except CollaboratorUnavailable:
            logger.warning("Database connection unavailable - working in local mode")
            self._go_local(MSG_LOAD_UNAVAILABLE)
            return False
        except CollaboratorError as e:
            logger.warning("Failed to load graph data: %s", e)
            self._go_local(MSG_LOAD_FAILED)
            return False
        finally:
            self.is_loading = False

        self.engine.replace(graph)
        self.offline = False
        logger.debug("loaded %d node(s), %d link(s)", len(graph.nodes), len(graph.links))
        return True

    def load_source(self, payload: dict[str, Any] | str) -> bool:
        """Load a graph handed to the tool (the viewer's knowledge-graph memory)."""
        codec = self.profile.make_source_codec()
        try:
            if isinstance(payload, str):
                graph = codec.loads(payload)
            else:
                graph = codec.import_graph(codec.check_payload(payload))
        except ImportFormatError as e:
            self.engine.clear()
            self._fail("load", f"Failed to load graph data: {e}")
            return False
        self.engine.replace(graph)
        return True

    # Persistence

    def save(self) -> bool:
        if self.is_saving:
            return False
        if not self.profile.persistent:
            self._ok("save", self.profile.local_save_message)
            return False

        self.is_saving = True
        try:
            if self.store is None:
                raise CollaboratorUnavailable()
            self.store.save(self.engine.graph)
        except CollaboratorUnavailable:
            logger.warning("Save skipped: database unavailable")
            self.offline = True
            self._fail("save", MSG_SAVE_UNAVAILABLE)
            return False
        except CollaboratorError as e:
            self._fail("save", f"Error: {e}")
            return False
        finally:
            self.is_saving = False

        self.offline = False
        self._ok("save", MSG_SAVED)
        return True

    def clear(self, confirm: Confirm | None = None) -> bool:
        """Clear the graph; the local graph is cleared even if the remote call fails."""
        if self.is_clearing or self.is_saving:
            return False
        if confirm is not None and not confirm():
            return False

        self.is_clearing = True
        self.status.dismiss("save")
        try:
            if not self.profile.persistent:
                self._ok("clear", self.profile.local_clear_message)
                return True
            try:
                if self.store is None:
                    raise CollaboratorUnavailable()
                self.store.clear()
            except CollaboratorUnavailable:
                logger.warning("Database unavailable, clearing UI only")
                self._ok("clear", MSG_CLEAR_UNAVAILABLE)
            except CollaboratorError as e:
                self._fail("clear", f"UI cleared. Server error: {e}")
            else:
                self._ok("clear", MSG_CLEARED)
            return True
        finally:
            self.engine.clear()
            self.edges.cancel()
            self.is_clearing = False

    # File import / export

    def _import(self, read: Callable[[], Graph], confirm: Confirm | None) -> bool:
        if self.is_importing:
            return False
        self.is_importing = True
        try:
            try:
                graph = read()
            except ImportFormatError as e:
                self._fail("import", f"Error: {e}")
                return False
            if not self.engine.graph.is_empty and confirm is not None and not confirm():
                self._ok("import", MSG_IMPORT_CANCELLED)
                return False
            self.engine.replace(graph)
            self.edges.cancel()
            self._ok("import", MSG_IMPORTED)
            return True
        finally:
            self.is_importing = False

    def import_file(self, path: Path | None, confirm: Confirm | None = None) -> bool:
        """Replace the graph with a file's contents.

        ``confirm`` is consulted only when the current graph is non-empty.
        """
        return self._import(lambda: self.codec.read_file(path), confirm)

    def import_text(self, text: str, confirm: Confirm | None = None) -> bool:
        return self._import(lambda: self.codec.loads(text), confirm)

    def export_data(self) -> dict[str, Any]:
        return self.codec.export_graph(self.engine.graph)

    def export_file(self, path: Path | None = None) -> Path:
        target = path or (self.settings.export_dir / self.profile.export_filename)
        return write_export(self.export_data(), target)

    # Node dialog and keyboard

    def submit_node(
        self,
        label: str,
        property_names: Iterable[str] | Mapping[str, Any] = (),
        *,
        node_id: str | None = None,
        editing: str | None = None,
        timestamp_ms: int | None = None,
    ) -> Node:
        """Add a node, or update the node ``editing``, from dialog input.

        ``property_names`` may be a name -> value mapping; the viewer also keeps
        the current values of listed names when editing.
        """
        existing = self.engine.graph.get_node(editing) if editing else None
        if editing and existing is None:
            raise KeyError(editing)
        node = node_from_form(
            label,
            property_names,
            node_id=None if existing is not None else node_id,
            existing=existing,
            require_explicit_id=self.profile.require_explicit_ids and existing is None,
            keep_values=self.profile.keep_attribute_values,
            timestamp_ms=timestamp_ms,
        )
        if existing is not None:
            self.engine.update_node(node)
        else:
            self.engine.add_node(node)
        return node

    def handle_key(self, key: str) -> bool:
        if key == "Delete":
            return self.engine.delete_selected()
        if key == "Escape":
            self.edges.cancel()
            self.engine.clear_selection()
            return True
        return False
