"""Edit commands - apply one dialog action to a graph file.

Each command loads the file into a session of the chosen tool, applies the
action with the same validation the dialogs use, and writes the file back
only when the graph changed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

from rich.console import Console

from ..errors import GraphValidationError, ImportFormatError
from ..graph.edge_selection import Slot
from ..session import GraphSession
from ..tools import get_profile
from .graph_cmd import load_graph_file, write_graph_file


def _edit(
    path: Path,
    action: Callable[[GraphSession, Console], bool],
    *,
    tool: str,
    missing_ok: bool = False,
) -> int:
    console = Console(stderr=True)
    try:
        graph = load_graph_file(path, missing_ok=missing_ok)
    except ImportFormatError as e:
        console.print(str(e), style="red")
        return 1

    session = GraphSession(get_profile(tool))
    session.engine.replace(graph)
    try:
        changed = action(session, console)
    except GraphValidationError as e:
        console.print(str(e), style="red")
        return 1
    if not changed:
        return 1

    write_graph_file(session.graph, path)
    return 0


def run_add_node(
    path: Path,
    *,
    label: str,
    properties: Iterable[str] = (),
    node_id: str | None = None,
    tool: str = "knowledge-graph",
    timestamp_ms: int | None = None,
) -> int:
    def action(session: GraphSession, console: Console) -> bool:
        node = session.submit_node(label, properties, node_id=node_id, timestamp_ms=timestamp_ms)
        console.print(f"Added node {node.id} ({node.label})", style="green")
        return True

    return _edit(path, action, tool=tool, missing_ok=True)


def run_update_node(
    path: Path,
    node_id: str,
    *,
    label: str,
    properties: Iterable[str] = (),
    tool: str = "knowledge-graph",
) -> int:
    def action(session: GraphSession, console: Console) -> bool:
        if session.graph.get_node(node_id) is None:
            console.print(f"Unknown node: {node_id}", style="red")
            return False
        session.submit_node(label, properties, editing=node_id)
        console.print(f"Updated node {node_id}", style="green")
        return True

    return _edit(path, action, tool=tool)


def run_delete_node(path: Path, node_id: str, *, tool: str = "knowledge-graph") -> int:
    def action(session: GraphSession, console: Console) -> bool:
        before = len(session.graph.links)
        if not session.engine.delete_node(node_id):
            console.print(f"Unknown node: {node_id}", style="red")
            return False
        removed = before - len(session.graph.links)
        console.print(f"Deleted node {node_id} and {removed} link(s)", style="green")
        return True

    return _edit(path, action, tool=tool)


def run_add_link(
    path: Path,
    *,
    source: str | None,
    target: str | None,
    label: str,
    properties: Iterable[str] = (),
    tool: str = "knowledge-graph",
    timestamp_ms: int | None = None,
) -> int:
    def action(session: GraphSession, console: Console) -> bool:
        for node_id in (source, target):
            if node_id and session.graph.get_node(node_id) is None:
                console.print(f"Unknown node: {node_id}", style="red")
                return False
        editor = session.edges
        editor.open_create()
        if source:
            editor.start_selecting(Slot.SOURCE)
            editor.handle_node_click(source)
        if target:
            editor.start_selecting(Slot.TARGET)
            editor.handle_node_click(target)
        link = editor.commit(label, properties, timestamp_ms=timestamp_ms)
        console.print(f"Added link {link.id}: {link.source_id} -[{link.label}]-> {link.target_id}", style="green")
        return True

    return _edit(path, action, tool=tool)


def run_update_link(
    path: Path,
    link_id: str,
    *,
    label: str,
    properties: Iterable[str] = (),
    tool: str = "knowledge-graph",
) -> int:
    def action(session: GraphSession, console: Console) -> bool:
        link = session.graph.get_link(link_id)
        if link is None:
            console.print(f"Unknown link: {link_id}", style="red")
            return False
        session.edges.open_edit(link)
        session.edges.commit(label, properties)
        console.print(f"Updated link {link_id}", style="green")
        return True

    return _edit(path, action, tool=tool)


def run_delete_link(path: Path, link_id: str, *, tool: str = "knowledge-graph") -> int:
    def action(session: GraphSession, console: Console) -> bool:
        if not session.engine.delete_link(link_id):
            console.print(f"Unknown link: {link_id}", style="red")
            return False
        console.print(f"Deleted link {link_id}", style="green")
        return True

    return _edit(path, action, tool=tool)


def run_clear(path: Path, *, tool: str = "knowledge-graph") -> int:
    def action(session: GraphSession, console: Console) -> bool:
        session.engine.clear()
        console.print(f"Cleared {path}", style="green")
        return True

    return _edit(path, action, tool=tool)
