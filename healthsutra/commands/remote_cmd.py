"""Remote commands - talk to the graph persistence endpoints.

ping and clear report an unavailable database (HTTP 503) as local mode;
pull and push fail, since nothing was transferred.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..codec import write_export
from ..config import Settings
from ..errors import CollaboratorError, CollaboratorUnavailable, ImportFormatError
from ..remote.graph_store import GraphStoreClient
from ..remote.http import HttpConfig, JsonHttpClient
from ..session import GraphSession
from ..tools import KNOWLEDGE_GRAPH
from .graph_cmd import load_graph_file


def make_store(settings: Settings) -> GraphStoreClient:
    return GraphStoreClient(JsonHttpClient(HttpConfig(base_url=settings.api_url, timeout_s=settings.timeout_s)))


def _print_status(session: GraphSession, channel: str, console: Console) -> None:
    message = session.status.active().get(channel)
    if message is None or not message.text:
        return
    console.print(message.text, style="yellow" if message.is_error else "green")


def run_ping(settings: Settings) -> int:
    """Non-destructive check of the persistence endpoint."""
    console = Console(stderr=True)
    try:
        graph = make_store(settings).load()
    except CollaboratorUnavailable:
        console.print(f"{settings.api_url}: database unavailable (local mode)", style="yellow")
        return 0
    except CollaboratorError as e:
        console.print(f"{settings.api_url}: {e}", style="red")
        return 1
    console.print(
        f"{settings.api_url}: reachable ({len(graph.nodes)} node(s), {len(graph.links)} link(s))",
        style="green",
    )
    return 0


def run_pull(settings: Settings, *, out: Path) -> int:
    """Download the stored graph into a graph file."""
    console = Console(stderr=True)
    session = GraphSession(KNOWLEDGE_GRAPH, store=make_store(settings), settings=settings)
    if not session.load():
        _print_status(session, "load", console)
        return 1
    written = write_export(session.graph.to_dict(include_render=True), out)
    console.print(
        f"Pulled {len(session.graph.nodes)} node(s), {len(session.graph.links)} link(s) into {written}",
        style="green",
    )
    return 0


def run_push(settings: Settings, path: Path) -> int:
    """Upload a graph file, replacing the stored graph. An unavailable database fails the push."""
    console = Console(stderr=True)
    try:
        graph = load_graph_file(path)
    except ImportFormatError as e:
        console.print(str(e), style="red")
        return 1

    session = GraphSession(KNOWLEDGE_GRAPH, store=make_store(settings), settings=settings)
    session.engine.replace(graph)
    saved = session.save()
    _print_status(session, "save", console)
    if not saved:
        console.print("Nothing was pushed", style="red")
        return 1
    return 0


def run_clear(settings: Settings) -> int:
    """Clear the stored graph."""
    console = Console(stderr=True)
    session = GraphSession(KNOWLEDGE_GRAPH, store=make_store(settings), settings=settings)
    session.clear()
    message = session.status.active().get("clear")
    _print_status(session, "clear", console)
    return 1 if message is not None and message.is_error else 0
