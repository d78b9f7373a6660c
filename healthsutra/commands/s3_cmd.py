"""S3 proxy commands - browse call media, messages, documents and knowledge graphs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable

from rich.console import Console
from rich.table import Table

from ..config import Settings
from ..errors import CollaboratorError
from ..remote.http import HttpConfig, JsonHttpClient
from ..remote.s3_proxy import ObjectRef, S3ProxyClient
from ..session import GraphSession
from ..tools import VIEWER
from .graph_cmd import _print_rich, _summarize, write_graph_file


def make_client(settings: Settings) -> S3ProxyClient:
    return S3ProxyClient(JsonHttpClient(HttpConfig(base_url=settings.api_url, timeout_s=settings.timeout_s)))


def _run(settings: Settings, call: Callable[[S3ProxyClient, Console], None]) -> int:
    console = Console(stderr=True)
    try:
        call(make_client(settings), Console())
    except CollaboratorError as e:
        console.print(str(e), style="red")
        return 1
    return 0


def _print_names(title: str, names: Iterable[str], console: Console) -> None:
    t = Table(title=title, show_header=True, header_style="bold")
    t.add_column(title, style="cyan")
    for name in names:
        t.add_row(name)
    console.print(t)


def _print_refs(title: str, refs: Iterable[ObjectRef], console: Console) -> None:
    t = Table(title=title, show_header=True, header_style="bold")
    t.add_column("Key", style="cyan")
    t.add_column("Date")
    for ref in refs:
        t.add_row(ref.key, ref.date or "")
    console.print(t)


def _print_objects(title: str, objects: list[dict[str, Any]], console: Console) -> None:
    _print_refs(title, [ObjectRef.from_payload(o) for o in objects], console)


def run_users(settings: Settings) -> int:
    return _run(settings, lambda c, out: _print_names("Users", c.users(), out))


def run_media(settings: Settings, user: str, *, receiver: str | None = None) -> int:
    def call(client: S3ProxyClient, out: Console) -> None:
        listing = client.outgoing_media(user, receiver) if receiver else client.incoming_media(user)
        _print_refs("Calls", listing.calls, out)
        _print_refs("Transcripts", listing.transcripts, out)

    return _run(settings, call)


def run_outgoing(settings: Settings, user: str) -> int:
    return _run(settings, lambda c, out: _print_names("Receivers", c.outgoing_receivers(user), out))


def run_recording(settings: Settings, key: str) -> int:
    return _run(settings, lambda c, out: print(c.recording_url(key)))


def run_transcript(settings: Settings, key: str) -> int:
    return _run(settings, lambda c, out: print(c.transcript(key)))


def run_messages(settings: Settings, user: str) -> int:
    return _run(settings, lambda c, out: _print_objects("Messages", c.user_messages(user), out))


def run_message(settings: Settings, key: str) -> int:
    return _run(settings, lambda c, out: print(c.message(key)))


def run_docs(settings: Settings, user: str) -> int:
    return _run(settings, lambda c, out: _print_objects("Documents", c.docs(user), out))


def run_doc(settings: Settings, key: str) -> int:
    return _run(settings, lambda c, out: print(c.doc_url(key)))


def run_kg_list(settings: Settings, user: str) -> int:
    return _run(settings, lambda c, out: _print_refs("Knowledge graphs", c.incoming_kg(user), out))


def run_kg_receivers(settings: Settings, user: str) -> int:
    return _run(settings, lambda c, out: _print_names("Receivers", c.kg_receivers(user), out))


def run_kg_outgoing(settings: Settings, prefix: str) -> int:
    return _run(settings, lambda c, out: _print_refs("Knowledge graphs", c.outgoing_kg(prefix), out))


def run_kg(settings: Settings, key: str) -> int:
    def call(client: S3ProxyClient, out: Console) -> None:
        obj = client.kg(key)
        print(obj.narrative if obj.narrative is not None else obj.memory)

    return _run(settings, call)


def run_view_kg(settings: Settings, key: str, *, out: Path | None = None, output_json: bool = False) -> int:
    """Load a knowledge-graph memory through the viewer and summarise it."""
    console = Console(stderr=True)
    if not key.endswith(".json"):
        console.print("Only .json knowledge-graph memories can be viewed", style="red")
        return 1
    try:
        obj = make_client(settings).kg(key)
    except CollaboratorError as e:
        console.print(str(e), style="red")
        return 1

    session = GraphSession(VIEWER, settings=settings)
    if not session.load_source(obj.memory or ""):
        console.print(session.status.get("load") or "Failed to load graph data", style="red")
        return 1

    if out:
        written = write_graph_file(session.graph, out)
        console.print(f"Wrote {written}", style="green")

    payload = _summarize(session.graph)
    if output_json:
        print(json.dumps(payload, indent=2, sort_keys=True))
    else:
        _print_rich(payload, title=key, console=Console())
    return 0
