"""Graph file commands - summarise, export, import and lay out ``{nodes, links}`` files."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from ..codec import get_codec, write_export
from ..errors import ImportFormatError
from ..graph.layout import annotate, group_parallel_links
from ..graph.model import Graph


def load_graph_file(path: Path, *, missing_ok: bool = False) -> Graph:
    """Read a graph in the persistence shape (``{"nodes": [...], "links": [...]}``)."""
    if missing_ok and not path.exists():
        return Graph()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ImportFormatError("Error reading file") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"Error parsing JSON file: {e}") from e
    if not isinstance(data, dict):
        raise ImportFormatError("Invalid format: expected an object with nodes and links")
    return Graph.from_dict(data)


def write_graph_file(graph: Graph, path: Path) -> Path:
    return write_export(graph.to_dict(include_render=True), path)


def _emit(data: dict[str, Any], out: Path | None, console: Console) -> None:
    if out:
        written = write_export(data, out)
        console.print(f"Wrote {written}", style="green")
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))


def _summarize(graph: Graph) -> dict[str, Any]:
    index = graph.node_index()
    dangling = [
        link.id
        for link in graph.links
        if link.source_id not in index or link.target_id not in index
    ]
    parallel = {k: v for k, v in group_parallel_links(graph.links).items() if len(v) > 1}
    return {
        "node_count": len(graph.nodes),
        "link_count": len(graph.links),
        "node_labels": dict(Counter(n.label for n in graph.nodes).most_common()),
        "link_labels": dict(Counter(link.label for link in graph.links).most_common()),
        "parallel_groups": parallel,
        "dangling_links": dangling,
    }


def _print_rich(payload: dict[str, Any], *, title: str, console: Console) -> None:
    console.print(f"[bold]{title}[/bold]")
    console.print(f"Nodes: {payload['node_count']}  Links: {payload['link_count']}")
    console.print()

    def render_histogram(name: str, counts: dict[str, int]) -> None:
        t = Table(title=name, show_header=True, header_style="bold")
        t.add_column("Label", style="cyan", no_wrap=True)
        t.add_column("Count", justify="right")
        for label, count in counts.items():
            t.add_row(label or "<none>", str(count))
        console.print(t)
        console.print()

    render_histogram("Node labels", payload["node_labels"])
    render_histogram("Link labels", payload["link_labels"])

    if payload["parallel_groups"]:
        t = Table(title="Parallel links", show_header=True, header_style="bold")
        t.add_column("Endpoints", style="cyan")
        t.add_column("Links", justify="right")
        for pair, link_ids in payload["parallel_groups"].items():
            t.add_row(pair, str(len(link_ids)))
        console.print(t)

    if payload["dangling_links"]:
        console.print(
            f"{len(payload['dangling_links'])} link(s) point at missing nodes",
            style="yellow",
        )


def run_summary(path: Path, *, output_json: bool = False) -> int:
    """Print counts, label histograms and parallel-link groups for a graph file."""
    console = Console(stderr=True)
    try:
        graph = load_graph_file(path)
    except ImportFormatError as e:
        console.print(str(e), style="red")
        return 1

    payload = _summarize(graph)
    if output_json:
        print(json.dumps(payload, indent=2, sort_keys=True))
    else:
        _print_rich(payload, title=f"Graph {path.name}", console=Console())
    return 0


def run_export(path: Path, *, codec: str = "entities", out: Path | None = None) -> int:
    """Convert a graph file to an interchange document."""
    console = Console(stderr=True)
    try:
        graph = load_graph_file(path)
    except ImportFormatError as e:
        console.print(str(e), style="red")
        return 1
    _emit(get_codec(codec).export_graph(graph), out, console)
    return 0


def run_import(
    path: Path,
    *,
    codec: str = "entities",
    out: Path,
    timestamp_ms: int | None = None,
) -> int:
    """Read an interchange document and write it as a graph file."""
    console = Console(stderr=True)
    try:
        graph = get_codec(codec).read_file(path, timestamp_ms=timestamp_ms)
    except ImportFormatError as e:
        console.print(str(e), style="red")
        return 1
    written = write_graph_file(graph, out)
    console.print(
        f"Imported {len(graph.nodes)} node(s), {len(graph.links)} link(s) into {written}",
        style="green",
    )
    return 0


def run_layout(path: Path, *, out: Path | None = None) -> int:
    """Write the renderer payload (node colours, link curvatures)."""
    console = Console(stderr=True)
    try:
        graph = load_graph_file(path)
    except ImportFormatError as e:
        console.print(str(e), style="red")
        return 1
    _emit(annotate(graph), out, console)
    return 0
