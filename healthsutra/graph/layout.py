"""Render hints derived from the graph: parallel-edge curvature and node colours.

Everything here is a pure function of the current snapshot and is recomputed
wholesale whenever links change.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable

from .model import Graph, Link

MAX_CURVATURE = 0.6
PAIR_SEPARATOR = "<=>"

NODE_PALETTE = (
    "#4e79a7",
    "#f28e2c",
    "#e15759",
    "#76b7b2",
    "#59a14f",
    "#edc949",
    "#af7aa1",
    "#ff9da7",
    "#9c755f",
    "#bab0ab",
)


def pair_key(source_id: str | None, target_id: str | None) -> str:
    """Direction-independent key for the endpoint pair of a link."""
    a, b = sorted([source_id or "", target_id or ""])
    return f"{a}{PAIR_SEPARATOR}{b}"


def group_parallel_links(links: Iterable[Link]) -> dict[str, list[str]]:
    """Group link ids by unordered endpoint pair, keeping insertion order."""
    groups: dict[str, list[str]] = defaultdict(list)
    for link in links:
        groups[pair_key(link.source_id, link.target_id)].append(link.id)
    return dict(groups)


def compute_curvatures(links: Iterable[Link]) -> dict[str, float]:
    """Map link id -> curvature for links that share their endpoints with others.

    Links alone in their group are omitted (curvature 0). A group of ``n``
    links is spread evenly over [-MAX_CURVATURE, MAX_CURVATURE], centred on 0.
    """
    curvatures: dict[str, float] = {}
    for link_ids in group_parallel_links(links).values():
        n = len(link_ids)
        if n <= 1:
            continue
        step = MAX_CURVATURE / max(1, n - 1)
        for i, link_id in enumerate(link_ids):
            curvatures[link_id] = (i - (n - 1) / 2) * step
    return curvatures


def curvature_of(link_id: str, curvatures: dict[str, float]) -> float:
    return curvatures.get(link_id, 0.0)


def _string_hash(value: str) -> int:
    # 32-bit signed rolling hash over UTF-16 code units (h * 31 + c).
    h = 0
    units = value.encode("utf-16-le")
    for i in range(0, len(units), 2):
        h = (h << 5) - h + int.from_bytes(units[i : i + 2], "little")
        h &= 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def node_color(node_id: str) -> str:
    """Deterministic palette colour for a node id."""
    return NODE_PALETTE[abs(_string_hash(node_id)) % len(NODE_PALETTE)]


def annotate(graph: Graph) -> dict[str, Any]:
    """Renderer payload: nodes with colours, links with curvature and id endpoints."""
    curvatures = compute_curvatures(graph.links)
    nodes = []
    for node in graph.nodes:
        data = node.to_dict(include_render=False)
        data["color"] = node_color(node.id)
        nodes.append(data)
    links = []
    for link in graph.links:
        data = link.to_dict(include_render=False)
        data["curvature"] = curvature_of(link.id, curvatures)
        links.append(data)
    return {"nodes": nodes, "links": links}
