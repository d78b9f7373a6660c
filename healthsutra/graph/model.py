"""Node/link value types and identity rules for the in-memory graph.

Nodes and links carry a semantic part (id, label, attributes) and a render
part owned by the force-graph renderer (positions, velocities, colour and
control-point caches). The render part is kept so that a graph can make a
round trip through the renderer, but it never shows up as an attribute.

A link endpoint is a ``NodeRef``: either a node id or the node itself, since
the renderer rewrites endpoints from ids to node objects after layout.
Always read endpoints through ``ref_id``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Union


INTERNAL_NODE_FIELDS = frozenset(
    {"id", "label", "x", "y", "vx", "vy", "index", "fx", "fy", "__indexColor"}
)
INTERNAL_LINK_FIELDS = frozenset(
    {"id", "label", "source", "target", "index", "__controlPoints", "__indexColor"}
)

# Fields the renderer writes onto node/link objects.
NODE_RENDER_FIELDS = INTERNAL_NODE_FIELDS - {"id", "label"}
LINK_RENDER_FIELDS = INTERNAL_LINK_FIELDS - {"id", "label", "source", "target"}


@dataclass
class Node:
    id: str
    label: str
    attributes: dict[str, Any] = field(default_factory=dict)
    render: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        """Build a node from the flat renderer/persistence shape."""
        attributes: dict[str, Any] = {}
        render: dict[str, Any] = {}
        for key, value in data.items():
            if key in ("id", "label"):
                continue
            if key in NODE_RENDER_FIELDS:
                render[key] = value
            else:
                attributes[key] = value
        return cls(
            id=str(data.get("id") or ""),
            label=str(data.get("label") or ""),
            attributes=attributes,
            render=render,
        )

    def semantic_attributes(self) -> dict[str, Any]:
        return {k: v for k, v in self.attributes.items() if k not in INTERNAL_NODE_FIELDS}

    def to_dict(self, *, include_render: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "label": self.label}
        data.update(self.semantic_attributes())
        if include_render:
            data.update(self.render)
        return data


NodeRef = Union[str, Node]


def ref_id(ref: NodeRef | None) -> str | None:
    """Normalise a link endpoint to a node id."""
    if isinstance(ref, Node):
        return ref.id
    return ref


def resolve(ref: NodeRef | None, index: dict[str, Node]) -> Node | None:
    """Return the node an endpoint points at, or None if it is dangling."""
    node_id = ref_id(ref)
    if node_id is None:
        return None
    return index.get(node_id)


def _endpoint_from_raw(value: Any) -> NodeRef | None:
    if isinstance(value, Node):
        return value
    if isinstance(value, dict):
        return Node.from_dict(value)
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class Link:
    id: str
    source: NodeRef | None
    target: NodeRef | None
    label: str
    attributes: dict[str, Any] = field(default_factory=dict)
    render: dict[str, Any] = field(default_factory=dict)

    @property
    def source_id(self) -> str | None:
        return ref_id(self.source)

    @property
    def target_id(self) -> str | None:
        return ref_id(self.target)

    def touches(self, node_id: str) -> bool:
        return self.source_id == node_id or self.target_id == node_id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Link":
        """Build a link from the flat shape; endpoints may be ids or node mappings."""
        attributes: dict[str, Any] = {}
        render: dict[str, Any] = {}
        for key, value in data.items():
            if key in ("id", "label", "source", "target"):
                continue
            if key in LINK_RENDER_FIELDS:
                render[key] = value
            else:
                attributes[key] = value
        return cls(
            id=str(data.get("id") or ""),
            source=_endpoint_from_raw(data.get("source")),
            target=_endpoint_from_raw(data.get("target")),
            label=str(data.get("label") or ""),
            attributes=attributes,
            render=render,
        )

    def semantic_attributes(self) -> dict[str, Any]:
        return {k: v for k, v in self.attributes.items() if k not in INTERNAL_LINK_FIELDS}

    def to_dict(self, *, include_render: bool = True) -> dict[str, Any]:
        """Flat shape with endpoints normalised to bare ids."""
        data: dict[str, Any] = {
            "id": self.id,
            "source": self.source_id,
            "target": self.target_id,
            "label": self.label,
        }
        data.update(self.semantic_attributes())
        if include_render:
            data.update(self.render)
        return data


@dataclass(frozen=True)
class Graph:
    """Immutable snapshot of the graph; mutations produce a new snapshot."""

    nodes: tuple[Node, ...] = ()
    links: tuple[Link, ...] = ()

    @classmethod
    def of(cls, nodes: Iterable[Node] = (), links: Iterable[Link] = ()) -> "Graph":
        return cls(nodes=tuple(nodes), links=tuple(links))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Graph":
        nodes = [Node.from_dict(n) for n in data.get("nodes") or [] if isinstance(n, dict)]
        links = [Link.from_dict(item) for item in data.get("links") or [] if isinstance(item, dict)]
        return cls.of(nodes, links)

    def to_dict(self, *, include_render: bool = False) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict(include_render=include_render) for n in self.nodes],
            "links": [link.to_dict(include_render=include_render) for link in self.links],
        }

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.links

    def node_index(self) -> dict[str, Node]:
        # Later entries win, matching last-write-wins on duplicate ids.
        return {n.id: n for n in self.nodes}

    def get_node(self, node_id: str) -> Node | None:
        return self.node_index().get(node_id)

    def get_link(self, link_id: str) -> Link | None:
        for link in self.links:
            if link.id == link_id:
                return link
        return None

    def incident_links(self, node_id: str) -> list[Link]:
        return [link for link in self.links if link.touches(node_id)]


def now_ms() -> int:
    return int(time.time() * 1000)


def new_node_id(*, timestamp_ms: int | None = None) -> str:
    return f"node_{now_ms() if timestamp_ms is None else timestamp_ms}"


def new_edge_id(*, timestamp_ms: int | None = None) -> str:
    return f"edge_{now_ms() if timestamp_ms is None else timestamp_ms}"
