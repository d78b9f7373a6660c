"""Graph mutation engine: canonical graph state plus referential integrity.

Every mutation reads the current snapshot and swaps in a new one in a single
assignment, so a failed validation leaves the previous snapshot untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping

from ..errors import GraphValidationError
from .model import Graph, Link, Node, new_node_id, ref_id

logger = logging.getLogger(__name__)

EMPTY_PROPERTY_MESSAGE = "Property names cannot be empty. Please fill in or remove the empty property."


@dataclass(frozen=True)
class Selection:
    node_id: str | None = None
    link_id: str | None = None


def validate_attribute_keys(attributes: dict[str, Any]) -> None:
    for key in attributes:
        if not isinstance(key, str) or not key.strip():
            raise GraphValidationError(EMPTY_PROPERTY_MESSAGE)


def validate_node(node: Node, *, require_explicit_id: bool = False) -> None:
    if require_explicit_id and not (node.id or "").strip():
        raise GraphValidationError("Node ID is required")
    if not (node.label or "").strip():
        raise GraphValidationError("Label is required")
    validate_attribute_keys(node.attributes)


def validate_link(link: Link, *, creating: bool) -> None:
    source_id = ref_id(link.source)
    target_id = ref_id(link.target)
    if not source_id:
        raise GraphValidationError("Please select a source node.")
    if not target_id:
        raise GraphValidationError("Please select a target node.")
    if not (link.label or "").strip():
        raise GraphValidationError("Edge label is required.")
    if creating and source_id == target_id:
        raise GraphValidationError("Source and target nodes cannot be the same.")
    validate_attribute_keys(link.attributes)


def property_names_to_attributes(properties: Iterable[str] | Mapping[str, Any]) -> dict[str, Any]:
    """Dialog fields to attributes.

    A plain list of names starts every property as an empty string; a mapping
    (the key/value dialog) keeps its values.
    """
    if isinstance(properties, Mapping):
        pairs = list(properties.items())
    else:
        pairs = [(name, "") for name in properties]
    attributes: dict[str, Any] = {}
    for name, value in pairs:
        key = (name or "").strip()
        if not key:
            raise GraphValidationError(EMPTY_PROPERTY_MESSAGE)
        attributes[key] = value
    return attributes


def node_from_form(
    label: str,
    property_names: Iterable[str] | Mapping[str, Any] = (),
    *,
    node_id: str | None = None,
    existing: Node | None = None,
    require_explicit_id: bool = False,
    keep_values: bool = False,
    timestamp_ms: int | None = None,
) -> Node:
    """Build a node the way the node dialog does, raising on invalid input.

    Editing keeps the existing id and any pinned position (fx/fy); adding
    generates ``node_<ms>`` unless the tool asks for an explicit id.
    With ``keep_values``, names listed for an existing node keep their current
    values instead of being reset.
    """
    if existing is not None and node_id is None:
        node_id = existing.id
    if require_explicit_id and not (node_id or "").strip():
        raise GraphValidationError("Node ID is required")
    if not (label or "").strip():
        raise GraphValidationError("Label is required")
    attributes = property_names_to_attributes(property_names)
    if keep_values and existing is not None and not isinstance(property_names, Mapping):
        for key in attributes:
            if key in existing.attributes:
                attributes[key] = existing.attributes[key]

    render: dict[str, Any] = {}
    if existing is not None and "fx" in existing.render:
        render["fx"] = existing.render.get("fx")
        render["fy"] = existing.render.get("fy")

    resolved_id = (node_id or "").strip() or new_node_id(timestamp_ms=timestamp_ms)
    return Node(id=resolved_id, label=label, attributes=attributes, render=render)


class GraphEngine:
    """Owns the canonical ``Graph`` snapshot and the canvas selection."""

    def __init__(self, graph: Graph | None = None, *, require_explicit_ids: bool = False) -> None:
        self._graph = graph or Graph()
        self._selection = Selection()
        self.require_explicit_ids = require_explicit_ids

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def selected_node(self) -> Node | None:
        if self._selection.node_id is None:
            return None
        return self._graph.get_node(self._selection.node_id)

    @property
    def selected_link(self) -> Link | None:
        if self._selection.link_id is None:
            return None
        return self._graph.get_link(self._selection.link_id)

    # Selection

    def select_node(self, node_id: str | None) -> None:
        self._selection = Selection(node_id=node_id)

    def select_link(self, link_id: str | None) -> None:
        self._selection = Selection(link_id=link_id)

    def clear_selection(self) -> None:
        self._selection = Selection()

    def _prune_selection(self) -> None:
        node_id, link_id = self._selection.node_id, self._selection.link_id
        if node_id is not None and self._graph.get_node(node_id) is None:
            node_id = None
        if link_id is not None and self._graph.get_link(link_id) is None:
            link_id = None
        self._selection = Selection(node_id=node_id, link_id=link_id)

    # Nodes

    def add_node(self, node: Node) -> None:
        validate_node(node, require_explicit_id=self.require_explicit_ids)
        nodes = [n for n in self._graph.nodes if n.id != node.id]
        if len(nodes) != len(self._graph.nodes):
            logger.debug("add_node: replacing existing node %s", node.id)
        nodes.append(node)
        self._graph = Graph.of(nodes, self._graph.links)

    def update_node(self, updated: Node) -> bool:
        """Replace the node with the same id and refresh inline link endpoints."""
        if self._graph.get_node(updated.id) is None:
            return False
        validate_node(updated, require_explicit_id=self.require_explicit_ids)

        nodes = [updated if n.id == updated.id else n for n in self._graph.nodes]
        links = []
        for link in self._graph.links:
            changes: dict[str, Any] = {}
            if isinstance(link.source, Node) and link.source.id == updated.id:
                changes["source"] = updated
            if isinstance(link.target, Node) and link.target.id == updated.id:
                changes["target"] = updated
            links.append(replace(link, **changes) if changes else link)

        self._graph = Graph.of(nodes, links)
        return True

    def delete_node(self, node_id: str) -> bool:
        """Remove a node and every link incident to it, as one transition."""
        if self._graph.get_node(node_id) is None:
            return False
        nodes = [n for n in self._graph.nodes if n.id != node_id]
        links = [link for link in self._graph.links if not link.touches(node_id)]
        removed = len(self._graph.links) - len(links)
        self._graph = Graph.of(nodes, links)
        self._prune_selection()
        logger.debug("delete_node %s: cascaded %d link(s)", node_id, removed)
        return True

    # Links

    def add_link(self, link: Link) -> None:
        validate_link(link, creating=True)
        links = [other for other in self._graph.links if other.id != link.id]
        links.append(link)
        self._graph = Graph.of(self._graph.nodes, links)

    def update_link(self, updated: Link) -> bool:
        if self._graph.get_link(updated.id) is None:
            return False
        validate_link(updated, creating=False)
        links = [updated if link.id == updated.id else link for link in self._graph.links]
        self._graph = Graph.of(self._graph.nodes, links)
        return True

    def delete_link(self, link_id: str) -> bool:
        if self._graph.get_link(link_id) is None:
            return False
        links = [link for link in self._graph.links if link.id != link_id]
        self._graph = Graph.of(self._graph.nodes, links)
        self._prune_selection()
        return True

    def delete_selected(self) -> bool:
        """Delete key: remove the selected node, or else the selected link."""
        if self._selection.node_id is not None:
            return self.delete_node(self._selection.node_id)
        if self._selection.link_id is not None:
            return self.delete_link(self._selection.link_id)
        return False

    # Whole-graph operations

    def replace(self, graph: Graph) -> None:
        self._graph = graph
        self.clear_selection()

    def clear(self) -> None:
        self.replace(Graph())
