"""Keyed-map interchange used by the read-only viewer.

Shape::

    {"entities":   {"<id>": {"type": ..., "attributes": {...}}},
     "predicates": {"<key>": {"type": ..., "subject": ..., "object": ..., "attributes": {...}}}}

Knowledge-graph memories fetched from object storage arrive as JSON text, so
``import_graph`` also accepts a string.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..errors import ImportFormatError
from ..graph.model import Graph, Link, Node
from .base import GraphCodec

logger = logging.getLogger(__name__)

_ENTITY_RESERVED = frozenset({"type", "attributes"})
LINK_PREFIX = "link_"


def _entity_attributes(entity: dict[str, Any]) -> dict[str, Any]:
    attributes = entity.get("attributes")
    if isinstance(attributes, dict):
        return dict(attributes)
    # Memories without an attributes block keep their other fields as properties.
    return {k: v for k, v in entity.items() if k not in _ENTITY_RESERVED}


def _predicate_key(link_id: str, link_ids: set[str]) -> str:
    """Undo the ``link_<key>`` naming of import unless ``<key>`` is itself a link id."""
    key = link_id[len(LINK_PREFIX):] if link_id.startswith(LINK_PREFIX) else ""
    if not key or key in link_ids:
        return link_id
    return key


class KeyedEntityCodec(GraphCodec):
    name = "keyed"
    required_keys = ("entities", "predicates")
    missing_keys_message = "Invalid format: missing entities or predicates"

    def export_graph(self, graph: Graph) -> dict[str, Any]:
        entities: dict[str, Any] = {}
        for node in graph.nodes:
            if not node.id or not node.label:
                continue
            entities[node.id] = {"type": node.label, "attributes": node.semantic_attributes()}

        link_ids = {link.id for link in graph.links}
        predicates: dict[str, Any] = {}
        for link in graph.links:
            if not link.id or not link.label or not link.source_id or not link.target_id:
                continue
            key = _predicate_key(link.id, link_ids)
            if key in predicates:
                key = link.id
            predicates[key] = {
                "type": link.label,
                "subject": link.source_id,
                "object": link.target_id,
                "attributes": link.semantic_attributes(),
            }

        return {"entities": entities, "predicates": predicates}

    def import_graph(self, payload: dict[str, Any] | str, *, timestamp_ms: int | None = None) -> Graph:
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise ImportFormatError(f"Error parsing JSON file: {e}") from e
            payload = self.check_payload(payload)

        nodes: list[Node] = []
        entities = payload.get("entities")
        if isinstance(entities, dict):
            for entity_id, entity in entities.items():
                if not isinstance(entity, dict):
                    entity = {}
                if not entity.get("type"):
                    logger.debug("Entity %s has no type; adding it unlabelled", entity_id)
                nodes.append(
                    Node(
                        id=str(entity_id),
                        label=str(entity.get("type") or ""),
                        attributes=_entity_attributes(entity),
                    )
                )

        links: list[Link] = []
        predicates = payload.get("predicates")
        if isinstance(predicates, dict):
            for key, predicate in predicates.items():
                if (
                    not isinstance(predicate, dict)
                    or not predicate.get("type")
                    or not predicate.get("subject")
                    or not predicate.get("object")
                ):
                    logger.debug("Skipping incomplete predicate %s", key)
                    continue
                attributes = predicate.get("attributes")
                links.append(
                    Link(
                        id=f"{LINK_PREFIX}{key}",
                        source=str(predicate["subject"]),
                        target=str(predicate["object"]),
                        label=str(predicate["type"]),
                        attributes=dict(attributes) if isinstance(attributes, dict) else {},
                    )
                )

        return Graph.of(nodes, links)
