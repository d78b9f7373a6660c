"""Instance-level interchange: ``{"entities": [...], "relationships": [...]}``."""

from __future__ import annotations

import logging
from typing import Any

from ..graph.model import Graph, Link, Node, now_ms
from .base import GraphCodec

logger = logging.getLogger(__name__)


def _attributes_of(entry: dict[str, Any]) -> dict[str, Any]:
    attributes = entry.get("attributes")
    return dict(attributes) if isinstance(attributes, dict) else {}


class EntityRelationshipCodec(GraphCodec):
    """Array shape used by the editable tools for export/import round trips."""

    name = "entities"
    required_keys = ("entities", "relationships")
    missing_keys_message = "Invalid format: missing entities or relationships"

    def export_graph(self, graph: Graph) -> dict[str, Any]:
        entities = []
        for node in graph.nodes:
            if not node.id or not node.label:
                continue
            entities.append(
                {"id": node.id, "type": node.label, "attributes": node.semantic_attributes()}
            )

        relationships = []
        for link in graph.links:
            if not link.label or not link.source_id or not link.target_id:
                continue
            relationships.append(
                {
                    "predicate": link.label,
                    "subject": link.source_id,
                    "object": link.target_id,
                    "attributes": link.semantic_attributes(),
                }
            )

        return {"entities": entities, "relationships": relationships}

    def import_graph(self, payload: dict[str, Any], *, timestamp_ms: int | None = None) -> Graph:
        stamp = now_ms() if timestamp_ms is None else timestamp_ms

        nodes: list[Node] = []
        entities = payload.get("entities")
        if isinstance(entities, list):
            for entity in entities:
                if not isinstance(entity, dict) or not entity.get("id") or not entity.get("type"):
                    logger.debug("Skipping entity without id/type: %r", entity)
                    continue
                flat = {**_attributes_of(entity), "id": entity["id"], "label": entity["type"]}
                nodes.append(Node.from_dict(flat))

        links: list[Link] = []
        relationships = payload.get("relationships")
        if isinstance(relationships, list):
            for i, rel in enumerate(relationships):
                if (
                    not isinstance(rel, dict)
                    or not rel.get("predicate")
                    or not rel.get("subject")
                    or not rel.get("object")
                ):
                    logger.debug("Skipping incomplete relationship #%d: %r", i, rel)
                    continue
                # Endpoints are not checked against the entity list.
                flat = {
                    **_attributes_of(rel),
                    "id": f"link_{i}_{stamp}",
                    "source": str(rel["subject"]),
                    "target": str(rel["object"]),
                    "label": rel["predicate"],
                }
                links.append(Link.from_dict(flat))

        return Graph.of(nodes, links)
