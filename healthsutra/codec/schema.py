"""Type-level LPG schema: ``{"entity_types": {...}, "predicates": {...}}``.

Export infers the schema from instance data (property keys per node label,
endpoint labels and property keys per link label). Import goes the other way
and materialises one exemplar node per entity type and one exemplar link per
(predicate, subject type, object type) combination. That makes import a
schema preview, not a data restore.
"""

from __future__ import annotations

import logging
import random
from typing import Any

from ..graph.model import Graph, Link, Node, now_ms
from .base import GraphCodec

logger = logging.getLogger(__name__)


def _collapse(types: set[str]) -> str | list[str]:
    ordered = sorted(types)
    return ordered[0] if len(ordered) == 1 else ordered


def _as_type_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else [value]


class LpgSchemaCodec(GraphCodec):
    name = "schema"
    required_keys = ("entity_types", "predicates")
    missing_keys_message = "Invalid schema format: missing entity_types or predicates"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def export_graph(self, graph: Graph) -> dict[str, Any]:
        entity_types: dict[str, set[str]] = {}
        for node in graph.nodes:
            if not node.label:
                continue
            entity_types.setdefault(node.label, set()).update(node.semantic_attributes())

        index: dict[str, Node] = {}
        for node in graph.nodes:
            index.setdefault(node.id, node)

        predicates: dict[str, dict[str, set[str]]] = {}
        for link in graph.links:
            if not link.label:
                continue
            source = index.get(link.source_id) if link.source_id else None
            target = index.get(link.target_id) if link.target_id else None
            if source is None or not source.label or target is None or not target.label:
                logger.warning(
                    'Skipping link "%s" for schema due to missing source/target node or label.',
                    link.label,
                )
                continue
            entry = predicates.setdefault(
                link.label, {"subject_type": set(), "object_type": set(), "attributes": set()}
            )
            entry["subject_type"].add(source.label)
            entry["object_type"].add(target.label)
            entry["attributes"].update(link.semantic_attributes())

        return {
            "entity_types": {label: sorted(keys) for label, keys in entity_types.items()},
            "predicates": {
                label: {
                    "subject_type": _collapse(entry["subject_type"]),
                    "object_type": _collapse(entry["object_type"]),
                    "attributes": sorted(entry["attributes"]),
                }
                for label, entry in predicates.items()
            },
        }

    def import_graph(self, payload: dict[str, Any], *, timestamp_ms: int | None = None) -> Graph:
        stamp = now_ms() if timestamp_ms is None else timestamp_ms
        taken: set[str] = set()

        def node_id_for(entity_type: str, ordinal: int) -> str:
            base = f"{entity_type}_{ordinal}"
            candidate = base
            counter = 1
            while candidate in taken:
                candidate = f"{base}_{counter}"
                counter += 1
            taken.add(candidate)
            return candidate

        nodes: list[Node] = []
        entity_types = payload.get("entity_types")
        if isinstance(entity_types, dict):
            for ordinal, (entity_type, attributes) in enumerate(entity_types.items()):
                names = attributes if isinstance(attributes, list) else []
                nodes.append(
                    Node(
                        id=node_id_for(entity_type, ordinal),
                        label=entity_type,
                        attributes={str(name): "" for name in names},
                    )
                )

        # Lowest insertion-order exemplar per type.
        exemplars: dict[str, Node] = {}
        for node in nodes:
            exemplars.setdefault(node.label, node)

        links: list[Link] = []
        predicates = payload.get("predicates")
        if isinstance(predicates, dict):
            for predicate_type, predicate in predicates.items():
                if not isinstance(predicate, dict):
                    logger.debug("Skipping predicate %s: not an object", predicate_type)
                    continue
                names = predicate.get("attributes")
                names = names if isinstance(names, list) else []
                for subject_type in _as_type_list(predicate.get("subject_type")):
                    source = exemplars.get(subject_type) if isinstance(subject_type, str) else None
                    for object_type in _as_type_list(predicate.get("object_type")):
                        target = exemplars.get(object_type) if isinstance(object_type, str) else None
                        if source is None or target is None:
                            continue
                        link_id = (
                            f"{source.id}_{predicate_type}_{target.id}_{stamp}_{self._rng.randrange(1000)}"
                        )
                        links.append(
                            Link(
                                id=link_id,
                                source=source.id,
                                target=target.id,
                                label=predicate_type,
                                attributes={str(name): "" for name in names},
                            )
                        )

        return Graph.of(nodes, links)
