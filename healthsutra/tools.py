"""Per-tool policy: which codec, whether the graph is persisted, id rules.

The three graph tools share one engine and differ only in these settings.
"""

from __future__ import annotations

from dataclasses import dataclass

from .codec import get_codec
from .codec.base import GraphCodec

DEFAULT_EXPORT_FILENAME = "graph-lpg-schema.json"


@dataclass(frozen=True)
class ToolProfile:
    name: str
    title: str
    codec: str
    persistent: bool
    require_explicit_ids: bool = False
    keep_attribute_values: bool = False
    source_codec: str | None = None
    export_filename: str = DEFAULT_EXPORT_FILENAME
    local_save_message: str = ""
    local_clear_message: str = "Graph cleared successfully!"

    def make_codec(self) -> GraphCodec:
        return get_codec(self.codec)

    def make_source_codec(self) -> GraphCodec:
        return get_codec(self.source_codec or self.codec)


KNOWLEDGE_GRAPH = ToolProfile(
    name="knowledge-graph",
    title="Knowledge Graph",
    codec="entities",
    persistent=True,
)

SCHEMA_EDITOR = ToolProfile(
    name="schema-editor",
    title="Schema Editor",
    codec="schema",
    persistent=False,
    local_save_message="Database operations not available in Schema Editor",
    local_clear_message="Schema cleared successfully!",
)

VIEWER = ToolProfile(
    name="viewer",
    title="Knowledge Graph Viewer",
    codec="entities",
    persistent=False,
    require_explicit_ids=True,
    keep_attribute_values=True,
    source_codec="keyed",
    local_save_message="Database operations not available in Viewer",
)

PROFILES: dict[str, ToolProfile] = {p.name: p for p in (KNOWLEDGE_GRAPH, SCHEMA_EDITOR, VIEWER)}


def get_profile(name: str) -> ToolProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown tool: {name} (expected one of: {', '.join(PROFILES)})") from None
