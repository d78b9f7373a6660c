"""Interchange codecs (entity/relationship, keyed viewer map, LPG schema)."""

from .base import GraphCodec, ensure_json_suffix, write_export
from .entities import EntityRelationshipCodec
from .keyed import KeyedEntityCodec
from .schema import LpgSchemaCodec

CODEC_NAMES = ("entities", "keyed", "schema")


def get_codec(name: str) -> GraphCodec:
    """Return a fresh codec instance by name."""
    if name == "entities":
        return EntityRelationshipCodec()
    if name == "keyed":
        return KeyedEntityCodec()
    if name == "schema":
        return LpgSchemaCodec()
    raise ValueError(f"Unknown codec: {name} (expected one of: {', '.join(CODEC_NAMES)})")


__all__ = [
    "CODEC_NAMES",
    "GraphCodec",
    "EntityRelationshipCodec",
    "KeyedEntityCodec",
    "LpgSchemaCodec",
    "ensure_json_suffix",
    "get_codec",
    "write_export",
]
