"""Codec interface and the file-level import/export plumbing shared by all codecs."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from ..errors import ImportFormatError
from ..graph.model import Graph


class GraphCodec(ABC):
    """Converts a ``Graph`` to and from one JSON interchange shape.

    ``import_graph`` is lenient about individual entries (malformed ones are
    skipped); ``loads``/``read_file`` enforce the file-level contract, so a
    file is either imported as a whole or rejected.
    """

    name: str = ""
    required_keys: tuple[str, ...] = ()
    missing_keys_message: str = "Invalid format"

    @abstractmethod
    def export_graph(self, graph: Graph) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def import_graph(self, payload: dict[str, Any], *, timestamp_ms: int | None = None) -> Graph:
        raise NotImplementedError

    def check_payload(self, payload: Any) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise ImportFormatError(self.missing_keys_message)
        for key in self.required_keys:
            if payload.get(key) is None:
                raise ImportFormatError(self.missing_keys_message)
        return payload

    def loads(self, text: str, *, timestamp_ms: int | None = None) -> Graph:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ImportFormatError(f"Error parsing JSON file: {e}") from e
        return self.import_graph(self.check_payload(payload), timestamp_ms=timestamp_ms)

    def read_file(self, path: Path | None, *, timestamp_ms: int | None = None) -> Graph:
        if path is None:
            raise ImportFormatError("No file selected")
        if path.suffix.lower() != ".json":
            raise ImportFormatError("Selected file is not a JSON file")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ImportFormatError("Error reading file") from e
        return self.loads(text, timestamp_ms=timestamp_ms)

    def dumps(self, graph: Graph) -> str:
        return json.dumps(self.export_graph(graph), indent=2, ensure_ascii=False) + "\n"


def ensure_json_suffix(path: Path) -> Path:
    if path.name.lower().endswith(".json"):
        return path
    return path.with_name(path.name + ".json")


def write_export(data: dict[str, Any], path: Path) -> Path:
    """Write pretty-printed UTF-8 JSON, appending ``.json`` when missing."""
    out = ensure_json_suffix(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return out
