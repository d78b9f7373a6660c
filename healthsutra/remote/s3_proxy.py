"""Typed client for the S3 proxy routes under ``/api/s3``.

The proxy lists and fetches call recordings, transcripts, SMS messages,
uploaded documents and knowledge-graph artefacts per user. Object listings
for messages and documents are passed through as raw S3 entries
(``Key``, ``LastModified``, ``Size``...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import CollaboratorError
from .http import JsonHttpClient

PREFIX = "/api/s3"

KG_MEMORY_SUFFIX = "knowledge_graph_memory.json"
KG_NARRATIVE_SUFFIX = "knowledge_graph_narrative.txt"


@dataclass(frozen=True)
class ObjectRef:
    key: str
    date: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ObjectRef":
        # Media listings use key/date, raw S3 listings use Key/LastModified.
        key = data.get("key", data.get("Key", ""))
        date = data.get("date", data.get("LastModified"))
        return cls(key=str(key), date=None if date is None else str(date))


@dataclass(frozen=True)
class MediaListing:
    calls: list[ObjectRef] = field(default_factory=list)
    transcripts: list[ObjectRef] = field(default_factory=list)


@dataclass(frozen=True)
class KnowledgeGraphObject:
    key: str
    narrative: str | None = None
    memory: str | None = None

    @property
    def kind(self) -> str:
        return "memory" if self.memory is not None else "narrative"


def _refs(items: Any) -> list[ObjectRef]:
    if not isinstance(items, list):
        return []
    return [ObjectRef.from_payload(i) for i in items if isinstance(i, dict)]


def _string_list(items: Any) -> list[str]:
    if not isinstance(items, list):
        return []
    return [str(i) for i in items if i is not None]


def _field(payload: Any, name: str) -> Any:
    if not isinstance(payload, dict) or name not in payload:
        raise CollaboratorError(f"Unexpected response: missing '{name}'")
    return payload[name]


class S3ProxyClient:
    def __init__(self, http: JsonHttpClient) -> None:
        self._http = http

    def _get(self, route: str, **params: Any) -> Any:
        return self._http.get(f"{PREFIX}/{route}", params=params)

    # Users and calls

    def users(self) -> list[str]:
        return _string_list(self._get("get-users-list"))

    def incoming_media(self, user: str) -> MediaListing:
        payload = self._get("get-incomming-media", selectedUser=user)
        return MediaListing(
            calls=_refs(_field(payload, "calls")),
            transcripts=_refs(_field(payload, "transcripts")),
        )

    def outgoing_media(self, user: str, receiver: str) -> MediaListing:
        payload = self._get("get-outgoing-media", selectedUser=user, receiver=receiver)
        return MediaListing(
            calls=_refs(_field(payload, "calls")),
            transcripts=_refs(_field(payload, "transcripts")),
        )

    def outgoing_receivers(self, user: str) -> list[str]:
        return _string_list(self._get("get-outgoing-calls", selectedUser=user))

    def recording_url(self, key: str) -> str:
        """Signed URL for a call recording (valid for 300 seconds)."""
        return str(_field(self._get("get-call-recording", key=key), "url"))

    def transcript(self, key: str) -> str:
        return str(_field(self._get("get-transcript", key=key), "transcript"))

    # Messages and documents

    def user_messages(self, user: str) -> list[dict[str, Any]]:
        payload = self._get("get-user-messages", selectedUser=user)
        return [i for i in payload if isinstance(i, dict)] if isinstance(payload, list) else []

    def message(self, key: str) -> str:
        return str(_field(self._get("get-message", key=key), "transcript"))

    def docs(self, user: str) -> list[dict[str, Any]]:
        payload = self._get("get-docs", selectedUser=user)
        return [i for i in payload if isinstance(i, dict)] if isinstance(payload, list) else []

    def doc_url(self, key: str) -> str:
        """Signed URL for a document; the proxy answers with a redirect."""
        return self._http.get_redirect(f"{PREFIX}/get-doc", params={"key": key})

    # Knowledge graphs

    def incoming_kg(self, user: str) -> list[ObjectRef]:
        return _refs(_field(self._get("get-incoming-kg", selectedUser=user), "kg"))

    def kg_receivers(self, user: str) -> list[str]:
        return _string_list(_field(self._get("get-outgoing-kg-recivers", selectedUser=user), "kgRecivers"))

    def outgoing_kg(self, prefix: str) -> list[ObjectRef]:
        """List knowledge-graph objects under a receiver prefix from ``kg_receivers``."""
        return _refs(_field(self._get("get-outgoing-kg", user=prefix), "kg"))

    def kg(self, key: str) -> KnowledgeGraphObject:
        payload = self._get("get-kg", key=key)
        if key.endswith(".txt"):
            return KnowledgeGraphObject(key=key, narrative=str(_field(payload, "narrative")))
        if key.endswith(".json"):
            return KnowledgeGraphObject(key=key, memory=str(_field(payload, "memory")))
        raise CollaboratorError(f"Unsupported knowledge-graph object: {key}")
