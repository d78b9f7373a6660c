"""Client for the graph persistence endpoints (``/api/graph*``)."""

from __future__ import annotations

import logging
from typing import Any

from ..graph.model import Graph
from .http import JsonHttpClient

logger = logging.getLogger(__name__)


class GraphStoreClient:
    def __init__(self, http: JsonHttpClient) -> None:
        self._http = http

    def load(self) -> Graph:
        """``GET /api/graph``; raises ``CollaboratorUnavailable`` on 503."""
        payload = self._http.get("/api/graph")
        if not isinstance(payload, dict):
            return Graph()
        return Graph.from_dict({"nodes": payload.get("nodes") or [], "links": payload.get("links") or []})

    def save(self, graph: Graph) -> Any:
        """``POST /api/graph/save`` with link endpoints as bare ids."""
        body = graph.to_dict(include_render=True)
        logger.debug("saving %d node(s), %d link(s)", len(body["nodes"]), len(body["links"]))
        return self._http.post("/api/graph/save", body)

    def clear(self) -> Any:
        """``DELETE /api/graph/clear``."""
        return self._http.delete("/api/graph/clear")
