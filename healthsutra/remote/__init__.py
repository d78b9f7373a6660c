"""Clients for the backend collaborators (graph persistence, S3 proxy)."""

from .graph_store import GraphStoreClient
from .http import HttpConfig, JsonHttpClient
from .s3_proxy import KnowledgeGraphObject, MediaListing, ObjectRef, S3ProxyClient

__all__ = [
    "GraphStoreClient",
    "HttpConfig",
    "JsonHttpClient",
    "KnowledgeGraphObject",
    "MediaListing",
    "ObjectRef",
    "S3ProxyClient",
]
