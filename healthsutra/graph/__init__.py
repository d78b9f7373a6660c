"""In-memory graph model, mutation engine and render hints."""

from .edge_selection import EdgeEditor, Slot
from .engine import GraphEngine, Selection, node_from_form
from .layout import annotate, compute_curvatures, node_color
from .model import Graph, Link, Node, NodeRef, ref_id, resolve

__all__ = [
    "EdgeEditor",
    "Slot",
    "GraphEngine",
    "Selection",
    "node_from_form",
    "annotate",
    "compute_curvatures",
    "node_color",
    "Graph",
    "Link",
    "Node",
    "NodeRef",
    "ref_id",
    "resolve",
]
