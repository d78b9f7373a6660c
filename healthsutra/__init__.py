"""healthsutra - knowledge-graph and LPG schema editing toolkit for the Health Sutra dashboard."""

__version__ = "0.1.0"
