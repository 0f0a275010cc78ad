"""hyperlog: a hierarchical, path-addressed task and notes store."""

__version__ = "0.1.0"
