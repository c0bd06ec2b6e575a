"""Convergence logic of distance-vector, link-state and path-vector routing."""

__version__ = "0.1.0"
