"""Filesystem primitives used by the rename engine."""
