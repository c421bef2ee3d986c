"""Rename planning and two-phase execution."""
