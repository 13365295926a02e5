"""Packaged data files (level table)."""
