"""Shared utilities (merging, file I/O)."""
