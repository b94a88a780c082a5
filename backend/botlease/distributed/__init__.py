"""Backends that rely on shared infrastructure (distributed mode)."""
