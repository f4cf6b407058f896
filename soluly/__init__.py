"""Soluly business-operations API."""
