"""Clients for services outside the API process."""
