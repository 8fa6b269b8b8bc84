"""Clients for external services used by the RezKyoo API."""
