"""Clients for the source database and the target discussion platform."""
