"""Gather.Town HTTP adapters: the real client and the in-memory demo server."""
