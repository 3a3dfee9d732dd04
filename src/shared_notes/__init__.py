"""Shared notes service: token-gated note API, blob store adapters and sync client."""

__version__ = "0.1.0"
