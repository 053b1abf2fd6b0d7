"""Ark wallet client: session orchestration over a remote Ark wallet service."""

__version__ = "0.1.0"
