"""Gong connector: calls, transcripts, users and webhook fan-out for workflow hosts."""

__version__ = "0.1.0"
