"""Stockroom credential store and session-token service."""

__version__ = "1.0.0"
