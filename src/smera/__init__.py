"""Smera - offline-tolerant task writes and resilient AI calls."""

__version__ = "0.1.0"
