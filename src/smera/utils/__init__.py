"""Shared utilities for Smera."""

from smera.utils.time import now_ms, utc_now

__all__ = ["now_ms", "utc_now"]
