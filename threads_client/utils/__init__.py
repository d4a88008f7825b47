"""Utility helpers for the threads_client package."""

from __future__ import annotations

__all__ = [
    "ReadWriteLock",
]

from .locks import ReadWriteLock
