"""Shared utility functions."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Return naive local wall-clock time used by the calendar."""
    return datetime.now()
