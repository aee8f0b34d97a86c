"""Repair marketplace admin dashboard backend."""

from .app import app

__all__ = ["app"]
