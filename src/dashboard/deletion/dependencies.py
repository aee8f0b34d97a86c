from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from ..backends.base import StoreBundle
from .kinds import EntityKind
from .orchestrator import EntityDeletionOrchestrator


def get_store_bundle(request: Request) -> StoreBundle | None:
    """Dependency to get the store bundle built by the app lifespan."""
    return getattr(request.app.state, "bundle", None)


def deletion_orchestrator(kind: EntityKind) -> Callable[[Request], EntityDeletionOrchestrator]:
    """Dependency factory returning an orchestrator for ``kind``."""

    def get_orchestrator(request: Request) -> EntityDeletionOrchestrator:
        return EntityDeletionOrchestrator(get_store_bundle(request), kind)

    return get_orchestrator
