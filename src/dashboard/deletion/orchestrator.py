from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from ..backends.base import BlobStore, EntityRecord, IdentityStore, RecordStore, StoreBundle
from ..backends.urls import object_path_from_url
from .errors import (
    ConfigurationError,
    EntityNotFoundError,
    EntityValidationError,
    RecordDeleteError,
)
from .kinds import EntityKind


@dataclass(frozen=True)
class EntityId:
    """A validated, non-blank entity identifier."""

    value: str

    @classmethod
    def parse(cls, raw: object) -> EntityId:
        if raw is None:
            raise EntityValidationError("Entity ID missing")
        value = str(raw).strip()
        if not value:
            raise EntityValidationError("Entity ID missing")
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StepWarning:
    """A best-effort cleanup step that failed."""

    step: str
    message: str


@dataclass
class DeletionResult:
    entity_id: str
    kind: str
    message: str
    record_deleted: bool = True
    warnings: list[StepWarning] = field(default_factory=list)


@dataclass(frozen=True)
class ConfiguredStores:
    """The stores one deletion works against, all known to be present."""

    records: RecordStore
    blobs: BlobStore
    identities: IdentityStore


@dataclass(frozen=True)
class DeletionStep:
    name: str
    run: Callable[[], None]


class EntityDeletionOrchestrator:
    """Deletes an entity's data from the blob, identity and record stores.

    Order: look up the record, delete its image, delete its image folder,
    delete its login principal, then delete the record itself. The three
    cleanup steps are best-effort: a failure is logged and collected as a
    warning, and the sequence continues. Only a failing record delete fails
    the whole operation. The record goes last so a retry can still find the
    cleanup targets.
    """

    def __init__(self, bundle: StoreBundle | None, kind: EntityKind):
        self.bundle: StoreBundle | None = bundle
        self.kind: EntityKind = kind

    def ensure_configured(self) -> ConfiguredStores:
        """Return this kind's stores, or raise ConfigurationError if one is missing."""
        if self.bundle is None:
            raise ConfigurationError(
                "Store backends not initialized. Check the backend configuration."
            )

        bundle = self.bundle
        record_store = bundle.record_store(self.kind.collection)
        missing = bundle.missing()
        if not missing and record_store is None:
            missing = [f"record_store[{self.kind.collection}]"]
        if missing or record_store is None or bundle.blobs is None or bundle.identities is None:
            hint = (
                " Please check FIREBASE_SERVICE_ACCOUNT_KEY environment variable."
                if bundle.backend == "firebase"
                else ""
            )
            raise ConfigurationError(
                f"Store backends not initialized: {', '.join(missing)}.{hint}"
            )
        return ConfiguredStores(
            records=record_store, blobs=bundle.blobs, identities=bundle.identities
        )

    def delete_entity(self, entity_id: EntityId) -> DeletionResult:
        """Delete the entity and everything it references.

        Raises:
            ConfigurationError: If a backing store is not initialized
            EntityValidationError: If ``entity_id`` is not an EntityId
            EntityNotFoundError: If no record exists for the id
            RecordDeleteError: If the record itself could not be deleted
        """
        stores = self.ensure_configured()
        if not isinstance(entity_id, EntityId):
            raise EntityValidationError(f"{self.kind.label} ID missing")

        record = stores.records.get(entity_id.value)
        if record is None:
            logger.info(f"{self.kind.label} {entity_id} not found for deletion")
            raise EntityNotFoundError(entity_id.value, f"{self.kind.label} not found")

        logger.info(f"Starting delete for {self.kind.name} {entity_id}")

        warnings: list[StepWarning] = []
        for step in self._cleanup_steps(stores, record):
            warning = self._run_best_effort(entity_id, step)
            if warning is not None:
                warnings.append(warning)

        try:
            record_deleted = stores.records.delete(entity_id.value)
        except Exception as e:
            logger.error(f"Failed to delete {self.kind.name} record {entity_id}: {e}")
            raise RecordDeleteError(str(e) or "Failed to delete record") from e

        if not record_deleted:
            # A concurrent delete got there first; the entity is gone either way
            logger.info(f"{self.kind.label} record {entity_id} was already deleted")

        logger.info(
            f"Successfully deleted {self.kind.name} {entity_id} "
            f"({len(warnings)} cleanup warning(s))"
        )
        return DeletionResult(
            entity_id=entity_id.value,
            kind=self.kind.name,
            message=f"{self.kind.label} deleted from records, storage and identity store",
            record_deleted=record_deleted,
            warnings=warnings,
        )

    def _cleanup_steps(
        self, stores: ConfiguredStores, record: EntityRecord
    ) -> list[DeletionStep]:
        """Cleanup steps derived from the stored record, in execution order."""
        blobs = stores.blobs
        identities = stores.identities
        steps: list[DeletionStep] = []

        image_path = object_path_from_url(record.image_uri)
        if image_path:
            steps.append(DeletionStep("image", lambda: blobs.delete_object(image_path)))
        elif record.image_uri:
            logger.debug(f"Image of {self.kind.name} {record.id} is not a hosted object, skipping")

        prefix = self.kind.folder_prefix(record.id)

        def delete_folder() -> None:
            paths = blobs.list_objects(prefix)
            if paths:
                deleted = blobs.delete_objects(paths)
                logger.debug(f"Deleted {deleted} object(s) under {prefix}")

        steps.append(DeletionStep("folder", delete_folder))

        principal_id = record.principal_id
        if principal_id:
            steps.append(
                DeletionStep("principal", lambda: identities.delete_principal(principal_id))
            )

        return steps

    def _run_best_effort(self, entity_id: EntityId, step: DeletionStep) -> StepWarning | None:
        try:
            step.run()
        except Exception as e:
            logger.warning(f"{step.name} delete error for {self.kind.name} {entity_id}: {e}")
            return StepWarning(step=step.name, message=str(e) or type(e).__name__)
        logger.debug(f"{step.name} cleanup done for {self.kind.name} {entity_id}")
        return None
