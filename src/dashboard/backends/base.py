from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, ClassVar

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field


class EntityRecord(BaseModel):
    """Snapshot of a stored entity document.

    Only the attributes that matter for cleanup are lifted out of the raw
    document; everything else stays in ``data``.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    id: str
    principal_id: str | None = None
    image_uri: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, record_id: str, document: dict[str, Any] | None) -> EntityRecord:
        """Build a record from a raw document (``uid`` and ``image``/``avatar`` keys)."""
        document = dict(document or {})
        principal_id = _principal_ref(record_id, document.get("uid"))
        image_uri = _image_ref(record_id, document.get("image")) or _image_ref(
            record_id, document.get("avatar")
        )
        return cls(
            id=record_id,
            principal_id=principal_id,
            image_uri=image_uri,
            data=document,
        )


def _principal_ref(record_id: str, value: object) -> str | None:
    """Principal id from a document value; numeric uids are kept as text."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if value is not None:
        logger.debug(f"Record {record_id} has unusable uid {value!r}, no principal to delete")
    return None


def _image_ref(record_id: str, value: object) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if value is not None:
        logger.debug(f"Record {record_id} has non-text image reference {value!r}, ignoring")
    return None


class RecordStore(ABC):
    """Document store holding entity records of one collection."""

    collection: str

    @abstractmethod
    def get(self, record_id: str) -> EntityRecord | None:
        """Return the record, or None when it does not exist."""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Delete the record. Returns False when there was nothing to delete."""
        pass

    @abstractmethod
    def put(self, record_id: str, document: dict[str, Any]) -> EntityRecord:
        pass


class BlobStore(ABC):
    """Object storage holding images and other media."""

    @abstractmethod
    def delete_object(self, path: str) -> None:
        """Delete a single object.

        Raises:
            ResourceNotFoundError: If no object exists at ``path``
        """
        pass

    @abstractmethod
    def list_objects(self, prefix: str) -> list[str]:
        """Return the paths of all objects whose path starts with ``prefix``."""
        pass

    def delete_objects(self, paths: Iterable[str]) -> int:
        """Delete several objects, returning how many were removed."""
        count = 0
        for path in paths:
            self.delete_object(path)
            count += 1
        return count

    @abstractmethod
    def put_object(self, path: str, content: bytes, content_type: str | None = None) -> str:
        pass


class IdentityStore(ABC):
    """Identity provider holding login principals."""

    @abstractmethod
    def delete_principal(self, principal_id: str) -> None:
        """Delete a principal.

        Raises:
            ResourceNotFoundError: If the principal does not exist
        """
        pass

    @abstractmethod
    def create_principal(
        self, email: str | None = None, display_name: str | None = None
    ) -> str:
        pass

    @abstractmethod
    def get_principal(self, principal_id: str) -> dict[str, Any] | None:
        pass



@dataclass
class StoreBundle:
    """Explicit handles to the three backing stores.

    ``records`` maps a collection name to its store. A member left as None
    means that store could not be initialized.
    """

    records: dict[str, RecordStore] | None = None
    blobs: BlobStore | None = None
    identities: IdentityStore | None = None
    backend: str = "local"

    def missing(self) -> list[str]:
        missing: list[str] = []
        if self.records is None:
            missing.append("record_store")
        if self.blobs is None:
            missing.append("blob_store")
        if self.identities is None:
            missing.append("identity_store")
        return missing

    @property
    def is_configured(self) -> bool:
        return not self.missing()

    def record_store(self, collection: str) -> RecordStore | None:
        if self.records is None:
            return None
        return self.records.get(collection)
