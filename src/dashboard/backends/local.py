from __future__ import annotations

import os
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from .base import BlobStore, EntityRecord, IdentityStore, RecordStore
from .database import with_retry
from .exceptions import ResourceNotFoundError
from .models import PrincipalRow, RecordRow
from .urls import DEFAULT_PUBLIC_HOST, hosted_object_url


def _now_timestamp() -> int:
    """Return current UTC timestamp in milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


class SqlRecordStore(RecordStore):
    """Record store for one collection backed by the ``records`` table.

    Each method opens and closes its own session.
    """

    def __init__(self, session_factory: sessionmaker[Session], collection: str):
        self.session_factory: sessionmaker[Session] = session_factory
        self.collection: str = collection

    @with_retry(max_retries=5)
    def get(self, record_id: str) -> EntityRecord | None:
        db = self.session_factory()
        try:
            row = db.get(RecordRow, (self.collection, record_id))
            if row is None:
                return None
            return EntityRecord.from_document(row.id, row.data)
        finally:
            db.close()

    @with_retry(max_retries=5)
    def delete(self, record_id: str) -> bool:
        db = self.session_factory()
        try:
            row = db.get(RecordRow, (self.collection, record_id))
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @with_retry(max_retries=5)
    def put(self, record_id: str, document: dict[str, Any]) -> EntityRecord:
        """Create or replace the record document."""
        record = EntityRecord.from_document(record_id, document)
        db = self.session_factory()
        try:
            row = db.get(RecordRow, (self.collection, record_id))
            if row is None:
                row = RecordRow(
                    collection=self.collection,
                    id=record_id,
                    created_date=_now_timestamp(),
                )
                db.add(row)
            row.data = dict(document)
            row.principal_id = record.principal_id
            row.image_uri = record.image_uri
            db.commit()
            return record
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class SqlIdentityStore(IdentityStore):
    """Identity store backed by the ``principals`` table."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory: sessionmaker[Session] = session_factory

    @with_retry(max_retries=5)
    def create_principal(
        self, email: str | None = None, display_name: str | None = None
    ) -> str:
        db = self.session_factory()
        try:
            principal = PrincipalRow(
                id=uuid.uuid4().hex,
                email=email,
                display_name=display_name,
                created_date=_now_timestamp(),
            )
            db.add(principal)
            db.commit()
            return principal.id
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @with_retry(max_retries=5)
    def get_principal(self, principal_id: str) -> dict[str, Any] | None:
        db = self.session_factory()
        try:
            principal = db.get(PrincipalRow, principal_id)
            if principal is None:
                return None
            return {
                "id": principal.id,
                "email": principal.email,
                "display_name": principal.display_name,
            }
        finally:
            db.close()

    @with_retry(max_retries=5)
    def delete_principal(self, principal_id: str) -> None:
        db = self.session_factory()
        try:
            principal = db.get(PrincipalRow, principal_id)
            if principal is None:
                raise ResourceNotFoundError(f"Principal {principal_id} not found")
            db.delete(principal)
            db.commit()
        except ResourceNotFoundError:
            raise
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class FileBlobStore(BlobStore):
    """Blob store keeping objects as files below ``base_dir``.

    Object paths are POSIX-style and relative, e.g. ``customerImage/C1/photo.png``.
    """

    def __init__(
        self,
        base_dir: str | Path,
        bucket: str = "local",
        public_host: str = DEFAULT_PUBLIC_HOST,
    ):
        self.base_dir: Path = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.bucket: str = bucket
        self.public_host: str = public_host

    def get_absolute_path(self, path: str) -> Path:
        """Resolve an object path, rejecting paths that escape ``base_dir``."""
        if not path or path.startswith("/"):
            raise ValueError(f"Invalid object path: {path!r}")
        resolved = (self.base_dir / path).resolve()
        if not resolved.is_relative_to(self.base_dir) or resolved == self.base_dir:
            raise ValueError(f"Object path escapes storage root: {path!r}")
        return resolved

    def put_object(self, path: str, content: bytes, content_type: str | None = None) -> str:
        _ = content_type
        file_path = self.get_absolute_path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(content)
        return path

    def delete_object(self, path: str) -> None:
        file_path = self.get_absolute_path(path)
        if not file_path.is_file():
            raise ResourceNotFoundError(f"Object {path} not found")
        file_path.unlink()
        self._cleanup_empty_dirs(file_path.parent)

    def list_objects(self, prefix: str) -> list[str]:
        # Only walk the deepest directory the prefix names
        head = prefix.rsplit("/", 1)[0] if "/" in prefix else ""
        start = self.get_absolute_path(head) if head else self.base_dir
        if not start.is_dir():
            return []

        paths: list[str] = []
        for dirpath, _dirnames, filenames in os.walk(start):
            for filename in filenames:
                relative = (Path(dirpath) / filename).relative_to(self.base_dir).as_posix()
                if relative.startswith(prefix):
                    paths.append(relative)
        return sorted(paths)

    def public_url(self, path: str, host: str | None = None) -> str:
        """URL under which ``path`` is served, on ``public_host`` unless overridden."""
        return hosted_object_url(host or self.public_host, self.bucket, path)

    def _cleanup_empty_dirs(self, dir_path: Path) -> None:
        """Remove empty parent directories up to base_dir."""
        try:
            while dir_path != self.base_dir and dir_path.exists():
                if any(dir_path.iterdir()):
                    break
                dir_path.rmdir()
                dir_path = dir_path.parent
        except OSError as e:
            logger.debug(f"Skipping empty directory cleanup at {dir_path}: {e}")
