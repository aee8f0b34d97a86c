"""Store adapters backed by Firebase (Firestore, Cloud Storage, Firebase Auth)."""

from __future__ import annotations

import json
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

import firebase_admin
from firebase_admin import auth, credentials, firestore, storage
from google.api_core.exceptions import NotFound
from loguru import logger

from .base import BlobStore, EntityRecord, IdentityStore, RecordStore
from .exceptions import BackendNotConfiguredError, ResourceNotFoundError

if TYPE_CHECKING:
    from ..common.config import BaseConfig

APP_NAME = "dashboard"
REQUIRED_SERVICE_ACCOUNT_FIELDS = ("private_key", "client_email", "project_id")


def parse_service_account(raw: str) -> dict[str, Any]:
    """Parse a service-account JSON document taken from the environment.

    Raises:
        BackendNotConfiguredError: If the JSON is malformed or incomplete
    """
    cleaned = raw.strip()
    try:
        account = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise BackendNotConfiguredError(f"Service account key is not valid JSON: {e}") from e

    if not isinstance(account, dict):
        raise BackendNotConfiguredError("Service account key must be a JSON object")

    missing = [name for name in REQUIRED_SERVICE_ACCOUNT_FIELDS if not account.get(name)]
    if missing:
        raise BackendNotConfiguredError(
            f"Service account JSON is missing required fields ({', '.join(missing)})"
        )

    # Keys pasted into env files often carry literal "\n" sequences
    account["private_key"] = account["private_key"].replace("\\n", "\n")
    return account


def init_firebase_app(config: BaseConfig) -> firebase_admin.App:
    """Return the dashboard's Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass

    options: dict[str, Any] = {}
    if config.firebase_storage_bucket:
        options["storageBucket"] = config.firebase_storage_bucket

    try:
        if config.firebase_service_account_key:
            account = parse_service_account(config.firebase_service_account_key)
            credential = credentials.Certificate(account)
        else:
            # Application default credentials (Cloud Run and similar)
            credential = credentials.ApplicationDefault()
        return firebase_admin.initialize_app(credential, options or None, name=APP_NAME)
    except BackendNotConfiguredError:
        raise
    except Exception as e:
        raise BackendNotConfiguredError(f"Firebase Admin SDK not initialized: {e}") from e


class FirestoreRecordStore(RecordStore):
    """Record store for one Firestore collection."""

    def __init__(self, client: Any, collection: str):
        self.client = client
        self.collection: str = collection

    def _document(self, record_id: str):
        return self.client.collection(self.collection).document(record_id)

    def get(self, record_id: str) -> EntityRecord | None:
        snapshot = self._document(record_id).get()
        if not snapshot.exists:
            return None
        return EntityRecord.from_document(record_id, snapshot.to_dict())

    def delete(self, record_id: str) -> bool:
        # Firestore deletes succeed whether or not the document exists
        self._document(record_id).delete()
        return True

    def put(self, record_id: str, document: dict[str, Any]) -> EntityRecord:
        self._document(record_id).set(dict(document))
        return EntityRecord.from_document(record_id, document)


class CloudStorageBlobStore(BlobStore):
    """Blob store over a Cloud Storage bucket."""

    def __init__(self, bucket: Any, max_workers: int = 8):
        self.bucket = bucket
        self.max_workers: int = max_workers

    def delete_object(self, path: str) -> None:
        try:
            self.bucket.blob(path).delete()
        except NotFound as e:
            raise ResourceNotFoundError(f"Object {path} not found") from e

    def list_objects(self, prefix: str) -> list[str]:
        return [blob.name for blob in self.bucket.list_blobs(prefix=prefix)]

    def delete_objects(self, paths: Iterable[str]) -> int:
        paths = list(paths)
        if not paths:
            return 0
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(paths))) as pool:
            # The pool finishes every delete before the first failure propagates
            results = [pool.submit(self.delete_object, path) for path in paths]
            for future in results:
                future.result()
        return len(paths)

    def put_object(self, path: str, content: bytes, content_type: str | None = None) -> str:
        self.bucket.blob(path).upload_from_string(content, content_type=content_type)
        return path


class FirebaseIdentityStore(IdentityStore):
    """Identity store over Firebase Auth."""

    def __init__(self, app: firebase_admin.App):
        self.app = app

    def delete_principal(self, principal_id: str) -> None:
        try:
            auth.delete_user(principal_id, app=self.app)
        except auth.UserNotFoundError as e:
            raise ResourceNotFoundError(f"Principal {principal_id} not found") from e

    def create_principal(
        self, email: str | None = None, display_name: str | None = None
    ) -> str:
        user = auth.create_user(email=email, display_name=display_name, app=self.app)
        return user.uid

    def get_principal(self, principal_id: str) -> dict[str, Any] | None:
        try:
            user = auth.get_user(principal_id, app=self.app)
        except auth.UserNotFoundError:
            return None
        return {"id": user.uid, "email": user.email, "display_name": user.display_name}


def build_firebase_stores(
    config: BaseConfig, collections: Iterable[str]
) -> tuple[dict[str, RecordStore], BlobStore, IdentityStore]:
    """Create Firestore, Cloud Storage and Auth adapters sharing one app.

    Raises:
        BackendNotConfiguredError: If the Firebase app or a client can't be created
    """
    app = init_firebase_app(config)
    try:
        client = firestore.client(app=app)
        bucket = storage.bucket(app=app)
    except Exception as e:
        raise BackendNotConfiguredError(f"Firebase clients not available: {e}") from e

    logger.info(f"Firebase stores ready (bucket={bucket.name})")
    records: dict[str, RecordStore] = {
        collection: FirestoreRecordStore(client, collection) for collection in collections
    }
    return records, CloudStorageBlobStore(bucket), FirebaseIdentityStore(app)
