from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from .base import StoreBundle
from .database import create_db_engine, create_session_factory
from .exceptions import BackendNotConfiguredError
from .local import FileBlobStore, SqlIdentityStore, SqlRecordStore
from .models import Base
from .urls import DEFAULT_PUBLIC_HOST

if TYPE_CHECKING:
    from ..common.config import BaseConfig


def build_local_bundle(
    engine: Engine,
    blob_dir: str,
    collections: Iterable[str],
    bucket: str = "local",
    public_host: str = DEFAULT_PUBLIC_HOST,
) -> StoreBundle:
    """Local bundle: SQLAlchemy records and identities, filesystem blobs."""
    Base.metadata.create_all(bind=engine)
    session_factory = create_session_factory(engine)
    return StoreBundle(
        records={
            collection: SqlRecordStore(session_factory, collection) for collection in collections
        },
        blobs=FileBlobStore(blob_dir, bucket=bucket, public_host=public_host),
        identities=SqlIdentityStore(session_factory),
        backend="local",
    )


def build_store_bundle(config: BaseConfig, collections: Iterable[str]) -> StoreBundle:
    """Build the store bundle selected by ``config.backend``.

    Initialization failures are logged and yield a bundle whose members are
    None, so request handlers report a configuration error instead of the
    service failing to start.
    """
    collections = list(collections)
    try:
        if config.backend == "firebase":
            from .firebase import build_firebase_stores

            records, blobs, identities = build_firebase_stores(config, collections)
            return StoreBundle(
                records=records, blobs=blobs, identities=identities, backend="firebase"
            )

        if not config.database_url or config.blob_storage_dir is None:
            raise BackendNotConfiguredError(
                "Local backend requires database_url and blob_storage_dir"
            )
        engine = create_db_engine(config.database_url)
        return build_local_bundle(
            engine,
            str(config.blob_storage_dir),
            collections,
            bucket=config.storage_bucket,
            public_host=config.storage_public_host,
        )
    except (BackendNotConfiguredError, SQLAlchemyError, OSError) as e:
        logger.error(f"Store backend '{config.backend}' not initialized: {e}")
        return StoreBundle(backend=config.backend)
