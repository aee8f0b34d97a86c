from __future__ import annotations

import os
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict

from ..backends.urls import DEFAULT_PUBLIC_HOST
from . import utils

Backend = Literal["local", "firebase"]


class BaseConfig(BaseModel, Namespace):
    """Base configuration for the dashboard service, compliant with Namespace."""

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    def __init__(self, **kwargs):
        # Satisfy both BaseModel and Namespace
        BaseModel.__init__(self, **kwargs)
        Namespace.__init__(self)

    # Paths
    dashboard_dir: Path | None = None
    blob_storage_dir: Path | None = None
    public_key_path: Path | None = None
    database_url: str | None = None

    # Auth
    no_auth: bool = False

    # Store backends
    backend: Backend = "local"
    storage_bucket: str = "local"
    storage_public_host: str = DEFAULT_PUBLIC_HOST

    # Firebase credentials (only read when backend == "firebase")
    firebase_service_account_key: str | None = None
    firebase_storage_bucket: str | None = None

    @property
    def auth_disabled(self) -> bool:
        return self.no_auth


class DashboardConfig(BaseConfig):
    """Dashboard service configuration and CLI arguments."""

    _instance: ClassVar[DashboardConfig | None] = None

    # CLI Fields (mapped from argparse)
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "info"

    @classmethod
    def get_config(cls) -> DashboardConfig:
        """Get or create the DashboardConfig singleton."""
        if cls._instance is None:
            cls._instance = cls._from_cli_args()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    @classmethod
    def _from_cli_args(cls, argv: list[str] | None = None) -> DashboardConfig:
        """Parse CLI arguments (with environment defaults) into a DashboardConfig."""
        parser = ArgumentParser(prog="dashboard")
        parser.add_argument(
            "--no-auth",
            action="store_true",
            default=utils.env_flag("AUTH_DISABLED"),
            help="Disable authentication",
        )
        parser.add_argument("--port", "-p", type=int, default=int(os.getenv("PORT", "8000")))
        parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
        parser.add_argument("--reload", action="store_true", help="Enable uvicorn reload (dev)")
        parser.add_argument(
            "--backend",
            choices=["local", "firebase"],
            default=os.getenv("DASHBOARD_BACKEND", "local"),
            help="Store backend for records, blobs and identities",
        )
        parser.add_argument(
            "--storage-bucket",
            default=os.getenv("DASHBOARD_STORAGE_BUCKET", "local"),
            help="Bucket name used in hosted object URLs of the local backend",
        )
        parser.add_argument(
            "--storage-public-host",
            default=os.getenv("DASHBOARD_STORAGE_PUBLIC_HOST", DEFAULT_PUBLIC_HOST),
            help="Host used in hosted object URLs of the local backend",
        )
        parser.add_argument(
            "--log-level",
            default="info",
            choices=["critical", "error", "warning", "info", "debug", "trace"],
        )

        # Ignore unknown args so reloaders and test runners don't break parsing
        args, _ = parser.parse_known_args(argv)

        dashboard_dir = utils.ensure_dashboard_dir(create_if_missing=True)

        config_dict = vars(args).copy()
        config_dict["dashboard_dir"] = dashboard_dir
        config_dict["blob_storage_dir"] = dashboard_dir / "blobs"
        config_dict["public_key_path"] = dashboard_dir / "keys" / "public_key.pem"
        config_dict["database_url"] = os.getenv("DATABASE_URL") or utils.get_db_url(dashboard_dir)
        config_dict["firebase_service_account_key"] = os.getenv("FIREBASE_SERVICE_ACCOUNT_KEY")
        config_dict["firebase_storage_bucket"] = os.getenv(
            "FIREBASE_STORAGE_BUCKET"
        ) or os.getenv("NEXT_PUBLIC_FIREBASE_STORAGE_BUCKET")

        return cls.model_validate(config_dict)


def get_config() -> DashboardConfig:
    return DashboardConfig.get_config()
