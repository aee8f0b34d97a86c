"""Utility functions for locating the dashboard data directory."""

import os
import sys
from pathlib import Path


def ensure_dashboard_dir(create_if_missing: bool = True) -> Path:
    """Ensure DASHBOARD_DIR exists and is writable.

    Args:
        create_if_missing: If True, create directory if it doesn't exist.
                          If False, fail if directory doesn't exist.

    Returns:
        Path to DASHBOARD_DIR

    Raises:
        SystemExit: If environment variable missing, directory missing (and not creating),
                   creation fails, or permissions invalid.
    """
    dashboard_dir = os.getenv("DASHBOARD_DIR")

    if not dashboard_dir:
        print(
            "ERROR: DASHBOARD_DIR environment variable is not set.\n"
            + "Please set it to a valid directory path.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    dir_path = Path(dashboard_dir)

    if not dir_path.exists():
        if create_if_missing:
            try:
                dir_path.mkdir(parents=True, exist_ok=True)
                print(f"Created DASHBOARD_DIR: {dir_path}")
            except (OSError, PermissionError) as e:
                print(
                    f"ERROR: Failed to create DASHBOARD_DIR: {dir_path}\n"
                    + f"Reason: {e}\n"
                    + "Please ensure the parent directory exists and you have write permissions.",
                    file=sys.stderr,
                )
                raise SystemExit(1)
        else:
            print(
                f"ERROR: DASHBOARD_DIR does not exist: {dir_path}\n"
                + f"Run: mkdir -p {dir_path}",
                file=sys.stderr,
            )
            raise SystemExit(1)

    if not dir_path.is_dir():
        print(
            f"ERROR: DASHBOARD_DIR is not a directory: {dir_path}\n"
            + "Please ensure DASHBOARD_DIR points to a directory, not a file.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    # Read & Write required for the SQLite database and local blobs
    if not os.access(dir_path, os.R_OK | os.W_OK):
        print(
            f"ERROR: DASHBOARD_DIR exists but is not accessible: {dir_path}\n"
            + "Please ensure you have read and write permissions.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    return dir_path


def get_db_url(dashboard_dir: Path | None = None) -> str:
    if dashboard_dir is None:
        dashboard_dir = ensure_dashboard_dir(create_if_missing=True)
    return f"sqlite:///{dashboard_dir}/dashboard.db"


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("true", "1", "yes")."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes")
