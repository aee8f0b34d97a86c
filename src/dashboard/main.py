# src/dashboard/main.py
from __future__ import annotations

import logging
import os
import sys

import uvicorn

from .common.config import DashboardConfig

logger = logging.getLogger("dashboard")
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    config = DashboardConfig._from_cli_args(argv)
    DashboardConfig._instance = config

    # Picked up again by get_config() in reloaded workers
    if config.no_auth:
        os.environ["AUTH_DISABLED"] = "true"
    os.environ["DASHBOARD_BACKEND"] = config.backend

    logger.info(f"Starting dashboard on {config.host}:{config.port} (backend={config.backend})")

    try:
        # Pass app as import string for reload to work
        uvicorn.run(
            "dashboard:app",
            host=config.host,
            port=config.port,
            reload=config.reload,
            log_level=config.log_level,
        )
    except Exception as exc:
        print(f"Error starting service: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
