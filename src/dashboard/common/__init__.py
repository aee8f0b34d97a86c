"""Common module for shared configuration, auth and utilities."""

from .config import BaseConfig, DashboardConfig, get_config

__all__: list[str] = [
    "BaseConfig",
    "DashboardConfig",
    "get_config",
]
