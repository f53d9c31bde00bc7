"""
Configuration module for the effort engine.

Single source of truth for:
- Logging level
- Which task store backs the lifecycle recorder (memory, CSV, Azure Blob)
- Default size used when a task's estimate is refreshed

All values can be overridden via environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

TASK_STORE_BACKENDS = ("memory", "csv", "azure_blob")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_choice(name: str, default: str, choices: tuple) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip().lower()
    return value if value in choices else default


@dataclass
class Config:
    """
    Runtime configuration for the effort engine.

    All fields default from environment variables but can be overridden
    programmatically by constructing Config(...) manually if needed.
    """

    log_level: str = "INFO"

    task_store: str = "memory"
    task_csv_path: str = "data/tasks.csv"

    # Azure Blob Storage, used when task_store == "azure_blob"
    azure_blob_connection_string: Optional[str] = None
    azure_blob_container_name: Optional[str] = None
    azure_blob_name: str = "tasks.csv"

    default_size_kloc: float = 10.0

    @classmethod
    def from_env(cls) -> "Config":
        """
        Construct a Config object by reading environment variables.

        Environment variables (all optional):
        - EE_LOG_LEVEL
        - EE_TASK_STORE  (memory / csv / azure_blob)
        - EE_TASK_CSV_PATH
        - EE_AZURE_BLOB_CONNECTION_STRING
        - EE_AZURE_BLOB_CONTAINER_NAME
        - EE_AZURE_BLOB_NAME
        - EE_DEFAULT_SIZE_KLOC  (float)
        """
        size = _get_env_float("EE_DEFAULT_SIZE_KLOC", default=10.0)
        return cls(
            log_level=_get_env_choice("EE_LOG_LEVEL", "info", LOG_LEVELS).upper(),
            task_store=_get_env_choice(
                "EE_TASK_STORE", "memory", TASK_STORE_BACKENDS
            ),
            task_csv_path=os.getenv("EE_TASK_CSV_PATH", "data/tasks.csv"),
            azure_blob_connection_string=os.getenv(
                "EE_AZURE_BLOB_CONNECTION_STRING"
            ),
            azure_blob_container_name=os.getenv(
                "EE_AZURE_BLOB_CONTAINER_NAME"
            ),
            azure_blob_name=os.getenv("EE_AZURE_BLOB_NAME", "tasks.csv"),
            default_size_kloc=size if size > 0 else 10.0,
        )


_DEFAULT_CONFIG: Optional[Config] = None


def get_config(force_reload: bool = False) -> Config:
    """
    Return a process-wide Config instance.

    Use `force_reload=True` if environment variables changed at runtime
    and you want to refresh.
    """
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None or force_reload:
        _DEFAULT_CONFIG = Config.from_env()
    return _DEFAULT_CONFIG
