"""
Task persistence.

Provides:
- TaskStore: the async interface the lifecycle recorder talks to
- InMemoryTaskStore: default backend
- CsvTaskStore: rows mirrored to a local CSV (Excel-style usage)
- AzureBlobTaskStore: rows mirrored to a CSV blob in Azure Blob Storage
- CSV helpers to load/save Task rows

There is no locking anywhere: concurrent writers race, last write wins.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import fields
from datetime import datetime, timezone
from io import StringIO
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from .config import Config, get_config
from .errors import StoreError, TaskNotFoundError
from .schema import DEFAULT_SWIMLANES, Swimlane, Task

logger = logging.getLogger(__name__)

TASK_FIELDNAMES = [f.name for f in fields(Task)]

_FLOAT_FIELDS = {
    "attr_rely",
    "attr_cplx",
    "attr_acap",
    "attr_pcap",
    "attr_tool",
    "attr_sced",
    "estimated_effort_pm",
    "actual_effort_pm",
}
_DATE_FIELDS = {"start_date", "end_date", "created_at", "updated_at"}


class TaskStore(Protocol):
    async def get_task(self, task_id: str) -> Task:
        ...

    async def save_task(self, task: Task) -> Task:
        ...

    async def list_tasks(self, project_id: Optional[str] = None) -> List[Task]:
        ...

    async def get_swimlane(self, swimlane_id: str) -> Optional[Swimlane]:
        ...

    async def save_swimlane(self, swimlane: Swimlane) -> Swimlane:
        ...


class InMemoryTaskStore:
    """Dict-backed store. Rows are copied on the way in and out."""

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        swimlanes: Iterable[Swimlane] = (),
    ) -> None:
        self._tasks: Dict[str, Task] = {t.task_id: t.copy() for t in tasks}
        self._swimlanes: Dict[str, Swimlane] = {s.swimlane_id: s for s in swimlanes}

    async def get_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(
                f"Task not found: {task_id}", details={"task_id": task_id}
            )
        return task.copy()

    async def save_task(self, task: Task) -> Task:
        previous = self._tasks.get(task.task_id)
        self._tasks[task.task_id] = task.copy()
        try:
            self._persist()
        except StoreError:
            if previous is None:
                del self._tasks[task.task_id]
            else:
                self._tasks[task.task_id] = previous
            raise
        return task.copy()

    async def list_tasks(self, project_id: Optional[str] = None) -> List[Task]:
        rows = [
            t.copy()
            for t in self._tasks.values()
            if project_id is None or t.project_id == project_id
        ]
        return sorted(rows, key=lambda t: t.position)

    async def get_swimlane(self, swimlane_id: str) -> Optional[Swimlane]:
        return self._swimlanes.get(swimlane_id)

    async def save_swimlane(self, swimlane: Swimlane) -> Swimlane:
        self._swimlanes[swimlane.swimlane_id] = swimlane
        return swimlane

    def seed_default_swimlanes(self, project_id: str) -> List[Swimlane]:
        """Create Backlog / To Do / In Progress / Done for a project."""
        lanes = [
            Swimlane(
                swimlane_id=f"{project_id}-{name.lower().replace(' ', '-')}",
                name=name,
                position=position,
                project_id=project_id,
            )
            for name, position in DEFAULT_SWIMLANES
        ]
        for lane in lanes:
            self._swimlanes[lane.swimlane_id] = lane
        return lanes

    def _persist(self) -> None:
        """Hook for backends that mirror rows elsewhere."""


# --- CSV helpers ------------------------------------------------------------


def _parse_cell(key: str, val: Optional[str]):
    if val in (None, ""):
        return None
    if key in _FLOAT_FIELDS:
        return float(val)
    if key == "position":
        return int(float(val))
    if key in _DATE_FIELDS:
        parsed = datetime.fromisoformat(val)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return val


def tasks_from_csv_text(csv_text: str) -> List[Task]:
    """
    Parse Task rows from CSV text.

    Expected columns are the Task field names; task_id is required,
    extra columns are ignored and missing attr_* columns default to 1.0.
    """
    tasks: List[Task] = []
    reader = csv.DictReader(StringIO(csv_text))
    for row in reader:
        if not row or not row.get("task_id"):
            continue
        values = {}
        for key in TASK_FIELDNAMES:
            try:
                parsed = _parse_cell(key, row.get(key))
            except ValueError as e:
                raise StoreError(
                    f"Malformed {key} for task {row.get('task_id')}: {row.get(key)!r}"
                ) from e
            if parsed is not None:
                values[key] = parsed
        tasks.append(Task(**values))
    return tasks


def tasks_to_csv_text(tasks: Iterable[Task]) -> str:
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=TASK_FIELDNAMES)
    writer.writeheader()
    for task in tasks:
        row = task.as_dict()
        writer.writerow({key: row.get(key) for key in TASK_FIELDNAMES})
    return buffer.getvalue()


def load_tasks_from_csv(path: str) -> List[Task]:
    with open(path, mode="r", newline="", encoding="utf-8") as f:
        return tasks_from_csv_text(f.read())


def save_tasks_to_csv(tasks: Iterable[Task], path: str) -> None:
    text = tasks_to_csv_text(tasks)
    with open(path, mode="w", newline="", encoding="utf-8") as f:
        f.write(text)


# --- File / blob backed stores -----------------------------------------------


class CsvTaskStore(InMemoryTaskStore):
    """
    In-memory rows, rewritten to a local CSV after every write.

    Good enough for low-volume / demo use.
    """

    def __init__(self, path: str, swimlanes: Iterable[Swimlane] = ()) -> None:
        self.path = Path(path)
        tasks = load_tasks_from_csv(str(self.path)) if self.path.exists() else []
        super().__init__(tasks, swimlanes)
        logger.info("Loaded %d tasks from %s", len(tasks), self.path)

    def _persist(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            save_tasks_to_csv(self._tasks.values(), str(self.path))
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}") from e


class AzureBlobTaskStore(InMemoryTaskStore):
    """
    In-memory rows, mirrored as a CSV blob in Azure Blob Storage.

    The blob is read once on construction and overwritten on every write.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        swimlanes: Iterable[Swimlane] = (),
        service_client: Optional[BlobServiceClient] = None,
    ) -> None:
        cfg = config or get_config()
        if service_client is None:
            if not cfg.azure_blob_connection_string:
                raise StoreError(
                    "Azure blob connection string is not configured. "
                    "Set EE_AZURE_BLOB_CONNECTION_STRING or pass Config explicitly."
                )
            service_client = BlobServiceClient.from_connection_string(
                cfg.azure_blob_connection_string
            )
        if not cfg.azure_blob_container_name:
            raise StoreError(
                "Azure blob container name is not configured. "
                "Set EE_AZURE_BLOB_CONTAINER_NAME."
            )

        self._blob_client = service_client.get_blob_client(
            container=cfg.azure_blob_container_name, blob=cfg.azure_blob_name
        )
        super().__init__(self._download(), swimlanes)

    def _download(self) -> List[Task]:
        try:
            csv_text = self._blob_client.download_blob().readall().decode("utf-8")
        except ResourceNotFoundError:
            logger.info("Task blob does not exist yet, starting empty")
            return []
        except AzureError as e:
            raise StoreError(f"Failed to download task blob: {e}") from e
        return tasks_from_csv_text(csv_text)

    def _persist(self) -> None:
        csv_bytes = tasks_to_csv_text(self._tasks.values()).encode("utf-8")
        try:
            self._blob_client.upload_blob(csv_bytes, overwrite=True)
        except AzureError as e:
            raise StoreError(f"Failed to upload task blob: {e}") from e


def build_store(config: Optional[Config] = None) -> InMemoryTaskStore:
    """Instantiate the backend selected by Config.task_store."""
    cfg = config or get_config()
    if cfg.task_store == "csv":
        return CsvTaskStore(cfg.task_csv_path)
    if cfg.task_store == "azure_blob":
        return AzureBlobTaskStore(cfg)
    return InMemoryTaskStore()
