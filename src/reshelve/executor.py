from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import TypeAlias

from .config import ExecutorSettings
from .models import BatchLogEntry, ExecuteResult, FileOperation

logger = logging.getLogger(__name__)

LOG_PREFIX = "batch-"
LOG_SUFFIX = ".json"
NO_UNDO_HISTORY = "No undo history found"
STATUS_PENDING = "pending"
STATUS_DONE = "done"

ProgressCallback: TypeAlias = "Callable[[int, int, FileOperation, bool, str | None], None]"


def unique_destination(target: str) -> str:
    """Return `target`, or `name (n).ext` with the first free `n`."""
    if not os.path.lexists(target):
        return target
    directory, filename = os.path.split(target)
    stem, ext = os.path.splitext(filename)
    index = 1
    while True:
        candidate = os.path.join(directory, f"{stem} ({index}){ext}")
        if not os.path.lexists(candidate):
            return candidate
        index += 1


def _never_moved(op: dict[str, str]) -> bool:
    return not os.path.lexists(op["destination"]) and os.path.lexists(op["source"])


def _missing_parents(path: Path) -> list[Path]:
    missing: list[Path] = []
    current = path
    while not current.exists() and current != current.parent:
        missing.append(current)
        current = current.parent
    return missing


def _write_json_atomic(path: Path, payload: dict[str, object]) -> None:
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.stem}-",
        suffix=".tmp",
        delete=False,
    ) as handle:
        json.dump(payload, handle, indent=2)
        tmp_path = Path(handle.name)
    os.replace(tmp_path, path)


class BatchExecutor:
    def __init__(self, settings: ExecutorSettings | None = None) -> None:
        self.settings = settings or ExecutorSettings()

    @property
    def log_dir(self) -> Path:
        return self.settings.log_dir

    def _ensure_log_dir(self) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def _new_log_path(self, timestamp: int) -> Path:
        seq = 0
        while True:
            name = f"{LOG_PREFIX}{timestamp:013d}-{seq:04d}{LOG_SUFFIX}"
            candidate = self.log_dir / name
            if not candidate.exists():
                return candidate
            seq += 1

    def log_files(self) -> list[Path]:
        """Batch logs, newest first."""
        if not self.log_dir.is_dir():
            return []
        return sorted(
            (
                path
                for path in self.log_dir.iterdir()
                if path.name.startswith(LOG_PREFIX) and path.name.endswith(LOG_SUFFIX)
            ),
            key=lambda path: path.name,
            reverse=True,
        )

    def execute(
        self,
        operations: list[FileOperation],
        progress_cb: ProgressCallback | None = None,
    ) -> ExecuteResult:
        self._ensure_log_dir()
        timestamp = int(time.time() * 1000)
        entry = BatchLogEntry(timestamp=timestamp)
        log_path = self._new_log_path(timestamp)
        _write_json_atomic(log_path, entry.to_dict())

        errors: list[str] = []
        total = len(operations)
        for index, op in enumerate(operations, start=1):
            error: str | None = None
            record: dict[str, str] | None = None
            try:
                if op.kind != "move":
                    raise ValueError(f"unsupported operation kind: {op.kind}")
                destination = self._prepare_destination(op, entry)
                record = {
                    "source": op.source,
                    "destination": destination,
                    "status": STATUS_PENDING,
                }
                entry.operations.append(record)
                _write_json_atomic(log_path, entry.to_dict())
                os.rename(op.source, destination)
            except Exception as exc:  # noqa: BLE001
                if record is not None:
                    entry.operations.remove(record)
                error = str(exc)
                errors.append(f"Failed to move {op.source}: {error}")
                logger.error("Failed to move %s: %s", op.source, error)
            else:
                record["status"] = STATUS_DONE
                logger.info("MOVE %s -> %s", op.source, record["destination"])
                self._save_log(log_path, entry, errors)

            if progress_cb is not None:
                progress_cb(index, total, op, error is None, error)

        if entry.operations:
            entry.completed = True
            if self._save_log(log_path, entry, errors):
                logger.info("Batch log written: %s", log_path)
        else:
            log_path.unlink(missing_ok=True)

        return ExecuteResult(
            success=not errors, processed=len(entry.operations), errors=errors
        )

    def _save_log(
        self, log_path: Path, entry: BatchLogEntry, errors: list[str]
    ) -> bool:
        try:
            _write_json_atomic(log_path, entry.to_dict())
        except OSError as exc:
            errors.append(f"Failed to update batch log {log_path.name}: {exc}")
            logger.error("Failed to update batch log %s: %s", log_path, exc)
            return False
        return True

    def _prepare_destination(self, op: FileOperation, entry: BatchLogEntry) -> str:
        parent = Path(op.destination).parent
        created = _missing_parents(parent)
        parent.mkdir(parents=True, exist_ok=True)
        for directory in reversed(created):
            if str(directory) not in entry.created_directories:
                entry.created_directories.append(str(directory))
        return unique_destination(op.destination)

    def undo_last_batch(self) -> ExecuteResult:
        for log_path in self.log_files():
            try:
                entry = BatchLogEntry.from_dict(
                    json.loads(log_path.read_text(encoding="utf-8"))
                )
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.error("Unreadable batch log %s: %s", log_path, exc)
                return ExecuteResult(
                    success=False,
                    processed=0,
                    errors=[f"Unreadable batch log {log_path.name}: {exc}"],
                )

            if not entry.completed:
                entry.operations = [
                    op for op in entry.operations if not _never_moved(op)
                ]
                if not entry.operations:
                    logger.warning(
                        "Discarding interrupted batch log %s: nothing was moved",
                        log_path.name,
                    )
                    log_path.unlink()
                    self._remove_created_directories(entry)
                    continue
                logger.warning(
                    "Batch %s was interrupted, reverting its logged moves",
                    log_path.name,
                )
            return self._undo_batch(log_path, entry)

        return ExecuteResult(success=False, processed=0, errors=[NO_UNDO_HISTORY])

    def _undo_batch(self, log_path: Path, entry: BatchLogEntry) -> ExecuteResult:
        errors: list[str] = []
        pending: list[dict[str, str]] = []
        processed = 0
        for op in reversed(entry.operations):
            source = op["source"]
            destination = op["destination"]
            if _never_moved(op):
                logger.debug("already reverted: %s", source)
                continue
            try:
                if os.path.lexists(source):
                    raise FileExistsError(f"original path is occupied: {source}")
                Path(source).parent.mkdir(parents=True, exist_ok=True)
                os.rename(destination, source)
                processed += 1
                logger.info("UNDO %s -> %s", destination, source)
            except Exception as exc:  # noqa: BLE001
                errors.append(f"Failed to revert {destination}: {exc}")
                logger.error("Failed to revert %s: %s", destination, exc)
                pending.append(op)

        if errors:
            entry.operations = list(reversed(pending))
            _write_json_atomic(log_path, entry.to_dict())
            logger.warning(
                "Undo incomplete, %d operation(s) kept in %s", len(pending), log_path
            )
        else:
            log_path.unlink()
            self._remove_created_directories(entry)
            logger.info("Batch %s undone", log_path.name)

        return ExecuteResult(success=not errors, processed=processed, errors=errors)

    def _remove_created_directories(self, entry: BatchLogEntry) -> None:
        for directory in sorted(entry.created_directories, key=len, reverse=True):
            try:
                os.rmdir(directory)
            except OSError as exc:
                logger.debug("keeping directory %s: %s", directory, exc)
