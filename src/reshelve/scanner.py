from __future__ import annotations

import asyncio
import logging
import os
import stat
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from .config import ScanSettings
from .errors import ScanRootError
from .models import FileNode, NodeKind, ScanResult
from .tree_ops import sort_children

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _Scanned:
    node: FileNode
    count: int
    size: int


def _node_kind(st_mode: int) -> NodeKind | None:
    if stat.S_ISDIR(st_mode):
        return NodeKind.DIRECTORY
    if stat.S_ISREG(st_mode):
        return NodeKind.FILE
    return None


def _mtime_ms(st: os.stat_result) -> int:
    return st.st_mtime_ns // 1_000_000


def _list_names(path: str) -> list[str]:
    with os.scandir(path) as entries:
        return [entry.name for entry in entries]


class LocalScanner:
    def __init__(self, settings: ScanSettings | None = None) -> None:
        self.settings = settings or ScanSettings()
        self._limit: asyncio.Semaphore | None = None

    async def scan(self, directory_path: str | Path) -> ScanResult:
        root_path = os.path.abspath(os.path.expanduser(str(directory_path)))
        self._limit = asyncio.Semaphore(self.settings.max_concurrency)
        try:
            st = await self._blocking(os.stat, root_path)
        except OSError as exc:
            raise ScanRootError(root_path, exc.strerror or str(exc)) from exc

        scanned = await self._scan_stat(root_path, st)
        if scanned is None:
            raise ScanRootError(
                root_path, "unreadable or not a regular file or directory"
            )
        logger.debug(
            "scanned %s: files=%d size=%d", root_path, scanned.count, scanned.size
        )
        return ScanResult(
            root=scanned.node, file_count=scanned.count, total_size=scanned.size
        )

    async def scan_many(self, paths: Iterable[str | Path]) -> list[ScanResult]:
        return [await self.scan(path) for path in paths]

    async def count_files(self, paths: Iterable[str | Path]) -> int:
        results = await self.scan_many(paths)
        return sum(result.file_count for result in results)

    async def _blocking(self, func: Callable[..., T], *args: object) -> T:
        assert self._limit is not None
        async with self._limit:
            return await asyncio.to_thread(func, *args)

    async def _scan_entry(self, path: str) -> _Scanned | None:
        try:
            st = await self._blocking(os.lstat, path)
        except OSError as exc:
            logger.warning("Failed to access %s: %s", path, exc)
            return None
        return await self._scan_stat(path, st)

    async def _scan_stat(self, path: str, st: os.stat_result) -> _Scanned | None:
        name = os.path.basename(path) or path
        kind = _node_kind(st.st_mode)
        if kind is None:
            logger.debug("skipping special entry %s", path)
            return None

        if kind == NodeKind.FILE:
            node = FileNode(
                path=path,
                name=name,
                kind=NodeKind.FILE,
                size=st.st_size,
                modified_at=_mtime_ms(st),
            )
            return _Scanned(node=node, count=1, size=st.st_size)

        try:
            names = await self._blocking(_list_names, path)
        except OSError as exc:
            logger.warning("Failed to read directory %s: %s", path, exc)
            return None

        results = await asyncio.gather(
            *(self._scan_entry(os.path.join(path, child)) for child in names)
        )
        children: list[FileNode] = []
        count = 0
        size = 0
        for result in results:
            if result is None:
                continue
            children.append(result.node)
            count += result.count
            size += result.size
        sort_children(children)

        node = FileNode(
            path=path,
            name=name,
            kind=NodeKind.DIRECTORY,
            size=size,
            modified_at=_mtime_ms(st),
            children=children,
        )
        return _Scanned(node=node, count=count, size=size)
