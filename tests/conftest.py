from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

from reshelve.models import FileNode, NodeKind


def ms(year: int, month: int, day: int = 15) -> int:
    return int(datetime(year, month, day, 12, 0).timestamp() * 1000)


def mk_file(
    path: str,
    *,
    size: int = 0,
    modified_at: int = 0,
) -> FileNode:
    return FileNode(
        path=path,
        name=os.path.basename(path),
        kind=NodeKind.FILE,
        size=size,
        modified_at=modified_at,
    )


def mk_dir(
    path: str,
    children: list[FileNode] | None = None,
    *,
    name: str | None = None,
) -> FileNode:
    items = list(children or [])
    return FileNode(
        path=path,
        name=name if name is not None else os.path.basename(path),
        kind=NodeKind.DIRECTORY,
        size=sum(child.size for child in items),
        modified_at=0,
        children=items,
    )


def write_tree(root: Path, files: dict[str, str]) -> None:
    for relpath, content in files.items():
        target = root / relpath
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


def set_mtime(path: Path, modified_ms: int) -> None:
    seconds = modified_ms / 1000
    os.utime(path, (seconds, seconds))


class FakeChatClient:
    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict[str, object]] = []

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> str | None:
        self.calls.append(
            {"messages": messages, "temperature": temperature, "json_mode": json_mode}
        )
        if self.error is not None:
            raise self.error
        return self.reply
