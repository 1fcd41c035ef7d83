from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

VIRTUAL_SCHEME = "virtual://"


class NodeKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class FileNode:
    path: str
    name: str
    kind: NodeKind
    size: int
    modified_at: int
    children: list[FileNode] | None = None

    def __post_init__(self) -> None:
        if self.kind == NodeKind.FILE and self.children is not None:
            raise ValueError(f"file node cannot have children: {self.path}")
        if self.kind == NodeKind.DIRECTORY and self.children is None:
            self.children = []

    @property
    def is_dir(self) -> bool:
        return self.kind == NodeKind.DIRECTORY

    @property
    def is_virtual(self) -> bool:
        return self.path.startswith(VIRTUAL_SCHEME)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "path": self.path,
            "name": self.name,
            "type": self.kind.value,
            "size": self.size,
            "mtime": self.modified_at,
        }
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> FileNode:
        kind = NodeKind(str(data["type"]))
        raw_children = data.get("children")
        children = None
        if kind == NodeKind.DIRECTORY:
            if raw_children is not None and not isinstance(raw_children, list):
                raise ValueError(f"children must be a list: {data.get('path')}")
            children = [cls.from_dict(child) for child in raw_children or []]
        elif raw_children is not None:
            raise ValueError(f"file node cannot have children: {data.get('path')}")
        return cls(
            path=str(data["path"]),
            name=str(data["name"]),
            kind=kind,
            size=int(data["size"]),
            modified_at=int(data["mtime"]),
            children=children,
        )


@dataclass(frozen=True)
class ScanResult:
    root: FileNode
    file_count: int
    total_size: int


@dataclass(frozen=True)
class FileOperation:
    source: str
    destination: str
    kind: str = "move"


@dataclass(frozen=True)
class ExecuteResult:
    success: bool
    processed: int
    errors: list[str] = field(default_factory=list)


@dataclass
class BatchLogEntry:
    timestamp: int
    operations: list[dict[str, str]] = field(default_factory=list)
    created_directories: list[str] = field(default_factory=list)
    completed: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "operations": [dict(op) for op in self.operations],
            "created_directories": list(self.created_directories),
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> BatchLogEntry:
        raw_ops = data.get("operations")
        if not isinstance(raw_ops, list):
            raise ValueError("batch log operations must be a list")
        operations: list[dict[str, str]] = []
        for item in raw_ops:
            if not isinstance(item, dict):
                raise ValueError("batch log operation must be an object")
            op = {"source": str(item["source"]), "destination": str(item["destination"])}
            if "status" in item:
                op["status"] = str(item["status"])
            operations.append(op)
        return cls(
            timestamp=int(data["timestamp"]),
            operations=operations,
            created_directories=[
                str(item) for item in data.get("created_directories", []) or []
            ],
            completed=bool(data.get("completed", False)),
        )
