from __future__ import annotations

import copy
import secrets
import time
from collections.abc import Iterator

from .models import VIRTUAL_SCHEME, FileNode, NodeKind


def iter_nodes(node: FileNode) -> Iterator[FileNode]:
    """Yield `node` and all of its descendants in pre-order."""
    yield node
    for child in node.children or []:
        yield from iter_nodes(child)


def flatten_files(node: FileNode) -> list[FileNode]:
    return [item for item in iter_nodes(node) if item.kind == NodeKind.FILE]


def count_files(node: FileNode) -> int:
    return sum(1 for _ in flatten_files(node))


def total_size(node: FileNode) -> int:
    return sum(item.size for item in flatten_files(node))


def clone_tree(node: FileNode) -> FileNode:
    return copy.deepcopy(node)


def sort_children(children: list[FileNode]) -> None:
    children.sort(key=lambda child: (child.kind != NodeKind.DIRECTORY, child.name))


def recompute_sizes(node: FileNode) -> int:
    if node.kind == NodeKind.FILE:
        return node.size
    node.size = sum(recompute_sizes(child) for child in node.children or [])
    return node.size


def find_node(node: FileNode, path: str) -> FileNode | None:
    for item in iter_nodes(node):
        if item.path == path:
            return item
    return None


def remove_node(node: FileNode, path: str) -> FileNode | None:
    """Detach the first pre-order match of `path` below `node`, in place."""
    children = node.children or []
    for index, child in enumerate(children):
        if child.path == path:
            return children.pop(index)
        removed = remove_node(child, path)
        if removed is not None:
            return removed
    return None


def insert_node(node: FileNode, target_path: str, child: FileNode) -> bool:
    target = find_node(node, target_path)
    if target is None or target.kind != NodeKind.DIRECTORY:
        return False
    assert target.children is not None
    target.children.append(child)
    return True


class VirtualPathAllocator:
    """Issues `virtual://<name>-<suffix>` keys, unique per allocator."""

    def __init__(self) -> None:
        self.issued: set[str] = set()

    def allocate(self, name: str) -> str:
        while True:
            candidate = f"{VIRTUAL_SCHEME}{name}-{secrets.token_hex(5)}"
            if candidate not in self.issued:
                self.issued.add(candidate)
                return candidate


def create_directory(
    name: str,
    children: list[FileNode] | None = None,
    *,
    allocator: VirtualPathAllocator,
) -> FileNode:
    items = list(children or [])
    return FileNode(
        path=allocator.allocate(name),
        name=name,
        kind=NodeKind.DIRECTORY,
        size=sum(child.size for child in items),
        modified_at=int(time.time() * 1000),
        children=items,
    )


def with_children(root: FileNode, children: list[FileNode]) -> FileNode:
    """Return a new root keeping `root` identity but owning `children`."""
    return FileNode(
        path=root.path,
        name=root.name,
        kind=NodeKind.DIRECTORY,
        size=sum(child.size for child in children),
        modified_at=root.modified_at,
        children=children,
    )
