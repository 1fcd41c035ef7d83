from __future__ import annotations

import os
from dataclasses import dataclass

from .models import FileNode, FileOperation, NodeKind


@dataclass(frozen=True)
class MoveSummary:
    moves: int = 0
    target_directories: int = 0


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


def compute_moves(
    original_root_path: str, proposed_root: FileNode
) -> list[FileOperation]:
    """Return the file moves that turn the original tree into `proposed_root`.

    Directory nodes only contribute their `name` to the destination, so the
    synthetic paths of virtual folders never reach the filesystem. Traversal
    starts at the proposed root's children with `original_root_path` as base.
    """
    operations: list[FileOperation] = []

    def traverse(node: FileNode, current_dir: str) -> None:
        if node.kind == NodeKind.FILE:
            if node.is_virtual:
                raise ValueError(f"file node has no real path: {node.path}")
            destination = os.path.join(current_dir, node.name)
            if _normalize(node.path) != _normalize(destination):
                operations.append(
                    FileOperation(source=node.path, destination=destination)
                )
            return
        next_dir = os.path.join(current_dir, node.name)
        for child in node.children or []:
            traverse(child, next_dir)

    for child in proposed_root.children or []:
        traverse(child, original_root_path)
    return operations


def summarize_operations(operations: list[FileOperation]) -> MoveSummary:
    directories = {os.path.dirname(_normalize(op.destination)) for op in operations}
    return MoveSummary(moves=len(operations), target_directories=len(directories))
