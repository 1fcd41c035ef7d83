from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Protocol

from .errors import UnknownStrategyError
from .models import FileNode
from .topic_strategy import TopicStrategy
from .tree_ops import (
    VirtualPathAllocator,
    clone_tree,
    create_directory,
    flatten_files,
    with_children,
)

OTHERS_CATEGORY = "Others"

TYPE_MAPPING: dict[str, tuple[str, ...]] = {
    "Images": (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg"),
    "Documents": (
        ".pdf",
        ".doc",
        ".docx",
        ".txt",
        ".md",
        ".xls",
        ".xlsx",
        ".ppt",
        ".pptx",
    ),
    "Audio": (".mp3", ".wav", ".ogg", ".m4a", ".flac"),
    "Video": (".mp4", ".mkv", ".mov", ".avi", ".webm"),
    "Code": (
        ".js",
        ".ts",
        ".jsx",
        ".tsx",
        ".html",
        ".css",
        ".json",
        ".py",
        ".java",
        ".c",
        ".cpp",
        ".go",
        ".rs",
    ),
    "Archives": (".zip", ".rar", ".7z", ".tar", ".gz"),
}

CATEGORY_ORDER: tuple[str, ...] = (
    "Images",
    "Documents",
    "Video",
    "Audio",
    "Code",
    "Archives",
    OTHERS_CATEGORY,
)


class OrganizationStrategy(Protocol):
    id: str
    name: str
    description: str

    async def apply(self, root: FileNode) -> FileNode: ...


class TimeStrategy:
    id = "time"
    name = "Organize by Time"
    description = "Groups files by Year and Month (YYYY/MM)."

    async def apply(self, root: FileNode) -> FileNode:
        groups: dict[str, dict[str, list[FileNode]]] = {}
        for file_node in flatten_files(root):
            stamp = datetime.fromtimestamp(file_node.modified_at / 1000)
            year = f"{stamp.year:04d}"
            month = f"{stamp.month:02d}"
            groups.setdefault(year, {}).setdefault(month, []).append(
                clone_tree(file_node)
            )

        allocator = VirtualPathAllocator()
        year_nodes: list[FileNode] = []
        for year in sorted(groups, reverse=True):
            month_nodes = [
                create_directory(month, groups[year][month], allocator=allocator)
                for month in sorted(groups[year], reverse=True)
            ]
            year_nodes.append(create_directory(year, month_nodes, allocator=allocator))
        return with_children(root, year_nodes)


def _category_sort_key(category: str) -> tuple[int, str]:
    if category in CATEGORY_ORDER:
        return (CATEGORY_ORDER.index(category), "")
    return (len(CATEGORY_ORDER), category)


class TypeStrategy:
    id = "type"
    name = "Organize by Type"
    description = "Groups files by category (Images, Documents, etc.)."

    def __init__(self, mapping: Mapping[str, Sequence[str]] | None = None) -> None:
        source = TYPE_MAPPING if mapping is None else mapping
        self.extension_map: dict[str, str] = {}
        for category, extensions in source.items():
            for ext in extensions:
                self.extension_map.setdefault(ext.lower(), category)

    def category_for(self, filename: str) -> str:
        _, ext = os.path.splitext(filename)
        return self.extension_map.get(ext.lower(), OTHERS_CATEGORY)

    async def apply(self, root: FileNode) -> FileNode:
        groups: dict[str, list[FileNode]] = {}
        for file_node in flatten_files(root):
            groups.setdefault(self.category_for(file_node.name), []).append(
                clone_tree(file_node)
            )

        allocator = VirtualPathAllocator()
        children = [
            create_directory(category, groups[category], allocator=allocator)
            for category in sorted(groups, key=_category_sort_key)
        ]
        return with_children(root, children)


_REGISTRY: dict[str, OrganizationStrategy] = {}


def _ensure_defaults() -> None:
    if _REGISTRY:
        return
    for strategy in (TimeStrategy(), TypeStrategy(), TopicStrategy()):
        _REGISTRY[strategy.id] = strategy


def register_strategy(strategy: OrganizationStrategy) -> None:
    _ensure_defaults()
    _REGISTRY[strategy.id] = strategy


def list_strategies() -> list[OrganizationStrategy]:
    _ensure_defaults()
    return list(_REGISTRY.values())


def get_strategy(strategy_id: str) -> OrganizationStrategy:
    for strategy in list_strategies():
        if strategy.id == strategy_id:
            return strategy
    raise UnknownStrategyError(strategy_id)
