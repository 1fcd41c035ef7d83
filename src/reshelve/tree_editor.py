from __future__ import annotations

import logging

from .models import FileNode, NodeKind
from .tree_ops import clone_tree, find_node, insert_node, recompute_sizes, remove_node

logger = logging.getLogger(__name__)


def move_node(
    tree: FileNode, source_path: str, target_directory_path: str
) -> FileNode:
    """Return a copy of `tree` with `source_path` appended to the target folder.

    The input tree is never mutated. Moves that cannot be honoured (unknown
    source, unknown or non-directory target, moving the root, or moving a
    folder into itself) return `tree` unchanged.
    """
    node = find_node(tree, source_path)
    if node is None:
        return tree
    if node is tree:
        logger.warning("Refusing to move the root node %s", source_path)
        return tree

    target = find_node(tree, target_directory_path)
    if target is None or target.kind != NodeKind.DIRECTORY:
        logger.warning(
            "Move target %s is not a directory in the tree; keeping %s in place",
            target_directory_path,
            source_path,
        )
        return tree
    if find_node(node, target_directory_path) is not None:
        logger.warning(
            "Cannot move %s into its own subtree %s",
            source_path,
            target_directory_path,
        )
        return tree

    updated = clone_tree(tree)
    moved = remove_node(updated, source_path)
    assert moved is not None
    inserted = insert_node(updated, target_directory_path, moved)
    assert inserted
    recompute_sizes(updated)
    return updated
