from __future__ import annotations

from rich.text import Text
from rich.tree import Tree

from .models import FileNode, NodeKind
from .text_utils import format_size, normalize_text
from .tree_ops import count_files


def _folder_label(node: FileNode) -> Text:
    files = count_files(node)
    summary = f"{files} file{'s' if files != 1 else ''}, {format_size(node.size)}"
    return Text.assemble(
        (normalize_text(node.name), "bold"), "  ", (summary, "cyan")
    )


def _file_label(node: FileNode) -> Text:
    return Text.assemble(
        (normalize_text(node.name), "white"), "  ", (format_size(node.size), "green")
    )


def build_tree(root: FileNode, *, max_depth: int | None = None) -> Tree:
    """Render `root` as a rich Tree, folders collapsed below `max_depth`."""
    tree = Tree(_folder_label(root), guide_style="dim")

    def add_children(parent: Tree, node: FileNode, depth: int) -> None:
        for child in node.children or []:
            if child.kind == NodeKind.DIRECTORY:
                branch = parent.add(_folder_label(child))
                if max_depth is None or depth < max_depth:
                    add_children(branch, child, depth + 1)
            else:
                parent.add(_file_label(child))

    add_children(tree, root, 1)
    return tree
