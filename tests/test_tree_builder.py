from reshelve.text_utils import format_size, normalize_text
from reshelve.tree_builder import _file_label, _folder_label, build_tree

from conftest import mk_dir, mk_file


def test_folder_label_shows_file_count_and_size() -> None:
    node = mk_dir(
        "/data/docs",
        [
            mk_file("/data/docs/a.txt", size=1024),
            mk_dir("/data/docs/old", [mk_file("/data/docs/old/b.txt", size=512)]),
        ],
    )

    assert _folder_label(node).plain == "docs  2 files, 1.5 KB"


def test_folder_label_singular_for_one_file() -> None:
    node = mk_dir("/data/docs", [mk_file("/data/docs/a.txt", size=3)])

    assert _folder_label(node).plain == "docs  1 file, 3 B"


def test_file_label_uses_readable_size() -> None:
    assert _file_label(mk_file("/data/a.bin", size=5 * 1024 * 1024)).plain == (
        "a.bin  5.0 MB"
    )


def test_build_tree_collapses_below_depth() -> None:
    root = mk_dir(
        "/data",
        [
            mk_dir(
                "/data/2024",
                [mk_dir("/data/2024/11", [mk_file("/data/2024/11/a.txt")])],
            ),
            mk_file("/data/top.txt"),
        ],
    )

    full = build_tree(root)
    shallow = build_tree(root, max_depth=1)

    assert [child.label.plain.split()[0] for child in full.children] == [
        "2024",
        "top.txt",
    ]
    assert len(full.children[0].children) == 1
    assert len(full.children[0].children[0].children) == 1
    assert shallow.children[0].children == []


def test_format_size_units() -> None:
    assert format_size(0) == "0 B"
    assert format_size(1023) == "1023 B"
    assert format_size(1024) == "1.0 KB"
    assert format_size(3 * 1024**3) == "3.0 GB"
    assert format_size(2 * 1024**4) == "2.0 TB"


def test_normalize_text_replaces_undecodable_bytes() -> None:
    assert normalize_text("caf\udce9") == "caf\ufffd"
    assert normalize_text("café") == "café"
