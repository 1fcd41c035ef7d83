from __future__ import annotations

import asyncio

import pytest

from reshelve.errors import UnknownStrategyError
from reshelve.models import FileNode
from reshelve.strategies import (
    TimeStrategy,
    TypeStrategy,
    get_strategy,
    list_strategies,
)
from reshelve.tree_ops import clone_tree, count_files, flatten_files, iter_nodes

from conftest import mk_dir, mk_file, ms


def _layout(node: FileNode) -> dict[str, object] | str:
    if node.children is None:
        return node.path
    return {child.name: _layout(child) for child in node.children}


def _snapshot() -> FileNode:
    return mk_dir(
        "/data",
        [
            mk_dir(
                "/data/misc",
                [
                    mk_file("/data/misc/song.MP3", size=4, modified_at=ms(2024, 1)),
                    mk_file("/data/misc/notes", size=1, modified_at=ms(2024, 11)),
                ],
            ),
            mk_file("/data/a.txt", size=2, modified_at=ms(2023, 5)),
            mk_file("/data/b.txt", size=3, modified_at=ms(2024, 11)),
            mk_file("/data/pic.png", size=5, modified_at=ms(2023, 12)),
        ],
    )


def test_time_strategy_groups_year_month_newest_first() -> None:
    root = mk_dir(
        "/data",
        [
            mk_file("/data/a.txt", modified_at=ms(2023, 5)),
            mk_file("/data/b.txt", modified_at=ms(2024, 11)),
        ],
    )

    proposed = asyncio.run(TimeStrategy().apply(root))

    assert [child.name for child in proposed.children] == ["2024", "2023"]
    assert _layout(proposed) == {
        "2024": {"11": {"b.txt": "/data/b.txt"}},
        "2023": {"05": {"a.txt": "/data/a.txt"}},
    }
    assert proposed.path == "/data"
    assert proposed.name == "data"


def test_time_strategy_orders_months_descending() -> None:
    proposed = asyncio.run(TimeStrategy().apply(_snapshot()))

    years = {child.name: child for child in proposed.children}
    assert [child.name for child in years["2024"].children] == ["11", "01"]
    assert [child.name for child in years["2023"].children] == ["12", "05"]
    assert years["2024"].size == 8


def test_type_strategy_uses_category_order() -> None:
    proposed = asyncio.run(TypeStrategy().apply(_snapshot()))

    assert [child.name for child in proposed.children] == [
        "Images",
        "Documents",
        "Audio",
        "Others",
    ]
    assert _layout(proposed)["Audio"] == {"song.MP3": "/data/misc/song.MP3"}
    assert _layout(proposed)["Others"] == {"notes": "/data/misc/notes"}


def test_type_strategy_custom_categories_sort_after_known() -> None:
    strategy = TypeStrategy({"Zines": [".zine"], "Books": [".epub"], "Images": [".png"]})
    root = mk_dir(
        "/data",
        [
            mk_file("/data/x.zine"),
            mk_file("/data/y.epub"),
            mk_file("/data/z.png"),
            mk_file("/data/w.bin"),
        ],
    )

    proposed = asyncio.run(strategy.apply(root))

    assert [child.name for child in proposed.children] == [
        "Images",
        "Others",
        "Books",
        "Zines",
    ]


@pytest.mark.parametrize("strategy", [TimeStrategy(), TypeStrategy()])
def test_strategies_do_not_mutate_and_keep_real_paths(strategy) -> None:
    snapshot = _snapshot()
    before = clone_tree(snapshot)

    first = asyncio.run(strategy.apply(snapshot))
    second = asyncio.run(strategy.apply(snapshot))

    assert snapshot == before
    assert count_files(first) == count_files(second) == count_files(snapshot)
    expected = {node.path for node in flatten_files(snapshot)}
    assert {node.path for node in flatten_files(first)} == expected
    assert {node.path for node in flatten_files(second)} == expected
    snapshot_ids = {id(node) for node in iter_nodes(snapshot)}
    assert not snapshot_ids & {id(node) for node in iter_nodes(first)}


def test_virtual_paths_unique_within_apply() -> None:
    proposed = asyncio.run(TimeStrategy().apply(_snapshot()))

    virtual = [node.path for node in iter_nodes(proposed) if node.is_virtual]
    assert len(virtual) == 6
    assert len(set(virtual)) == len(virtual)


def test_registry_lookup() -> None:
    assert [strategy.id for strategy in list_strategies()] == ["time", "type", "topic"]
    assert get_strategy("type").name == "Organize by Type"
    with pytest.raises(UnknownStrategyError):
        get_strategy("size")
