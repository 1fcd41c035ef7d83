from __future__ import annotations

import json

import pytest

from reshelve.errors import PlanFileError
from reshelve.plan_file import PLAN_VERSION, Proposal, load_proposal, save_proposal

from conftest import mk_dir, mk_file


def _proposal() -> Proposal:
    tree = mk_dir(
        "/data",
        [
            mk_dir(
                "virtual://Images-abc",
                [mk_file("/data/pic.png", size=7, modified_at=1700000000000)],
                name="Images",
            )
        ],
    )
    return Proposal(root_path="/data", strategy="type", tree=tree)


def test_save_and_load(tmp_path) -> None:
    path = tmp_path / "plans" / "plan.json"
    proposal = _proposal()

    save_proposal(path, proposal)
    loaded = load_proposal(path)

    assert loaded == proposal
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["version"] == PLAN_VERSION
    assert raw["tree"]["children"][0]["type"] == "directory"
    assert raw["tree"]["children"][0]["children"][0]["mtime"] == 1700000000000


def test_missing_file(tmp_path) -> None:
    with pytest.raises(PlanFileError, match="Cannot read"):
        load_proposal(tmp_path / "missing.json")


@pytest.mark.parametrize(
    "content",
    [
        "{broken",
        "[]",
        json.dumps({"version": 99, "root_path": "/data", "tree": {}}),
        json.dumps({"version": PLAN_VERSION, "root_path": "/data"}),
        json.dumps(
            {
                "version": PLAN_VERSION,
                "root_path": "/data",
                "tree": {
                    "path": "/data/a",
                    "name": "a",
                    "type": "file",
                    "size": 0,
                    "mtime": 0,
                    "children": [],
                },
            }
        ),
        json.dumps(
            {
                "version": PLAN_VERSION,
                "root_path": "/data",
                "tree": {"path": "/data", "name": "data", "type": "link"},
            }
        ),
    ],
)
def test_invalid_plans_rejected(tmp_path, content) -> None:
    path = tmp_path / "plan.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(PlanFileError):
        load_proposal(path)
