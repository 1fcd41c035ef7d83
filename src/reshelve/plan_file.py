from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from .errors import PlanFileError
from .models import FileNode

PLAN_VERSION = 1


@dataclass(frozen=True)
class Proposal:
    root_path: str
    strategy: str
    tree: FileNode


def save_proposal(path: Path, proposal: Proposal) -> None:
    payload = {
        "version": PLAN_VERSION,
        "root_path": proposal.root_path,
        "strategy": proposal.strategy,
        "tree": proposal.tree.to_dict(),
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
    )


def load_proposal(path: Path) -> Proposal:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise PlanFileError(f"Cannot read plan file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise PlanFileError(f"Plan file {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise PlanFileError(f"Plan file {path} must contain a JSON object")
    version = data.get("version")
    if version != PLAN_VERSION:
        raise PlanFileError(f"Unsupported plan file version: {version!r}")

    try:
        tree = FileNode.from_dict(data["tree"])
        root_path = str(data["root_path"])
        strategy = str(data.get("strategy", ""))
    except (KeyError, TypeError, ValueError) as exc:
        raise PlanFileError(f"Malformed plan file {path}: {exc}") from exc
    return Proposal(root_path=root_path, strategy=strategy, tree=tree)
