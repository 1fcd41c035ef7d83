from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable

from .config import TOPIC_MAX_FILES
from .errors import (
    ClassificationUnavailableError,
    MalformedClassificationError,
    StrategyInputTooLargeError,
)
from .llm_client import ChatClient, create_chat_client
from .models import FileNode
from .tree_ops import (
    VirtualPathAllocator,
    clone_tree,
    create_directory,
    flatten_files,
    with_children,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
SYSTEM_PROMPT = "You are a helpful assistant that outputs only valid JSON."
PROMPT_TEMPLATE = """You are an intelligent file organizer.
Group the following list of filenames into distinct, coherent topics (e.g., "Invoices", "Personal Photos", "Project Alpha", "Random").
Return ONLY a JSON object where keys are Topic Names and values are arrays of exact filenames.
Do not hallucinate filenames.

Files:
{files}
"""

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_UNSAFE_NAME_RE = re.compile(r"[\\/\x00]+")


def strip_code_fences(content: str) -> str:
    return _FENCE_RE.sub("", content).strip()


def parse_topic_mapping(content: str | None) -> dict[str, list[str]]:
    if content is None or not content.strip():
        raise MalformedClassificationError("No response from AI")
    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise MalformedClassificationError("AI response was not valid JSON.") from exc
    if not isinstance(data, dict):
        raise MalformedClassificationError("AI response was not a JSON object.")

    mapping: dict[str, list[str]] = {}
    for topic, names in data.items():
        if not isinstance(names, list):
            logger.debug("ignoring topic %r with non-list value", topic)
            continue
        mapping[str(topic)] = [name for name in names if isinstance(name, str)]
    return mapping


def _topic_dir_name(topic: str) -> str:
    name = _UNSAFE_NAME_RE.sub("-", topic).strip().strip(".")
    return name or UNCATEGORIZED


class TopicStrategy:
    id = "topic"
    name = "Organize by Topic (AI)"
    description = "Uses AI to group files into semantic topics based on filenames."

    def __init__(
        self,
        client_factory: Callable[[], ChatClient | None] = create_chat_client,
        *,
        max_files: int = TOPIC_MAX_FILES,
    ) -> None:
        self.client_factory = client_factory
        self.max_files = max_files

    def build_messages(self, filenames: list[str]) -> list[dict[str, str]]:
        prompt = PROMPT_TEMPLATE.format(
            files=json.dumps(filenames, ensure_ascii=False)
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    async def apply(self, root: FileNode) -> FileNode:
        client = self.client_factory()
        if client is None:
            raise ClassificationUnavailableError(
                "AI organization requires KIMI_API_KEY or OPENAI_API_KEY "
                "environment variables."
            )

        files = flatten_files(root)
        if len(files) > self.max_files:
            raise StrategyInputTooLargeError(
                f"Too many files for AI organization: {len(files)} > {self.max_files}"
            )

        by_name: dict[str, list[FileNode]] = {}
        for file_node in files:
            by_name.setdefault(file_node.name, []).append(file_node)
        filenames = list(by_name)

        try:
            content = await client.complete(
                self.build_messages(filenames), temperature=0.1, json_mode=True
            )
            mapping = parse_topic_mapping(content)
        except Exception as exc:
            logger.error("Topic organization failed: %s", exc)
            raise

        allocator = VirtualPathAllocator()
        handled: set[str] = set()
        buckets: dict[str, list[FileNode]] = {}
        for topic, names in mapping.items():
            for name in names:
                if name in handled:
                    continue
                nodes = by_name.get(name)
                if nodes is None:
                    logger.debug(
                        "ignoring unknown filename %r from topic %r", name, topic
                    )
                    continue
                handled.add(name)
                buckets.setdefault(_topic_dir_name(topic), []).extend(
                    clone_tree(node) for node in nodes
                )

        leftovers = [clone_tree(node) for node in files if node.name not in handled]
        children: list[FileNode] = []
        for topic, nodes in buckets.items():
            if topic == UNCATEGORIZED:
                continue
            children.append(create_directory(topic, nodes, allocator=allocator))
        trailing = buckets.get(UNCATEGORIZED, []) + leftovers
        if trailing:
            children.append(
                create_directory(UNCATEGORIZED, trailing, allocator=allocator)
            )
        return with_children(root, children)
