from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_STATE_DIR = Path("~/.reshelve").expanduser()
DEFAULT_LOG_DIR = DEFAULT_STATE_DIR / "batches"
LOG_DIR_ENV = "RESHELVE_LOG_DIR"

DEFAULT_SCAN_CONCURRENCY = 64
TOPIC_MAX_FILES = 1000

DEFAULT_PROVIDER_BASE_URL = "https://api.moonshot.cn/v1"
DEFAULT_PROVIDER_MODEL = "kimi-k2-0905-preview"


@dataclass(frozen=True)
class ScanSettings:
    max_concurrency: int = DEFAULT_SCAN_CONCURRENCY

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")


@dataclass(frozen=True)
class ExecutorSettings:
    log_dir: Path = DEFAULT_LOG_DIR

    @classmethod
    def from_env(cls) -> ExecutorSettings:
        value = os.environ.get(LOG_DIR_ENV)
        if value:
            return cls(log_dir=Path(value).expanduser())
        return cls()


@dataclass(frozen=True)
class ProviderConfig:
    api_key: str | None = None
    base_url: str = DEFAULT_PROVIDER_BASE_URL
    model: str = DEFAULT_PROVIDER_MODEL

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> ProviderConfig:
        env = os.environ
        return cls(
            api_key=env.get("KIMI_API_KEY") or env.get("OPENAI_API_KEY") or None,
            base_url=(
                env.get("KIMI_BASE_URL")
                or env.get("OPENAI_BASE_URL")
                or DEFAULT_PROVIDER_BASE_URL
            ),
            model=env.get("KIMI_MODEL") or DEFAULT_PROVIDER_MODEL,
        )
