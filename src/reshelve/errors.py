from __future__ import annotations


class ReshelveError(Exception):
    pass


class ScanRootError(ReshelveError, FileNotFoundError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to scan directory {path}: {reason}")
        self.path = path


class StrategyError(ReshelveError):
    pass


class UnknownStrategyError(StrategyError, KeyError):
    def __init__(self, strategy_id: str) -> None:
        super().__init__(f"Unknown strategy: {strategy_id}")
        self.strategy_id = strategy_id

    def __str__(self) -> str:
        return str(self.args[0])


class ClassificationUnavailableError(StrategyError):
    pass


class MalformedClassificationError(StrategyError):
    pass


class StrategyInputTooLargeError(StrategyError):
    pass


class PlanFileError(ReshelveError, ValueError):
    pass
