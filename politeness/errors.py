from __future__ import annotations


class PolitenessAnalyzerError(Exception):
    """Base class for analyzer failures."""


class ModelNotFoundError(PolitenessAnalyzerError, FileNotFoundError):
    """The model artifact could not be located during initialization."""


class AnalyzerNotInitializedError(PolitenessAnalyzerError, RuntimeError):
    """Shared resources or the inference session are missing."""


class AnalyzerDisposedError(PolitenessAnalyzerError, RuntimeError):
    """An operation was invoked on an analyzer that was already disposed."""

    def __init__(self, message: str = "PolitenessAnalyzer has already been disposed"):
        super().__init__(message)
