"""Shared fakes for the inference engine so tests need no model files."""

from __future__ import annotations

import threading
from typing import Callable, Optional, Sequence

import numpy as np
import pytest

from politeness.readiness import ReadinessCoordinator
from politeness.settings import AnalyzerSettings

# softmax -> roughly [0.04, 0.04, 0.87, 0.04]: confident polite
POLITE_LOGITS = [0.0, 0.0, 3.0, 0.0]
IMPOLITE_LOGITS = [0.0, 0.0, 0.0, 5.0]


class FakeSession:
    def __init__(self, logits: Callable[[np.ndarray], Sequence[float]]):
        self._logits = logits
        self.calls: list[tuple[np.ndarray, np.ndarray, np.ndarray]] = []
        self.close_calls = 0
        self.fail_on_close = False

    def run(self, input_ids, attention_mask, token_type_ids):
        self.calls.append((input_ids, attention_mask, token_type_ids))
        return list(self._logits(input_ids))

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_on_close:
            raise RuntimeError("close failed")


class FakeEngine:
    def __init__(self, logits: Optional[Callable[[np.ndarray], Sequence[float]]] = None):
        self._logits = logits or (lambda _ids: POLITE_LOGITS)
        self.sessions: list[FakeSession] = []
        self._lock = threading.Lock()

    def open_session(self, model_path: str) -> FakeSession:
        session = FakeSession(self._logits)
        with self._lock:
            self.sessions.append(session)
        return session


@pytest.fixture
def test_settings() -> AnalyzerSettings:
    return AnalyzerSettings(
        model_path="unused",
        model_version="test-v1",
        max_sequence_length=16,
        device="cpu",
        _env_file=None,
    )


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def coordinator(test_settings, fake_engine) -> ReadinessCoordinator:
    return ReadinessCoordinator(
        settings=test_settings,
        engine_factory=lambda: fake_engine,
        path_resolver=lambda: "/models/fake",
    )
