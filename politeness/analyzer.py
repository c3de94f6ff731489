from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Optional

from politeness.errors import AnalyzerDisposedError, AnalyzerNotInitializedError
from politeness.inference_engine import InferenceSession
from politeness.interpreter import NO_TEXT_DESCRIPTION, describe, interpret
from politeness.politeness_types import PolitenessAnalysisResponse, PolitenessLevel, ReadyState
from politeness.readiness import ReadinessCoordinator, SharedResources, get_coordinator

logger = logging.getLogger(__name__)


class PolitenessAnalyzer:
    """
    One analyzer = one exclusively owned inference session.

    - create() waits for shared readiness, then opens the session
    - analyze() runs encode -> model -> interpret on a worker thread
    - dispose() releases the session; safe to call repeatedly

    Use as a (async) context manager to guarantee release:

        async with await PolitenessAnalyzer.create() as analyzer:
            response = await analyzer.analyze("Thank you!")
    """

    def __init__(self, resources: SharedResources, session: Optional[InferenceSession]):
        self._resources = resources
        self._session = session
        self._disposed = False
        self._dispose_lock = threading.Lock()

    @classmethod
    async def create(cls, coordinator: Optional[ReadinessCoordinator] = None) -> "PolitenessAnalyzer":
        """
        Raises:
            Exception: the error that failed the readiness attempt
        """
        coordinator = coordinator or get_coordinator()
        if coordinator.get_state() is not ReadyState.READY:
            result = await coordinator.ensure_ready()
            if not result.ok:
                raise result.error or AnalyzerNotInitializedError("Failed to initialize PolitenessAnalyzer")

        resources = coordinator.shared_resources()
        opening = asyncio.ensure_future(asyncio.to_thread(resources.engine.open_session, resources.model_path))
        try:
            session = await asyncio.shield(opening)
        except asyncio.CancelledError:
            opening.add_done_callback(_close_orphaned_session)
            raise
        return cls(resources, session)

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def analyze(self, text: Optional[str]) -> PolitenessAnalysisResponse:
        """
        Classify one text.

        Rules:
        - None/empty/blank -> neutral, "No text to analyze", 0 ms (model not called)

        Raises:
            AnalyzerDisposedError: after dispose()
            AnalyzerNotInitializedError: if the analyzer holds no session
        """
        self._ensure_not_disposed()

        if text is None or not str(text).strip():
            return PolitenessAnalysisResponse(
                level=PolitenessLevel.NEUTRAL,
                description=NO_TEXT_DESCRIPTION,
                inference_time_ms=0,
            )

        if self._session is None:
            raise AnalyzerNotInitializedError("Analyzer not initialized properly")

        started = time.perf_counter()
        level = await asyncio.to_thread(self._run_inference, str(text))
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        return PolitenessAnalysisResponse(
            level=level,
            description=describe(level),
            inference_time_ms=max(0, elapsed_ms),
        )

    def _run_inference(self, text: str) -> PolitenessLevel:
        session = self._session
        if self._disposed or session is None:
            raise AnalyzerDisposedError()

        encoded = self._resources.encoder.encode(text, self._resources.max_sequence_length)
        logits = session.run(*encoded.as_arrays())
        level, confidence = interpret(logits)
        logger.debug("Politeness inference: level=%s confidence=%.3f", level, confidence)
        return level

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise AnalyzerDisposedError()

    def dispose(self) -> None:
        """Release the inference session. Idempotent; never raises."""
        with self._dispose_lock:
            if self._disposed:
                return
            self._disposed = True
            session, self._session = self._session, None

        if session is None:
            return
        try:
            session.close()
        except Exception:
            logger.exception("Failed to close inference session")

    def __enter__(self) -> "PolitenessAnalyzer":
        self._ensure_not_disposed()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    async def __aenter__(self) -> "PolitenessAnalyzer":
        self._ensure_not_disposed()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.dispose()


def _close_orphaned_session(opening: "asyncio.Future[InferenceSession]") -> None:
    if opening.cancelled() or opening.exception() is not None:
        return
    try:
        opening.result().close()
    except Exception:
        logger.exception("Failed to close inference session of a cancelled create()")
    else:
        logger.info("Closed inference session of a cancelled create()")


async def create_analyzer(coordinator: Optional[ReadinessCoordinator] = None) -> PolitenessAnalyzer:
    return await PolitenessAnalyzer.create(coordinator)
