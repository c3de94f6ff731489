from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional

from politeness.errors import AnalyzerNotInitializedError
from politeness.inference_engine import InferenceEngine, TorchInferenceEngine, resolve_model_path
from politeness.politeness_types import ReadyResult, ReadyState
from politeness.settings import AnalyzerSettings, load_settings
from politeness.tokenizer import VocabularyEncoder

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], InferenceEngine]
PathResolver = Callable[[], str]
StatusCallback = Callable[[str], None]


@dataclass(frozen=True)
class SharedResources:
    """Built once per coordinator, read-only afterwards."""

    encoder: VocabularyEncoder
    engine: InferenceEngine
    model_path: str
    max_sequence_length: int


class ReadinessCoordinator:
    """
    One-time, thread-safe setup of the resources every analyzer shares.

    State machine:
      NOT_READY -> INITIALIZING -> READY
      INITIALIZING -> NOT_READY on failure (a later call retries from scratch)

    Single-flight: while an attempt is running every caller awaits the same
    future and receives the same ReadyResult object. After success the
    completed future is kept and handed out as-is.
    """

    def __init__(
        self,
        settings: Optional[AnalyzerSettings] = None,
        engine_factory: Optional[EngineFactory] = None,
        path_resolver: Optional[PathResolver] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        self._settings = settings or load_settings()
        self._engine_factory = engine_factory or (lambda: TorchInferenceEngine(self._settings.device))
        self._path_resolver = path_resolver or (lambda: resolve_model_path(self._settings.model_path))
        self._on_status = on_status

        self._lock = threading.Lock()
        self._state = ReadyState.NOT_READY
        self._outcome: Optional[Future[ReadyResult]] = None
        self._resources: Optional[SharedResources] = None

    def get_state(self) -> ReadyState:
        with self._lock:
            return self._state

    def start(self) -> Future[ReadyResult]:
        """
        Start initialization if nobody has, and return the shared outcome.

        Never blocks on the initialization work itself.
        """
        with self._lock:
            if self._outcome is not None:
                return self._outcome

            outcome: Future[ReadyResult] = Future()
            self._outcome = outcome
            self._state = ReadyState.INITIALIZING

        threading.Thread(
            target=self._initialize,
            args=(outcome,),
            name="politeness-init",
            daemon=True,
        ).start()
        return outcome

    async def ensure_ready(self) -> ReadyResult:
        # shield: a cancelled waiter must not cancel the attempt other callers share
        return await asyncio.shield(asyncio.wrap_future(self.start()))

    def shared_resources(self) -> SharedResources:
        """
        Raises:
            AnalyzerNotInitializedError: if readiness has not been reached
        """
        with self._lock:
            if self._resources is None:
                raise AnalyzerNotInitializedError("Shared resources not initialized")
            return self._resources

    def _initialize(self, outcome: Future[ReadyResult]) -> None:
        logger.info("Initializing politeness analyzer resources")
        try:
            self._notify("Loading vocabulary")
            encoder = VocabularyEncoder()

            self._notify("Resolving model path")
            model_path = self._path_resolver()

            self._notify("Creating inference engine")
            engine = self._engine_factory()
        except BaseException as e:
            # every failure sets the outcome, BaseException included
            logger.error("Politeness analyzer initialization failed: err=%s", e)
            with self._lock:
                self._state = ReadyState.NOT_READY
                self._outcome = None
            outcome.set_result(ReadyResult.failed(e))
            return

        with self._lock:
            self._resources = SharedResources(
                encoder=encoder,
                engine=engine,
                model_path=model_path,
                max_sequence_length=self._settings.max_sequence_length,
            )
            self._state = ReadyState.READY
        logger.info("Politeness analyzer ready: model_path=%s", model_path)
        outcome.set_result(ReadyResult.success())
        self._notify("Ready")

    def _notify(self, message: str) -> None:
        if self._on_status is not None:
            self._on_status(message)


_default_lock = threading.Lock()
_default_coordinator: Optional[ReadinessCoordinator] = None


def get_coordinator() -> ReadinessCoordinator:
    """Process-wide coordinator, created on first use from environment settings."""
    global _default_coordinator
    with _default_lock:
        if _default_coordinator is None:
            _default_coordinator = ReadinessCoordinator()
        return _default_coordinator


async def ensure_ready() -> ReadyResult:
    return await get_coordinator().ensure_ready()


def get_readiness_state() -> ReadyState:
    return get_coordinator().get_state()
