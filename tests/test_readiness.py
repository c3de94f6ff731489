from __future__ import annotations

import asyncio
import threading

import pytest

from conftest import FakeEngine
from politeness.errors import AnalyzerNotInitializedError, ModelNotFoundError
from politeness.politeness_types import ReadyResultStatus, ReadyState
from politeness.readiness import ReadinessCoordinator, get_coordinator, get_readiness_state
from politeness.tokenizer import VocabularyEncoder


def test_new_coordinator_is_not_ready(coordinator):
    assert coordinator.get_state() is ReadyState.NOT_READY
    with pytest.raises(AnalyzerNotInitializedError):
        coordinator.shared_resources()


@pytest.mark.asyncio
async def test_ensure_ready_succeeds_and_builds_shared_resources(coordinator, fake_engine):
    result = await coordinator.ensure_ready()

    assert result.status is ReadyResultStatus.SUCCESS
    assert coordinator.get_state() is ReadyState.READY

    resources = coordinator.shared_resources()
    assert isinstance(resources.encoder, VocabularyEncoder)
    assert resources.engine is fake_engine
    assert resources.model_path == "/models/fake"
    assert resources.max_sequence_length == 16


@pytest.mark.asyncio
async def test_ensure_ready_returns_cached_outcome_after_success(coordinator):
    first = await coordinator.ensure_ready()
    second = await coordinator.ensure_ready()
    assert first is second


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_attempt(test_settings):
    release = threading.Event()
    factory_calls = []

    def slow_factory():
        factory_calls.append(1)
        assert release.wait(timeout=5)
        return FakeEngine()

    coordinator = ReadinessCoordinator(
        settings=test_settings,
        engine_factory=slow_factory,
        path_resolver=lambda: "/models/fake",
    )

    tasks = [asyncio.create_task(coordinator.ensure_ready()) for _ in range(5)]
    await asyncio.sleep(0)
    assert coordinator.get_state() is ReadyState.INITIALIZING
    assert coordinator.start() is coordinator.start()

    release.set()
    results = await asyncio.gather(*tasks)

    assert all(r is results[0] for r in results)
    assert results[0].ok
    assert len(factory_calls) == 1
    assert coordinator.get_state() is ReadyState.READY


@pytest.mark.asyncio
async def test_failure_is_shared_then_cleared_for_retry(test_settings, fake_engine):
    attempts = []
    release = threading.Event()

    def resolver():
        attempts.append(1)
        if len(attempts) == 1:
            assert release.wait(timeout=5)
            raise ModelNotFoundError("Model file not found at: /nowhere")
        return "/models/fake"

    coordinator = ReadinessCoordinator(
        settings=test_settings,
        engine_factory=lambda: fake_engine,
        path_resolver=resolver,
    )

    waiters = [asyncio.create_task(coordinator.ensure_ready()) for _ in range(2)]
    await asyncio.sleep(0)
    release.set()
    failed = await asyncio.gather(*waiters)
    assert failed[0] is failed[1]
    assert failed[0].status is ReadyResultStatus.FAILED
    assert isinstance(failed[0].error, ModelNotFoundError)
    assert coordinator.get_state() is ReadyState.NOT_READY

    retried = await coordinator.ensure_ready()
    assert retried.ok
    assert retried is not failed[0]
    assert len(attempts) == 2
    assert coordinator.get_state() is ReadyState.READY


@pytest.mark.asyncio
async def test_engine_factory_failure_reverts_to_not_ready(test_settings):
    def broken_factory():
        raise RuntimeError("no execution provider")

    coordinator = ReadinessCoordinator(
        settings=test_settings,
        engine_factory=broken_factory,
        path_resolver=lambda: "/models/fake",
    )
    result = await coordinator.ensure_ready()

    assert not result.ok
    assert str(result.error) == "no execution provider"
    assert coordinator.get_state() is ReadyState.NOT_READY
    with pytest.raises(AnalyzerNotInitializedError):
        coordinator.shared_resources()


@pytest.mark.asyncio
async def test_status_callback_reports_progress(test_settings, fake_engine):
    messages = []
    coordinator = ReadinessCoordinator(
        settings=test_settings,
        engine_factory=lambda: fake_engine,
        path_resolver=lambda: "/models/fake",
        on_status=messages.append,
    )
    await coordinator.ensure_ready()

    assert messages[:3] == ["Loading vocabulary", "Resolving model path", "Creating inference engine"]


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_attempt(test_settings):
    release = threading.Event()

    def slow_factory():
        assert release.wait(timeout=5)
        return FakeEngine()

    coordinator = ReadinessCoordinator(
        settings=test_settings,
        engine_factory=slow_factory,
        path_resolver=lambda: "/models/fake",
    )

    doomed = asyncio.create_task(coordinator.ensure_ready())
    survivor = asyncio.create_task(coordinator.ensure_ready())
    await asyncio.sleep(0)
    doomed.cancel()
    release.set()

    result = await survivor
    assert result.ok
    with pytest.raises(asyncio.CancelledError):
        await doomed


def test_process_wide_coordinator_is_a_singleton():
    assert get_coordinator() is get_coordinator()
    assert get_readiness_state() is get_coordinator().get_state()


class _AbortInit(BaseException):
    pass


@pytest.mark.asyncio
async def test_base_exception_during_setup_still_fails_the_attempt(test_settings, fake_engine):
    attempts = []

    def resolver():
        attempts.append(1)
        if len(attempts) == 1:
            raise _AbortInit("collaborator bailed out")
        return "/models/fake"

    coordinator = ReadinessCoordinator(
        settings=test_settings,
        engine_factory=lambda: fake_engine,
        path_resolver=resolver,
    )

    failed = await asyncio.wait_for(coordinator.ensure_ready(), timeout=5)
    assert not failed.ok
    assert isinstance(failed.error, _AbortInit)
    assert coordinator.get_state() is ReadyState.NOT_READY

    retried = await asyncio.wait_for(coordinator.ensure_ready(), timeout=5)
    assert retried.ok
