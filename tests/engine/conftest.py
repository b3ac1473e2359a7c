"""Pytest fixtures for engine tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from autotag.config import EngineConfig
from autotag.engine import ConstraintHandler
from autotag.subjects import SubjectCollection, SubjectRecord
from autotag.tags import MemoryTagStore


@pytest.fixture
def engine_config() -> EngineConfig:
    """Provide engine timings suited to tests.

    The periodic pass is pushed out of the way and state changes are
    processed without delay; the add cooldown keeps its default.
    """
    return EngineConfig(
        reapply_interval=3600.0,
        state_change_interval=0.0,
        add_cooldown=1.0,
        config_cache_ttl=0.0,
    )


@pytest.fixture
def tag_store() -> MemoryTagStore:
    """Provide an empty tag store."""
    return MemoryTagStore()


@pytest.fixture
def subjects() -> SubjectCollection:
    """Provide one small and one large subject."""
    return SubjectCollection(
        [
            SubjectRecord(subject_id="small", display_name="Small", size=10),
            SubjectRecord(subject_id="large", display_name="Large", size=5000),
        ]
    )


@pytest.fixture
def make_handler(
    tag_store: MemoryTagStore,
    subjects: SubjectCollection,
    engine_config: EngineConfig,
    fake_clock: Callable[[], float],
) -> Iterator[Callable[..., ConstraintHandler]]:
    """Provide a factory of handlers that are stopped after the test."""
    handlers: list[ConstraintHandler] = []

    def factory(**kwargs: Any) -> ConstraintHandler:
        kwargs.setdefault("subject_source", subjects)
        kwargs.setdefault("config", engine_config)
        kwargs.setdefault("monotonic", fake_clock)
        handler = ConstraintHandler(tag_store, **kwargs)
        handlers.append(handler)
        return handler

    yield factory

    for handler in handlers:
        handler.stop()


@pytest.fixture
def handler(make_handler: Callable[..., ConstraintHandler]) -> ConstraintHandler:
    """Provide a handler over the default store and subjects."""
    return make_handler()


def member_ids(tag: Any) -> set[str]:
    """Ids of a tag's members."""
    return {subject.subject_id for subject in tag.members()}


@pytest.fixture
def members() -> Callable[[Any], set[str]]:
    """Provide a helper listing the member ids of a tag."""
    return member_ids
