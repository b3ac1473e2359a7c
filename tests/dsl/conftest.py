"""Pytest fixtures for DSL module tests."""

from __future__ import annotations

from datetime import datetime

import pytest

from autotag.dsl import EvaluationContext, Evaluator
from autotag.subjects.models import SubjectRecord
from autotag.tags.store import MemoryTag


@pytest.fixture
def subject() -> SubjectRecord:
    """Provide a plain stopped subject."""
    return SubjectRecord(subject_id="s1", display_name="Ubuntu 24.04 ISO", size=4096)


@pytest.fixture
def context(now: datetime) -> EvaluationContext:
    """Provide an evaluation context with a fixed clock."""
    return EvaluationContext(clock=lambda: now)


@pytest.fixture
def evaluator(context: EvaluationContext) -> Evaluator:
    """Provide an evaluator bound to the fixed-clock context."""
    return Evaluator(context)


@pytest.fixture
def tags_abc() -> dict[str, MemoryTag]:
    """Provide three unrelated tags named A, B and C."""
    return {
        name: MemoryTag(tag_id=f"t{name}", name=name, group="Letters")
        for name in "ABC"
    }
