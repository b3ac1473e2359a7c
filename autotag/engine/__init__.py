"""Constraint engine.

Binds compiled constraints to tags and applies them to subjects as
subjects, tags and state change.

Examples
--------
>>> from autotag.engine import ConstraintHandler
>>> from autotag.subjects import SubjectCollection
>>> from autotag.tags import MemoryTagStore
>>> handler = ConstraintHandler(MemoryTagStore(), SubjectCollection())
>>> handler.is_active
False
>>> handler.stop()
"""

from __future__ import annotations

from autotag.engine.average import ActivityAverage
from autotag.engine.constraint import TagConstraint, parse_options
from autotag.engine.dispatch import (
    FrequencyLimitedDispatcher,
    PeriodicTimer,
    SerialDispatcher,
)
from autotag.engine.gate import ProcessingGate
from autotag.engine.handler import ConstraintHandler
from autotag.engine.history import ApplyHistory

__all__ = [
    # Handler
    "ConstraintHandler",
    "TagConstraint",
    "parse_options",
    # Scheduling
    "SerialDispatcher",
    "FrequencyLimitedDispatcher",
    "PeriodicTimer",
    "ProcessingGate",
    "ApplyHistory",
    "ActivityAverage",
]
