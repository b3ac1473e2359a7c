"""Evaluation context for constraint DSL.

This module provides the EvaluationContext class that carries everything an
evaluation needs besides the subject itself: the tag that owns the
constraint, the collaborators some builtins consult, a clock, and the sink
that diagnostics are reported to.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from autotag.dsl.config_values import ConfigValueCache, config_value_cache

if TYPE_CHECKING:
    from autotag.interfaces import ParameterSource, ScriptHook, Tag, TagStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Get current UTC datetime with timezone information."""
    return datetime.now(UTC)


class EvaluationContext:
    """Evaluation context for constraint expressions.

    Parameters
    ----------
    owner : Tag | None
        Tag whose constraint is evaluated. Diagnostics are attached to it.
    tag_store : TagStore | None
        Tag lookup for ``countTag``.
    script_hook : ScriptHook | None
        Script evaluator for ``javascript``.
    parameters : ParameterSource | None
        External configuration for ``getConfig``.
    config_cache : ConfigValueCache | None
        Cache of configuration values; the process-wide one by default.
    clock : Callable[[], datetime]
        Wall-clock source for age and time-of-day keywords.

    Examples
    --------
    >>> ctx = EvaluationContext()
    >>> ctx.report_error("Invalid constraint keyword: bogus")
    >>> ctx.errors
    ['Invalid constraint keyword: bogus']
    """

    def __init__(
        self,
        owner: Tag | None = None,
        tag_store: TagStore | None = None,
        script_hook: ScriptHook | None = None,
        parameters: ParameterSource | None = None,
        config_cache: ConfigValueCache | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.owner = owner
        self.tag_store = tag_store
        self.script_hook = script_hook
        self.parameters = parameters
        self.config_cache = config_cache or config_value_cache
        self._clock = clock
        self._errors: deque[str] = deque(maxlen=20)

    def now(self) -> datetime:
        """Current time according to the context's clock."""
        return self._clock()

    @property
    def errors(self) -> list[str]:
        """Most recent diagnostics, oldest first."""
        return list(self._errors)

    def report_error(self, message: str) -> None:
        """Record a diagnostic on the owning tag.

        Identical consecutive diagnostics are logged once.

        Parameters
        ----------
        message : str
            Human readable description of the problem.
        """
        if not self._errors or self._errors[-1] != message:
            owner_name = self.owner.name if self.owner is not None else "<none>"
            logger.warning("Constraint on tag '%s': %s", owner_name, message)
        self._errors.append(message)
        if self.owner is not None:
            self.owner.set_constraint_error(message)
