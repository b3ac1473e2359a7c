"""A compiled constraint bound to its tag.

``TagConstraint`` owns the compiled expression of one tag and decides, per
subject, whether the tag should be added or removed. Before adding a tag
that has side effects it first settles the constraints of the tags its
expression reads (``hasTag``), so that membership decisions it depends on
are made first.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from autotag.dsl.context import EvaluationContext
from autotag.dsl.errors import CompileError
from autotag.dsl.evaluator import Evaluator
from autotag.dsl.keywords import DependencyLevel
from autotag.dsl.parser import CompiledExpression, compile_expression
from autotag.engine.average import ActivityAverage

if TYPE_CHECKING:
    from autotag.engine.handler import ConstraintHandler
    from autotag.interfaces import Subject, Tag

logger = logging.getLogger(__name__)

ADD_ONLY = "am=1;"
REMOVE_ONLY = "am=2;"


def parse_options(options: str) -> tuple[bool, bool]:
    """Read the automatic add and remove flags from an option string.

    Returns
    -------
    tuple[bool, bool]
        ``(auto_add, auto_remove)``.

    Examples
    --------
    >>> parse_options("")
    (True, True)
    >>> parse_options("am=1;")
    (True, False)
    >>> parse_options("am=2;")
    (False, True)
    """
    return REMOVE_ONLY not in options, ADD_ONLY not in options


class TagConstraint:
    """Constraint of one tag.

    Parameters
    ----------
    handler : ConstraintHandler
        Owning handler; provides the tag store, the gate, the history and
        the other constraints.
    tag : Tag
        Tag the constraint adds and removes.
    text : str
        Expression text.
    options : str
        Option string.
    enabled : bool
        Whether the constraint is evaluated.
    """

    def __init__(
        self,
        handler: ConstraintHandler,
        tag: Tag,
        text: str,
        options: str = "",
        enabled: bool = True,
    ) -> None:
        self.handler = handler
        self.tag = tag
        self.text = text
        self.options = options
        self.enabled = enabled
        self.auto_add, self.auto_remove = parse_options(options)
        self.removed = False

        self._activity = ActivityAverage(
            handler.config.activity_window, clock=handler.monotonic
        )
        self.context = EvaluationContext(
            owner=tag,
            tag_store=handler.tag_store,
            script_hook=handler.script_hook,
            parameters=handler.parameters,
            clock=handler.wall_clock,
        )
        self._evaluator = Evaluator(self.context)

        self.compiled: CompiledExpression | None = None
        self.error: str | None = None
        self._compile()

        self.must_check_dependencies = False
        self.check_side_effects()

    def __repr__(self) -> str:
        return f"TagConstraint(tag={self.tag.name!r}, text={self.text!r})"

    def _compile(self) -> None:
        self.tag.set_constraint_error(None)
        try:
            self.compiled = compile_expression(
                self.text, tag_lookup=self.handler.tag_store.tags_by_name
            )
        except CompileError as e:
            self.error = f"Invalid constraint: {e}"
            logger.warning("Tag '%s': %s", self.tag.name, self.error)
            self.tag.set_constraint_error(self.error)
            return

        for warning in self.compiled.warnings:
            self.context.report_error(warning)

    def check_side_effects(self) -> None:
        """Recompute whether adds must settle dependencies first.

        Only tags whose assignment has significant side effects need it:
        tags that run actions on assignment and tags with a member limit.
        """
        self.must_check_dependencies = (
            self.tag.has_exec_on_assign or self.tag.max_members > 0
        )

    @property
    def dependency_level(self) -> DependencyLevel:
        if self.compiled is None:
            return DependencyLevel.STATIC
        return self.compiled.dependency_level

    @property
    def depends_on_running_state(self) -> bool:
        """Whether a subject state change can change the outcome."""
        if self.compiled is None:
            return False
        return self.compiled.depends_on_running_state

    @property
    def depends_on_tags(self) -> list[Tag]:
        """Constrainable tags whose membership the expression reads."""
        if self.compiled is None:
            return []
        return list(self.compiled.dependent_tags)

    @property
    def is_active(self) -> bool:
        """Whether the constraint can do anything at all."""
        return self.enabled and self.compiled is not None and not self.removed

    def status(self) -> str:
        """Evaluation rate, e.g. ``"0.5/sec"``."""
        return f"{self._activity.rate():.1f}/sec"

    def same_as(self, text: str, options: str, enabled: bool) -> bool:
        """Whether the constraint already has these settings."""
        return (
            self.text == text and self.options == options and self.enabled == enabled
        )

    def test(self, subject: Subject) -> bool:
        """Evaluate the constraint for subject."""
        if not self.enabled or self.compiled is None:
            return False
        self._activity.add()
        tags = self.handler.tag_store.tags_for(subject)
        return self._evaluator.test(self.compiled.expr, subject, tags)

    def apply_one(self, subject: Subject) -> None:
        """Add or remove the tag for one subject.

        When processing is paused the request is captured and replayed on
        resume.
        """
        if not self.is_active or self.handler.is_stopping:
            return
        if subject.is_destroyed:
            return
        if self.handler.gate.defer((self, subject, None)):
            return
        self._apply_support(subject, self.must_check_dependencies, None)

    def apply_many(
        self, subjects: Sequence[Subject], check_dependencies: bool | None = None
    ) -> None:
        """Add or remove the tag for each subject.

        Parameters
        ----------
        subjects : Sequence[Subject]
            Subjects to process.
        check_dependencies : bool | None
            Whether adds settle dependencies first; the constraint's own
            setting when None.
        """
        if not self.is_active or self.handler.is_stopping:
            return
        if self.handler.gate.defer((self, list(subjects), check_dependencies)):
            return
        if check_dependencies is None:
            check_dependencies = self.must_check_dependencies
        for subject in subjects:
            if self.handler.is_stopping:
                return
            if subject.is_destroyed:
                continue
            self._apply_support(subject, check_dependencies, None)

    def _apply_support(
        self,
        subject: Subject,
        check_dependencies: bool,
        checked: set[TagConstraint] | None,
    ) -> None:
        if check_dependencies and checked is not None and self in checked:
            return
        if not self.is_active:
            return

        if self.test(subject):
            if not self.auto_add or self.tag.has_member(subject):
                return

            if check_dependencies and self._settle_dependencies(subject, checked):
                self._apply_support(subject, False, checked)
                return

            if self.handler.is_stopping:
                return

            if self.handler.history.try_record(self.tag.tag_id, subject.subject_id):
                logger.debug(
                    "Adding %r to tag %r", subject.subject_id, self.tag.name
                )
                self.tag.add_member(subject)
            else:
                logger.info(
                    "Not applying constraint as too recently actioned: %s/%s",
                    subject.display_name or subject.subject_id,
                    self.tag.name,
                )

        elif self.auto_remove and self.tag.has_member(subject):
            if self.handler.is_stopping:
                return
            logger.debug(
                "Removing %r from tag %r", subject.subject_id, self.tag.name
            )
            self.tag.remove_member(subject)

    def _settle_dependencies(
        self, subject: Subject, checked: set[TagConstraint] | None
    ) -> bool:
        """Apply the constraints this one reads, before deciding on an add.

        Returns
        -------
        bool
            True if any dependency had a constraint, in which case the
            caller re-evaluates itself.
        """
        settled = False
        for tag in self.depends_on_tags:
            dependency = self.handler.constraint_for(tag)
            if dependency is None:
                continue
            if checked is None:
                checked = set()
            checked.add(self)
            try:
                dependency._apply_support(subject, True, checked)
            finally:
                checked.discard(self)
            settled = True
        return settled
