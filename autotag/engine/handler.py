"""Constraint registry and application scheduler.

``ConstraintHandler`` keeps one ``TagConstraint`` per constrained tag and
decides when constraints are applied:

- once over every subject when the engine starts (two sweeps, the second
  one settling consequential tagging),
- to a subject when it is created or when its tag membership changes,
- to a subject when its running state changes, for constraints that track
  running state (rate limited),
- to every subject periodically while at least one constraint exists,
- to every subject when a constraint is added or replaced.

All application work runs on a single worker thread.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from autotag.config.config import EngineConfig
from autotag.dsl.config_values import config_value_cache
from autotag.dsl.context import utc_now
from autotag.engine.constraint import TagConstraint
from autotag.engine.dispatch import (
    FrequencyLimitedDispatcher,
    PeriodicTimer,
    SerialDispatcher,
)
from autotag.engine.gate import ProcessingGate
from autotag.engine.history import ApplyHistory

if TYPE_CHECKING:
    from autotag.interfaces import (
        ParameterSource,
        ScriptHook,
        Subject,
        SubjectSource,
        SubjectState,
        Tag,
        TagStore,
    )

logger = logging.getLogger(__name__)


class ConstraintHandler:
    """Applies tag constraints to subjects.

    The handler registers itself as a listener on the tag store on
    construction and picks up constraints already present on its tags.
    Application starts with ``start()``.

    Parameters
    ----------
    tag_store : TagStore
        Tags, their constraint properties and membership.
    subject_source : SubjectSource
        The subject population and its lifecycle events.
    parameters : ParameterSource | None
        External configuration read by ``getConfig``.
    script_hook : ScriptHook | None
        Script evaluator used by ``javascript``.
    config : EngineConfig | None
        Timing configuration.
    monotonic : Callable[[], float]
        Monotonic clock for cooldowns, rate limits and rates.
    wall_clock : Callable[[], datetime]
        Wall clock for age keywords.

    Examples
    --------
    >>> from autotag.subjects import SubjectCollection, SubjectRecord
    >>> from autotag.tags import MemoryTagStore
    >>> store = MemoryTagStore()
    >>> subjects = SubjectCollection([SubjectRecord(subject_id="s1", size=10)])
    >>> large = store.create_tag("Large")
    >>> handler = ConstraintHandler(store, subjects)
    >>> _ = handler.set_constraint(large, "size > 5")
    >>> handler.start()
    >>> handler.drain()
    >>> large.member_count
    1
    >>> handler.stop()
    """

    def __init__(
        self,
        tag_store: TagStore,
        subject_source: SubjectSource,
        parameters: ParameterSource | None = None,
        script_hook: ScriptHook | None = None,
        config: EngineConfig | None = None,
        monotonic: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.tag_store = tag_store
        self.subject_source = subject_source
        self.parameters = parameters
        self.script_hook = script_hook
        self.config = config or EngineConfig()
        self.monotonic = monotonic
        self.wall_clock = wall_clock

        self.gate = ProcessingGate()
        self.history = ApplyHistory(self.config.add_cooldown, clock=monotonic)
        self.dispatcher = SerialDispatcher("autotag-constraints")
        self._state_dispatcher = FrequencyLimitedDispatcher(
            self._apply_staged,
            self.config.state_change_interval,
            self.dispatcher,
            clock=monotonic,
        )

        self._lock = threading.RLock()
        self._constraints: dict[str, TagConstraint] = {}
        self._staged_lock = threading.Lock()
        self._staged: dict[str, tuple[Subject, list[TagConstraint]]] = {}
        self._timer: PeriodicTimer | None = None
        self._subscribed = False
        self._initialised = False
        self._initial_assignment_complete = False
        self._stopping = False

        config_value_cache.ttl = self.config.config_cache_ttl
        if parameters is not None:
            config_value_cache.bind(parameters)

        tag_store.add_listener(self)
        for tag in tag_store.tags():
            self.tag_added(tag)

    # Lifecycle

    @property
    def is_stopping(self) -> bool:
        return self._stopping

    @property
    def is_active(self) -> bool:
        """Whether any constraint exists and the periodic pass is scheduled."""
        with self._lock:
            return self._timer is not None

    @property
    def initial_assignment_complete(self) -> bool:
        with self._lock:
            return self._initial_assignment_complete

    def start(self) -> None:
        """Run the initial pass over every subject and begin reacting to events."""
        with self._lock:
            if self._initialised or self._stopping:
                return
            self._initialised = True
            if not self._constraints:
                self._initial_assignment_complete = True
        logger.debug("Constraint handler started")
        self.apply_to_many(self.subject_source.subjects(), initial=True)

    def stop(self) -> None:
        """Stop all scheduling and the worker; queued passes are abandoned."""
        with self._lock:
            if self._stopping:
                return
            self._stopping = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._subscribed:
                self.subject_source.remove_listener(self)
                self._subscribed = False
        self._state_dispatcher.cancel()
        self.tag_store.remove_listener(self)
        self.dispatcher.shutdown()
        logger.debug("Constraint handler stopped")

    def drain(self) -> None:
        """Block until all queued application work has finished."""
        self.dispatcher.drain()

    # Constraint registry

    def set_constraint(
        self, tag: Tag, text: str, options: str = "", enabled: bool = True
    ) -> TagConstraint | None:
        """Register, replace or (for empty text) remove the constraint of a tag.

        Text and options are stripped. A constraint with unchanged text,
        options and enabled flag is kept as it is. A new constraint is
        applied to every subject once the handler has started.

        Returns
        -------
        TagConstraint | None
            The tag's constraint, None if the text was empty.
        """
        text = text.strip()
        options = options.strip()

        with self._lock:
            if not text:
                self._discard(tag)
                self._check_timer()
                return None

            existing = self._constraints.get(tag.tag_id)
            if existing is not None and existing.same_as(text, options, enabled):
                return existing
            if existing is not None:
                existing.removed = True

            constraint = TagConstraint(self, tag, text, options, enabled)
            self._constraints[tag.tag_id] = constraint
            logger.debug("Constraint for tag '%s' set to '%s'", tag.name, text)
            initialised = self._initialised
            self._check_timer()

        if initialised:
            self.dispatcher.dispatch(
                lambda: constraint.apply_many(self.subject_source.subjects())
            )
        return constraint

    def remove_constraint(self, tag: Tag) -> None:
        """Forget the constraint of a tag, if any."""
        with self._lock:
            self._discard(tag)
            self._check_timer()

    def handle_property(self, tag: Tag) -> None:
        """Synchronise with the constraint property stored on the tag."""
        prop = tag.constraint
        if prop is None:
            self.remove_constraint(tag)
        else:
            self.set_constraint(tag, prop.text, prop.options, prop.enabled)

    def constraint_for(self, tag: Tag) -> TagConstraint | None:
        """The tag's constraint, None if it has none."""
        with self._lock:
            return self._constraints.get(tag.tag_id)

    def constraints(self) -> list[TagConstraint]:
        """Snapshot of the constraints, dependencies before dependents."""
        with self._lock:
            current = list(self._constraints.values())

        by_tag = {c.tag.tag_id: c for c in current}
        ordered: list[TagConstraint] = []
        seen: set[str] = set()

        def visit(constraint: TagConstraint) -> None:
            if constraint.tag.tag_id in seen:
                return
            seen.add(constraint.tag.tag_id)
            for tag in constraint.depends_on_tags:
                dependency = by_tag.get(tag.tag_id)
                if dependency is not None:
                    visit(dependency)
            ordered.append(constraint)

        for constraint in current:
            visit(constraint)
        return ordered

    def get_status(self, tag: Tag) -> str | None:
        """Evaluation rate of the tag's constraint, None if it has none."""
        constraint = self.constraint_for(tag)
        return None if constraint is None else constraint.status()

    def get_depends_on_tags(self, tag: Tag) -> list[Tag]:
        """Tags the tag's constraint reads the membership of."""
        constraint = self.constraint_for(tag)
        return [] if constraint is None else constraint.depends_on_tags

    def _discard(self, tag: Tag) -> None:
        constraint = self._constraints.pop(tag.tag_id, None)
        if constraint is not None:
            constraint.removed = True
            logger.debug("Constraint for tag '%s' removed", tag.name)

    def _check_timer(self) -> None:
        # caller holds self._lock
        if self._constraints and not self._stopping:
            if self._timer is None:
                self._timer = PeriodicTimer(
                    self.config.reapply_interval,
                    self._timer_fired,
                    name="autotag-reapply",
                )
                self._timer.start()
                if not self._subscribed:
                    self.subject_source.add_listener(self)
                    self._subscribed = True
                logger.debug("Constraint scheduling active")
        elif self._timer is not None:
            self._timer.cancel()
            self._timer = None
            if self._subscribed:
                self.subject_source.remove_listener(self)
                self._subscribed = False
            self.history.clear()
            logger.debug("Constraint scheduling idle")

    # Application

    def set_processing_enabled(self, enabled: bool) -> None:
        """Pause or resume constraint application.

        Pauses nest. Work requested while paused is captured and replayed,
        in the order it was requested, when the last pause is lifted. A
        resume takes effect on the worker, behind any work already queued,
        so that queued requests are captured before the replay starts.
        """
        if not enabled:
            self.gate.disable()
            return
        self.dispatcher.dispatch(lambda: self._replay(self.gate.enable()))

    def _replay(self, pending: list[Any]) -> None:
        if not pending:
            return
        logger.debug("Replaying %d deferred applications", len(pending))
        for constraint, target, check_dependencies in pending:
            try:
                if isinstance(target, list):
                    constraint.apply_many(target, check_dependencies)
                else:
                    constraint.apply_one(target)
            except Exception:
                logger.exception("Deferred application of %r failed", constraint)

    def _ready(self) -> bool:
        with self._lock:
            return bool(self._constraints) and self._initialised

    def reapply_all(self) -> None:
        """Apply every constraint to every subject."""
        if not self._ready():
            return

        def run() -> None:
            subjects = self.subject_source.subjects()
            for constraint in self.constraints():
                constraint.apply_many(subjects)

        self.dispatcher.dispatch(run)

    def apply_to_one(self, subject: Subject, auto: bool = False) -> None:
        """Apply every constraint to one subject.

        Parameters
        ----------
        subject : Subject
            Subject to process.
        auto : bool
            Whether the request comes from a membership change; such
            requests are ignored until the initial pass has completed.
        """
        if subject.is_destroyed or not self._ready():
            return
        if auto and not self.initial_assignment_complete:
            return

        def run() -> None:
            for constraint in self.constraints():
                constraint.apply_one(subject)

        self.dispatcher.dispatch(run)

    def apply_to_many(self, subjects: Iterable[Subject], initial: bool = False) -> None:
        """Apply every constraint to the given subjects.

        The initial pass first sets up membership without settling
        dependencies, then marks initial assignment complete and goes over
        everything again to pick up consequential constraints.
        """
        if not self._ready():
            return
        subjects = list(subjects)

        def run() -> None:
            constraints = self.constraints()
            logger.debug(
                "Applying %d constraints to %d subjects",
                len(constraints),
                len(subjects),
            )
            for constraint in constraints:
                constraint.apply_many(
                    subjects, check_dependencies=False if initial else None
                )
            if initial:
                with self._lock:
                    self._initial_assignment_complete = True
                for constraint in constraints:
                    constraint.apply_many(subjects)

        self.dispatcher.dispatch(run)

    def _timer_fired(self) -> None:
        self.history.clear()
        self.reapply_all()

    def _apply_staged(self) -> None:
        with self._staged_lock:
            staged, self._staged = self._staged, {}
        for subject, constraints in staged.values():
            for constraint in constraints:
                constraint.apply_one(subject)

    # SubjectListener

    def subject_created(self, subject: Subject) -> None:
        self.apply_to_one(subject)

    def subject_state_changed(
        self, subject: Subject, old_state: SubjectState, new_state: SubjectState
    ) -> None:
        with self._lock:
            if not self._initialised:
                return
            interesting = [
                c for c in self._constraints.values() if c.depends_on_running_state
            ]
        if not interesting:
            return
        with self._staged_lock:
            self._staged[subject.subject_id] = (subject, interesting)
        self._state_dispatcher.dispatch()

    # TagStoreListener

    def tag_added(self, tag: Tag) -> None:
        if tag.supports_properties:
            self.handle_property(tag)

    def tag_removed(self, tag: Tag) -> None:
        self.remove_constraint(tag)

    def tag_changed(self, tag: Tag) -> None:
        constraint = self.constraint_for(tag)
        if constraint is not None:
            constraint.check_side_effects()

    def constraint_changed(self, tag: Tag) -> None:
        if tag.supports_properties:
            self.handle_property(tag)

    def member_added(self, tag: Tag, subject: Subject) -> None:
        self.apply_to_one(subject, auto=True)

    def member_removed(self, tag: Tag, subject: Subject) -> None:
        self.apply_to_one(subject, auto=True)
