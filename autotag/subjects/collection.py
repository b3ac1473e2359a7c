"""In-memory subject population with lifecycle notifications."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from autotag.subjects.models import SubjectRecord

if TYPE_CHECKING:
    from autotag.interfaces import SubjectListener, SubjectState

logger = logging.getLogger(__name__)


class SubjectCollection:
    """Thread-safe collection of subjects implementing ``SubjectSource``.

    Listeners are notified after the collection's lock is released.

    Parameters
    ----------
    subjects : list[SubjectRecord] | None
        Initial population. No creation events are fired for it.

    Examples
    --------
    >>> collection = SubjectCollection()
    >>> collection.add(SubjectRecord(subject_id="s1"))
    >>> [s.subject_id for s in collection.subjects()]
    ['s1']
    """

    def __init__(self, subjects: list[SubjectRecord] | None = None) -> None:
        self._lock = threading.RLock()
        self._subjects: dict[str, SubjectRecord] = {
            s.subject_id: s for s in subjects or []
        }
        self._listeners: list[SubjectListener] = []

    def subjects(self) -> list[SubjectRecord]:
        """Snapshot of all live subjects."""
        with self._lock:
            return list(self._subjects.values())

    def get(self, subject_id: str) -> SubjectRecord:
        """Get a subject by id.

        Raises
        ------
        KeyError
            If no subject has the given id.
        """
        with self._lock:
            return self._subjects[subject_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._subjects)

    def add_listener(self, listener: SubjectListener) -> None:
        """Register a lifecycle listener."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: SubjectListener) -> None:
        """Unregister a lifecycle listener; unknown listeners are ignored."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def add(self, subject: SubjectRecord) -> None:
        """Add a subject and announce its creation.

        Raises
        ------
        ValueError
            If a subject with the same id already exists.
        """
        with self._lock:
            if subject.subject_id in self._subjects:
                raise ValueError(f"Subject '{subject.subject_id}' already exists")
            self._subjects[subject.subject_id] = subject
            listeners = list(self._listeners)
        for listener in listeners:
            listener.subject_created(subject)

    def remove(self, subject_id: str) -> SubjectRecord:
        """Remove a subject and mark it destroyed."""
        with self._lock:
            subject = self._subjects.pop(subject_id)
        subject.is_destroyed = True
        return subject

    def set_state(self, subject_id: str, state: SubjectState) -> None:
        """Change a subject's state and notify listeners if it differs."""
        with self._lock:
            subject = self._subjects[subject_id]
            old_state = subject.state
            if old_state == state:
                return
            subject.state = state
            listeners = list(self._listeners)
        logger.debug("Subject %s: %s -> %s", subject_id, old_state, state)
        for listener in listeners:
            listener.subject_state_changed(subject, old_state, state)

    def update(self, subject_id: str, **changes: Any) -> SubjectRecord:
        """Assign attributes of a subject.

        State changes should go through ``set_state`` so listeners hear
        about them.
        """
        with self._lock:
            subject = self._subjects[subject_id]
            for name, value in changes.items():
                setattr(subject, name, value)
        return subject
