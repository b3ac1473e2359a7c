"""In-memory tags and tag store.

``MemoryTag`` and ``MemoryTagStore`` implement the ``Tag`` and ``TagStore``
protocols. Every mutation is announced to the store's listeners after the
internal lock has been released, so listeners may call back into the store.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from autotag.interfaces import ConstraintProperty

if TYPE_CHECKING:
    from autotag.interfaces import Subject, TagStoreListener

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class MemoryTag:
    """A tag with an in-memory member set.

    Parameters
    ----------
    tag_id : str
        Stable identifier.
    name : str
        Display name, matched by ``hasTag``.
    group : str | None
        Group name, matched by ``hasTagGroup``.
    supports_properties : bool
        Whether the tag can carry a constraint.
    has_exec_on_assign : bool
        Whether assigning the tag triggers actions.
    max_members : int
        Member limit; 0 means unlimited.
    constraint : ConstraintProperty | None
        Initial constraint property.
    clock : Callable[[], datetime]
        Source of member added times.

    Examples
    --------
    >>> from autotag.subjects.models import SubjectRecord
    >>> tag = MemoryTag(tag_id="t1", name="Movies")
    >>> subject = SubjectRecord(subject_id="s1")
    >>> tag.add_member(subject)
    >>> tag.has_member(subject), tag.member_count
    (True, 1)
    """

    def __init__(
        self,
        tag_id: str,
        name: str,
        group: str | None = None,
        supports_properties: bool = True,
        has_exec_on_assign: bool = False,
        max_members: int = 0,
        constraint: ConstraintProperty | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.tag_id = tag_id
        self.name = name
        self.group = group
        self.supports_properties = supports_properties
        self.has_exec_on_assign = has_exec_on_assign
        self.max_members = max_members
        self.constraint_error: str | None = None
        self._constraint = constraint
        self._clock = clock
        self._lock = threading.RLock()
        self._members: dict[str, tuple[Subject, datetime]] = {}
        self._store: MemoryTagStore | None = None

    def __repr__(self) -> str:
        return f"MemoryTag(tag_id={self.tag_id!r}, name={self.name!r})"

    @property
    def constraint(self) -> ConstraintProperty | None:
        """Current constraint property."""
        return self._constraint

    @property
    def member_count(self) -> int:
        """Number of members."""
        with self._lock:
            return len(self._members)

    def members(self) -> list[Subject]:
        """Snapshot of the members."""
        with self._lock:
            return [subject for subject, _ in self._members.values()]

    def has_member(self, subject: Subject) -> bool:
        with self._lock:
            return subject.subject_id in self._members

    def added_time(self, subject: Subject) -> datetime | None:
        """Time the subject became a member, None if it is not one."""
        with self._lock:
            entry = self._members.get(subject.subject_id)
        return None if entry is None else entry[1]

    def add_member(self, subject: Subject) -> None:
        """Add a member; adding an existing member does nothing."""
        with self._lock:
            if subject.subject_id in self._members:
                return
            self._members[subject.subject_id] = (subject, self._clock())
        if self._store is not None:
            self._store.fire("member_added", self, subject)

    def remove_member(self, subject: Subject) -> None:
        """Remove a member; removing a non-member does nothing."""
        with self._lock:
            if self._members.pop(subject.subject_id, None) is None:
                return
        if self._store is not None:
            self._store.fire("member_removed", self, subject)

    def set_constraint(
        self, text: str, options: str = "", enabled: bool = True
    ) -> None:
        """Replace the constraint property and announce the change."""
        self._constraint = ConstraintProperty(
            text=text, options=options, enabled=enabled
        )
        if self._store is not None:
            self._store.fire("constraint_changed", self)

    def clear_constraint(self) -> None:
        """Drop the constraint property and announce the change."""
        self._constraint = None
        if self._store is not None:
            self._store.fire("constraint_changed", self)

    def set_constraint_error(self, message: str | None) -> None:
        """Attach or clear the diagnostic shown for the constraint."""
        self.constraint_error = message


class MemoryTagStore:
    """Thread-safe in-memory tag store.

    Examples
    --------
    >>> store = MemoryTagStore()
    >>> movies = store.create_tag("Movies")
    >>> store.tags_by_name("Movies") == [movies]
    True
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._tags: dict[str, MemoryTag] = {}
        self._listeners: list[TagStoreListener] = []
        self._next_id = 1

    def tags(self) -> list[MemoryTag]:
        """Snapshot of all tags."""
        with self._lock:
            return list(self._tags.values())

    def get(self, tag_id: str) -> MemoryTag:
        """Get a tag by id.

        Raises
        ------
        KeyError
            If no tag has the given id.
        """
        with self._lock:
            return self._tags[tag_id]

    def tags_by_name(self, name: str) -> list[MemoryTag]:
        """Tags whose display name equals name."""
        with self._lock:
            return [tag for tag in self._tags.values() if tag.name == name]

    def tags_for(self, subject: Subject) -> list[MemoryTag]:
        """Tags the subject is a member of."""
        return [tag for tag in self.tags() if tag.has_member(subject)]

    def add_listener(self, listener: TagStoreListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: TagStoreListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def create_tag(
        self,
        name: str,
        group: str | None = None,
        supports_properties: bool = True,
        has_exec_on_assign: bool = False,
        max_members: int = 0,
    ) -> MemoryTag:
        """Create a tag with a generated id and add it to the store."""
        with self._lock:
            tag_id = f"tag-{self._next_id}"
            self._next_id += 1
        tag = MemoryTag(
            tag_id,
            name,
            group=group,
            supports_properties=supports_properties,
            has_exec_on_assign=has_exec_on_assign,
            max_members=max_members,
            clock=self._clock,
        )
        self.add_tag(tag)
        return tag

    def add_tag(self, tag: MemoryTag) -> None:
        """Add a tag and announce it.

        Raises
        ------
        ValueError
            If a tag with the same id already exists.
        """
        with self._lock:
            if tag.tag_id in self._tags:
                raise ValueError(f"Tag '{tag.tag_id}' already exists")
            self._tags[tag.tag_id] = tag
            tag._store = self
        self.fire("tag_added", tag)

    def remove_tag(self, tag_id: str) -> MemoryTag:
        """Remove a tag and announce it."""
        with self._lock:
            tag = self._tags.pop(tag_id)
            tag._store = None
        self.fire("tag_removed", tag)
        return tag

    def touch(self, tag: MemoryTag) -> None:
        """Announce a change of the tag's metadata."""
        self.fire("tag_changed", tag)

    def fire(self, event: str, *args: object) -> None:
        """Deliver an event to every listener.

        A failing listener is logged and does not stop delivery to the rest.
        """
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                getattr(listener, event)(*args)
            except Exception:
                logger.exception("Tag listener failed handling %s", event)
