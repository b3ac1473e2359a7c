"""Interfaces of the collaborators the constraint engine consumes.

The engine never owns subjects, tags or configuration storage. It reads
them through the protocols below; ``autotag.subjects``, ``autotag.tags`` and
``autotag.config.parameters`` provide in-memory implementations.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class SubjectState(StrEnum):
    """Lifecycle state of a subject."""

    WAITING = "waiting"
    INITIALIZING = "initializing"
    READY = "ready"
    ALLOCATING = "allocating"
    CHECKING = "checking"
    DOWNLOADING = "downloading"
    FINISHING = "finishing"
    SEEDING = "seeding"
    STOPPING = "stopping"
    STOPPED = "stopped"
    QUEUED = "queued"
    ERROR = "error"


class ConstraintProperty(BaseModel):
    """Constraint property as stored on a tag.

    Attributes
    ----------
    text : str
        Constraint expression text.
    options : str
        Option string, e.g. ``"am=1;"`` for add-only.
    enabled : bool
        Whether the constraint is evaluated at all.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Constraint expression")
    options: str = Field(default="", description="Constraint options")
    enabled: bool = Field(default=True, description="Constraint enabled")


@runtime_checkable
class Subject(Protocol):
    """Read-only view of an item that tags are assigned to."""

    @property
    def subject_id(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    @property
    def is_destroyed(self) -> bool: ...

    @property
    def state(self) -> SubjectState: ...

    @property
    def size(self) -> int: ...

    @property
    def file_count(self) -> int: ...

    @property
    def file_names(self) -> Sequence[str]: ...

    @property
    def networks(self) -> Sequence[str]: ...

    @property
    def is_private(self) -> bool: ...

    @property
    def is_force_start(self) -> bool: ...

    @property
    def is_paused(self) -> bool: ...

    @property
    def is_complete(self) -> bool: ...

    @property
    def is_magnet(self) -> bool: ...

    @property
    def is_low_noise(self) -> bool: ...

    @property
    def can_archive(self) -> bool: ...

    @property
    def is_rechecking(self) -> bool: ...

    @property
    def share_ratio(self) -> float | None: ...

    @property
    def percent_done(self) -> float: ...

    @property
    def added_time(self) -> datetime | None: ...

    @property
    def completed_time(self) -> datetime | None: ...

    @property
    def last_active_time(self) -> datetime | None: ...

    @property
    def auto_resume_time(self) -> datetime | None: ...

    @property
    def seconds_downloading(self) -> int: ...

    @property
    def seconds_seeding(self) -> int: ...

    @property
    def merged_bytes(self) -> int: ...

    @property
    def connected_seeds(self) -> int: ...

    @property
    def connected_peers(self) -> int: ...

    @property
    def scrape_seeds(self) -> int | None: ...

    @property
    def scrape_peers(self) -> int | None: ...

    @property
    def peer_max_completion(self) -> float | None: ...

    @property
    def leecher_max_completion(self) -> float | None: ...

    @property
    def peer_average_completion(self) -> float | None: ...

    @property
    def availability(self) -> float | None: ...

    @property
    def seconds_since_upload(self) -> int | None: ...

    @property
    def seconds_since_download(self) -> int | None: ...

    @property
    def bytes_downloaded(self) -> int: ...

    @property
    def bytes_uploaded(self) -> int: ...


@runtime_checkable
class Tag(Protocol):
    """A named classification with a member set."""

    @property
    def tag_id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def group(self) -> str | None: ...

    @property
    def supports_properties(self) -> bool: ...

    @property
    def has_exec_on_assign(self) -> bool: ...

    @property
    def max_members(self) -> int: ...

    @property
    def constraint(self) -> ConstraintProperty | None: ...

    @property
    def member_count(self) -> int: ...

    def has_member(self, subject: Subject) -> bool: ...

    def add_member(self, subject: Subject) -> None: ...

    def remove_member(self, subject: Subject) -> None: ...

    def added_time(self, subject: Subject) -> datetime | None: ...

    def set_constraint_error(self, message: str | None) -> None: ...


class TagStoreListener(Protocol):
    """Receiver of tag store notifications."""

    def tag_added(self, tag: Tag) -> None: ...

    def tag_removed(self, tag: Tag) -> None: ...

    def tag_changed(self, tag: Tag) -> None: ...

    def constraint_changed(self, tag: Tag) -> None: ...

    def member_added(self, tag: Tag, subject: Subject) -> None: ...

    def member_removed(self, tag: Tag, subject: Subject) -> None: ...


class TagStore(Protocol):
    """Lookup and notification surface of the tag storage."""

    def tags(self) -> list[Tag]: ...

    def tags_by_name(self, name: str) -> list[Tag]: ...

    def tags_for(self, subject: Subject) -> list[Tag]: ...

    def add_listener(self, listener: TagStoreListener) -> None: ...

    def remove_listener(self, listener: TagStoreListener) -> None: ...


class SubjectListener(Protocol):
    """Receiver of subject lifecycle events."""

    def subject_created(self, subject: Subject) -> None: ...

    def subject_state_changed(
        self, subject: Subject, old_state: SubjectState, new_state: SubjectState
    ) -> None: ...


class SubjectSource(Protocol):
    """The subject population and its lifecycle feed."""

    def subjects(self) -> list[Subject]: ...

    def add_listener(self, listener: SubjectListener) -> None: ...

    def remove_listener(self, listener: SubjectListener) -> None: ...


class ParameterSource(Protocol):
    """Read-only external configuration with change notification."""

    def get_float(self, name: str) -> float: ...

    def add_listener(self, name: str, callback: Callable[[str], None]) -> None: ...


class ScriptHook(Protocol):
    """Evaluates a script on behalf of a constraint.

    Returns the script's value, or the exception it failed with.
    """

    def __call__(
        self, owner: Tag | None, source: str, subject: Subject, call_site: str
    ) -> object: ...
