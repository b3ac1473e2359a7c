"""Subject data model.

``SubjectRecord`` is a plain Pydantic model that satisfies the ``Subject``
protocol. It is what the CLI loads scenarios into and what the tests build
subjects from; hosts with their own subject objects only need to satisfy
the protocol.
"""

from __future__ import annotations

from datetime import datetime
from functools import cached_property
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field

from autotag.interfaces import SubjectState


class SubjectRecord(BaseModel):
    """In-memory subject.

    Attributes
    ----------
    subject_id : str
        Stable identifier.
    display_name : str
        Name shown to users and matched by the ``name`` keyword.
    files : tuple[str, ...]
        Paths of the subject's files.
    state : SubjectState
        Lifecycle state.
    share_ratio : float | None
        Upload/download ratio, None if unknown.

    Examples
    --------
    >>> subject = SubjectRecord(subject_id="s1", files=("a/b.mkv", "a/c.srt"))
    >>> subject.file_names
    ('b.mkv', 'c.srt')
    >>> subject.file_count
    2
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    subject_id: str = Field(..., description="Subject identifier")
    display_name: str = Field(default="", description="Display name")
    is_destroyed: bool = Field(default=False, description="Removed from the host")
    state: SubjectState = Field(default=SubjectState.STOPPED, description="State")
    size: int = Field(default=0, ge=0, description="Total size in bytes")
    files: tuple[str, ...] = Field(default=(), description="File paths")
    networks: tuple[str, ...] = Field(default=("Public",), description="Networks")

    is_private: bool = False
    is_force_start: bool = False
    is_paused: bool = False
    is_complete: bool = False
    is_magnet: bool = False
    is_low_noise: bool = False
    can_archive: bool = False
    is_rechecking: bool = False

    share_ratio: float | None = Field(default=0.0, description="Share ratio")
    percent_done: float = Field(default=0.0, ge=0, le=100, description="Percent done")

    added_time: datetime | None = None
    completed_time: datetime | None = None
    last_active_time: datetime | None = None
    auto_resume_time: datetime | None = None

    seconds_downloading: int = 0
    seconds_seeding: int = 0
    merged_bytes: int = 0

    connected_seeds: int = 0
    connected_peers: int = 0
    scrape_seeds: int | None = None
    scrape_peers: int | None = None

    peer_max_completion: float | None = None
    leecher_max_completion: float | None = None
    peer_average_completion: float | None = None
    availability: float | None = None

    seconds_since_upload: int | None = None
    seconds_since_download: int | None = None
    bytes_downloaded: int = 0
    bytes_uploaded: int = 0

    @property
    def file_count(self) -> int:
        """Number of files."""
        return len(self.files)

    @cached_property
    def file_names(self) -> tuple[str, ...]:
        """Base names of the subject's files, computed once."""
        return tuple(PurePath(path).name for path in self.files)

    def __setattr__(self, name: str, value: object) -> None:
        super().__setattr__(name, value)
        if name == "files":
            self.__dict__.pop("file_names", None)

    def __hash__(self) -> int:
        return hash(self.subject_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubjectRecord):
            return NotImplemented
        return self.subject_id == other.subject_id
