"""Keywords usable as bare tokens in constraint expressions.

A keyword names a subject attribute (``size``, ``shareratio``, ``age`` ...).
Every keyword carries a dependency level that tells the scheduler how often
a constraint referencing it can change truth: never on its own (static),
when the subject's running state changes, or merely with the passage of time.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from autotag.dsl.context import EvaluationContext
    from autotag.interfaces import Subject

INFINITY = math.inf
"""Value of the infinity sentinel and of undefined ratios."""

INFINITY_TOKENS = frozenset({"∞", "inf", "infinity"})


class DependencyLevel(IntEnum):
    """How a constraint's truth can change without attribute edits.

    Levels are ordered; a constraint's level is the maximum over all the
    keywords it references.
    """

    STATIC = 0
    RUNNING = 1
    TIME = 2


class Keyword(StrEnum):
    """Subject attributes addressable from an expression."""

    SHARE_RATIO = "shareratio"
    AGE = "age"
    PERCENT = "percent"
    DOWNLOADING_FOR = "downloadingfor"
    SEEDING_FOR = "seedingfor"
    SWARM_MERGE = "swarmmergebytes"
    LAST_ACTIVE = "lastactive"
    SEED_COUNT = "seedcount"
    PEER_COUNT = "peercount"
    SEED_PEER_RATIO = "seedpeerratio"
    RESUME_IN = "resumein"
    MIN_OF_HOUR = "minofhour"
    HOUR_OF_DAY = "hourofday"
    DAY_OF_WEEK = "dayofweek"
    TAG_AGE = "tagage"
    COMPLETED_AGE = "completedage"
    PEER_MAX_COMPLETION = "peermaxcompletion"
    LEECHER_MAX_COMPLETION = "leechermaxcompletion"
    PEER_AVERAGE_COMPLETION = "peeraveragecompletion"
    SIZE = "size"
    SIZE_MB = "sizemb"
    SIZE_GB = "sizegb"
    FILE_COUNT = "filecount"
    AVAILABILITY = "availability"
    UP_IDLE = "upidle"
    DOWN_IDLE = "downidle"
    DOWNLOADED = "downloaded"
    UPLOADED = "uploaded"
    NAME = "name"
    FILE_NAMES = "file_names"


_S = DependencyLevel.STATIC
_R = DependencyLevel.RUNNING
_T = DependencyLevel.TIME

KEYWORDS: dict[str, tuple[Keyword, DependencyLevel]] = {
    "shareratio": (Keyword.SHARE_RATIO, _R),
    "share_ratio": (Keyword.SHARE_RATIO, _R),
    "age": (Keyword.AGE, _T),
    "percent": (Keyword.PERCENT, _R),
    "downloadingfor": (Keyword.DOWNLOADING_FOR, _R),
    "downloading_for": (Keyword.DOWNLOADING_FOR, _R),
    "seedingfor": (Keyword.SEEDING_FOR, _R),
    "seeding_for": (Keyword.SEEDING_FOR, _R),
    "swarmmergebytes": (Keyword.SWARM_MERGE, _R),
    "swarm_merge_bytes": (Keyword.SWARM_MERGE, _R),
    "lastactive": (Keyword.LAST_ACTIVE, _R),
    "last_active": (Keyword.LAST_ACTIVE, _R),
    "seedcount": (Keyword.SEED_COUNT, _T),
    "seed_count": (Keyword.SEED_COUNT, _T),
    "peercount": (Keyword.PEER_COUNT, _T),
    "peer_count": (Keyword.PEER_COUNT, _T),
    "seedpeerratio": (Keyword.SEED_PEER_RATIO, _T),
    "seed_peer_ratio": (Keyword.SEED_PEER_RATIO, _T),
    "resumein": (Keyword.RESUME_IN, _T),
    "resume_in": (Keyword.RESUME_IN, _T),
    "minofhour": (Keyword.MIN_OF_HOUR, _T),
    "min_of_hour": (Keyword.MIN_OF_HOUR, _T),
    "hourofday": (Keyword.HOUR_OF_DAY, _T),
    "hour_of_day": (Keyword.HOUR_OF_DAY, _T),
    "dayofweek": (Keyword.DAY_OF_WEEK, _T),
    "day_of_week": (Keyword.DAY_OF_WEEK, _T),
    "tagage": (Keyword.TAG_AGE, _T),
    "tag_age": (Keyword.TAG_AGE, _T),
    "completedage": (Keyword.COMPLETED_AGE, _T),
    "completed_age": (Keyword.COMPLETED_AGE, _T),
    "peermaxcompletion": (Keyword.PEER_MAX_COMPLETION, _R),
    "peer_max_completion": (Keyword.PEER_MAX_COMPLETION, _R),
    "leechmaxcompletion": (Keyword.LEECHER_MAX_COMPLETION, _R),
    "leech_max_completion": (Keyword.LEECHER_MAX_COMPLETION, _R),
    "leechermaxcompletion": (Keyword.LEECHER_MAX_COMPLETION, _R),
    "leecher_max_completion": (Keyword.LEECHER_MAX_COMPLETION, _R),
    "peeraveragecompletion": (Keyword.PEER_AVERAGE_COMPLETION, _R),
    "peer_average_completion": (Keyword.PEER_AVERAGE_COMPLETION, _R),
    "size": (Keyword.SIZE, _S),
    "sizemb": (Keyword.SIZE_MB, _S),
    "size_mb": (Keyword.SIZE_MB, _S),
    "sizegb": (Keyword.SIZE_GB, _S),
    "size_gb": (Keyword.SIZE_GB, _S),
    "filecount": (Keyword.FILE_COUNT, _S),
    "file_count": (Keyword.FILE_COUNT, _S),
    "availability": (Keyword.AVAILABILITY, _R),
    "upidle": (Keyword.UP_IDLE, _R),
    "up_idle": (Keyword.UP_IDLE, _R),
    "downidle": (Keyword.DOWN_IDLE, _R),
    "down_idle": (Keyword.DOWN_IDLE, _R),
    "downloaded": (Keyword.DOWNLOADED, _R),
    "uploaded": (Keyword.UPLOADED, _R),
    "name": (Keyword.NAME, _S),
    "file_names": (Keyword.FILE_NAMES, _S),
    "filenames": (Keyword.FILE_NAMES, _S),
}

STRING_KEYWORDS = frozenset({Keyword.NAME, Keyword.FILE_NAMES})


def lookup_keyword(token: str) -> tuple[Keyword, DependencyLevel] | None:
    """Look up a bare token in the keyword table (case-insensitive).

    Examples
    --------
    >>> lookup_keyword("Share_Ratio")
    (<Keyword.SHARE_RATIO: 'shareratio'>, <DependencyLevel.RUNNING: 1>)
    >>> lookup_keyword("bogus") is None
    True
    """
    return KEYWORDS.get(token.lower())


def _elapsed(now: datetime, then: datetime) -> int:
    if then.tzinfo is None:
        then = then.replace(tzinfo=UTC)
    return int((now - then).total_seconds())


def _share_ratio(subject: Subject, context: EvaluationContext) -> float:
    ratio = subject.share_ratio
    return INFINITY if ratio is None or ratio < 0 else ratio


def _age(subject: Subject, context: EvaluationContext) -> int:
    added = subject.added_time
    if added is None:
        return 0
    return _elapsed(context.now(), added)


def _completed_age(subject: Subject, context: EvaluationContext) -> int:
    completed = subject.completed_time
    if completed is None:
        return 0
    return _elapsed(context.now(), completed)


def _last_active(subject: Subject, context: EvaluationContext) -> float:
    active = subject.last_active_time
    if active is None:
        return INFINITY
    return _elapsed(context.now(), active)


def _resume_in(subject: Subject, context: EvaluationContext) -> int:
    resume = subject.auto_resume_time
    if resume is None:
        return 0
    remaining = -_elapsed(context.now(), resume)
    return max(0, remaining)


def _tag_age(subject: Subject, context: EvaluationContext) -> int:
    if context.owner is None:
        return 0
    added = context.owner.added_time(subject)
    if added is None:
        return 0
    return max(0, _elapsed(context.now(), added))


def _seeds(subject: Subject) -> int:
    seeds = subject.connected_seeds
    if subject.scrape_seeds is not None:
        seeds = max(seeds, subject.scrape_seeds)
    return seeds


def _peers(subject: Subject) -> int:
    peers = subject.connected_peers
    if subject.scrape_peers is not None:
        peers = max(peers, subject.scrape_peers)
    return peers


def _seed_peer_ratio(subject: Subject, context: EvaluationContext) -> float:
    seeds = _seeds(subject)
    peers = _peers(subject)
    if seeds < 0 or peers < 0:
        return 0.0
    if peers == 0:
        return INFINITY if seeds > 0 else 0.0
    return seeds / peers


def _idle(seconds: int | None) -> float:
    if seconds is None or seconds < 0:
        return INFINITY
    return seconds


def _completion(value: float | None) -> float:
    return 0 if value is None else value


def _local_now(context: EvaluationContext) -> datetime:
    return context.now().astimezone()


NumericAccessor = Callable[["Subject", "EvaluationContext"], "int | float"]

NUMERIC_ACCESSORS: dict[Keyword, NumericAccessor] = {
    Keyword.SHARE_RATIO: _share_ratio,
    Keyword.AGE: _age,
    Keyword.PERCENT: lambda s, c: s.percent_done,
    Keyword.DOWNLOADING_FOR: lambda s, c: s.seconds_downloading,
    Keyword.SEEDING_FOR: lambda s, c: s.seconds_seeding,
    Keyword.SWARM_MERGE: lambda s, c: s.merged_bytes,
    Keyword.LAST_ACTIVE: _last_active,
    Keyword.SEED_COUNT: lambda s, c: max(0, _seeds(s)),
    Keyword.PEER_COUNT: lambda s, c: max(0, _peers(s)),
    Keyword.SEED_PEER_RATIO: _seed_peer_ratio,
    Keyword.RESUME_IN: _resume_in,
    Keyword.MIN_OF_HOUR: lambda s, c: _local_now(c).minute,
    Keyword.HOUR_OF_DAY: lambda s, c: _local_now(c).hour,
    # 1 = Sunday ... 7 = Saturday
    Keyword.DAY_OF_WEEK: lambda s, c: _local_now(c).isoweekday() % 7 + 1,
    Keyword.TAG_AGE: _tag_age,
    Keyword.COMPLETED_AGE: _completed_age,
    Keyword.PEER_MAX_COMPLETION: lambda s, c: _completion(s.peer_max_completion),
    Keyword.LEECHER_MAX_COMPLETION: lambda s, c: _completion(s.leecher_max_completion),
    Keyword.PEER_AVERAGE_COMPLETION: lambda s, c: _completion(
        s.peer_average_completion
    ),
    Keyword.SIZE: lambda s, c: s.size,
    Keyword.SIZE_MB: lambda s, c: s.size // (1024 * 1024),
    Keyword.SIZE_GB: lambda s, c: s.size // (1024 * 1024 * 1024),
    Keyword.FILE_COUNT: lambda s, c: s.file_count,
    Keyword.AVAILABILITY: lambda s, c: (
        -1.0 if s.availability is None else s.availability
    ),
    Keyword.UP_IDLE: lambda s, c: _idle(s.seconds_since_upload),
    Keyword.DOWN_IDLE: lambda s, c: _idle(s.seconds_since_download),
    Keyword.DOWNLOADED: lambda s, c: s.bytes_downloaded,
    Keyword.UPLOADED: lambda s, c: s.bytes_uploaded,
}
