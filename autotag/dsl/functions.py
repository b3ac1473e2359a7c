"""Builtin function table for constraint expressions.

Function names are resolved once, at compile time, into a ``FunctionType``
together with the shape their arguments must have. Evaluation dispatches on
the enum (see ``autotag.dsl.stdlib``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class FunctionType(Enum):
    """Operation codes of the builtin functions."""

    HAS_TAG = auto()
    HAS_TAG_GROUP = auto()
    COUNT_TAG = auto()
    HAS_NET = auto()
    IS_PRIVATE = auto()
    IS_FORCE_START = auto()
    IS_CHECKING = auto()
    IS_COMPLETE = auto()
    IS_STOPPED = auto()
    IS_ERROR = auto()
    IS_PAUSED = auto()
    IS_MAGNET = auto()
    IS_LOW_NOISE = auto()
    CAN_ARCHIVE = auto()
    GE = auto()
    GT = auto()
    LE = auto()
    LT = auto()
    EQ = auto()
    NEQ = auto()
    CONTAINS = auto()
    MATCHES = auto()
    JAVASCRIPT = auto()
    HOURS_TO_SECONDS = auto()
    DAYS_TO_SECONDS = auto()
    WEEKS_TO_SECONDS = auto()
    GET_CONFIG = auto()


class ArgKind(Enum):
    """Shape an argument must have at compile time."""

    ANY = auto()
    STRING_LITERAL = auto()
    NUMERIC = auto()


@dataclass(frozen=True)
class FunctionSpec:
    """Compile-time signature of a builtin.

    Attributes
    ----------
    function : FunctionType
        Operation code.
    args : tuple[ArgKind, ...]
        Required argument shapes; the length is the arity.
    running_state : bool
        Whether the result can change with the subject's running state.
    """

    function: FunctionType
    args: tuple[ArgKind, ...] = ()
    running_state: bool = False

    @property
    def arity(self) -> int:
        """Number of arguments the function takes."""
        return len(self.args)


_STR = (ArgKind.STRING_LITERAL,)
_TWO = (ArgKind.ANY, ArgKind.ANY)
_NUM = (ArgKind.NUMERIC,)

FUNCTIONS: dict[str, FunctionSpec] = {
    "hasTag": FunctionSpec(FunctionType.HAS_TAG, _STR),
    "hasTagGroup": FunctionSpec(FunctionType.HAS_TAG_GROUP, _STR),
    "countTag": FunctionSpec(FunctionType.COUNT_TAG, _STR),
    "hasNet": FunctionSpec(FunctionType.HAS_NET, _STR),
    "isPrivate": FunctionSpec(FunctionType.IS_PRIVATE),
    "isForceStart": FunctionSpec(FunctionType.IS_FORCE_START, running_state=True),
    "isChecking": FunctionSpec(FunctionType.IS_CHECKING, running_state=True),
    "isComplete": FunctionSpec(FunctionType.IS_COMPLETE, running_state=True),
    "isStopped": FunctionSpec(FunctionType.IS_STOPPED, running_state=True),
    "isError": FunctionSpec(FunctionType.IS_ERROR, running_state=True),
    "isPaused": FunctionSpec(FunctionType.IS_PAUSED, running_state=True),
    "isMagnet": FunctionSpec(FunctionType.IS_MAGNET),
    "isLowNoise": FunctionSpec(FunctionType.IS_LOW_NOISE),
    "canArchive": FunctionSpec(FunctionType.CAN_ARCHIVE),
    "isGE": FunctionSpec(FunctionType.GE, _TWO),
    "isGT": FunctionSpec(FunctionType.GT, _TWO),
    "isLE": FunctionSpec(FunctionType.LE, _TWO),
    "isLT": FunctionSpec(FunctionType.LT, _TWO),
    "isEQ": FunctionSpec(FunctionType.EQ, _TWO),
    "isNEQ": FunctionSpec(FunctionType.NEQ, _TWO),
    "contains": FunctionSpec(FunctionType.CONTAINS, _TWO),
    "matches": FunctionSpec(
        FunctionType.MATCHES, (ArgKind.ANY, ArgKind.STRING_LITERAL)
    ),
    # a script can look at anything, so assume it tracks running state
    "javascript": FunctionSpec(FunctionType.JAVASCRIPT, _STR, running_state=True),
    "hoursToSeconds": FunctionSpec(FunctionType.HOURS_TO_SECONDS, _NUM),
    "htos": FunctionSpec(FunctionType.HOURS_TO_SECONDS, _NUM),
    "h2s": FunctionSpec(FunctionType.HOURS_TO_SECONDS, _NUM),
    "daysToSeconds": FunctionSpec(FunctionType.DAYS_TO_SECONDS, _NUM),
    "dtos": FunctionSpec(FunctionType.DAYS_TO_SECONDS, _NUM),
    "d2s": FunctionSpec(FunctionType.DAYS_TO_SECONDS, _NUM),
    "weeksToSeconds": FunctionSpec(FunctionType.WEEKS_TO_SECONDS, _NUM),
    "wtos": FunctionSpec(FunctionType.WEEKS_TO_SECONDS, _NUM),
    "w2s": FunctionSpec(FunctionType.WEEKS_TO_SECONDS, _NUM),
    "getConfig": FunctionSpec(FunctionType.GET_CONFIG, _STR),
}

COMPARISON_FUNCTIONS: dict[str, str] = {
    "==": "isEQ",
    "!=": "isNEQ",
    ">=": "isGE",
    "<=": "isLE",
    ">": "isGT",
    "<": "isLT",
}

SECONDS_PER_UNIT: dict[FunctionType, int] = {
    FunctionType.HOURS_TO_SECONDS: 60 * 60,
    FunctionType.DAYS_TO_SECONDS: 24 * 60 * 60,
    FunctionType.WEEKS_TO_SECONDS: 7 * 24 * 60 * 60,
}

NETWORKS: tuple[str, ...] = ("Public", "I2P", "Tor")


def internalise_network(name: str) -> str | None:
    """Map a network name to its canonical spelling.

    Examples
    --------
    >>> internalise_network("i2p")
    'I2P'
    >>> internalise_network("carrier pigeon") is None
    True
    """
    for network in NETWORKS:
        if network.lower() == name.strip().lower():
            return network
    return None
