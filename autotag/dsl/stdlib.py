"""Builtin functions for constraint expressions.

Every builtin takes the evaluator, the call node, the subject and the
subject's current tags. Builtins never raise for bad input: problems are
reported on the evaluation context and a safe default is returned
(``False`` for predicates, ``0`` for numbers).
"""

from __future__ import annotations

import math
import operator
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from autotag.dsl.ast import FunctionCall, Literal
from autotag.dsl.errors import EvaluationError
from autotag.dsl.functions import SECONDS_PER_UNIT, FunctionType
from autotag.interfaces import SubjectState

if TYPE_CHECKING:
    from autotag.dsl.evaluator import Evaluator
    from autotag.interfaces import Subject, Tag

Builtin = Callable[["Evaluator", FunctionCall, "Subject", "list[Tag]"], Any]


def _text_arg(call: FunctionCall, index: int = 0) -> str:
    arg = call.args[index]
    if not isinstance(arg, Literal) or not isinstance(arg.value, str):
        raise EvaluationError(f"Invalid parameters for function '{call.name}'")
    return arg.value


# Tag functions
def has_tag(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    """Check whether the subject carries a tag with the given name.

    Examples
    --------
    >>> from autotag.dsl.evaluator import Evaluator
    >>> from autotag.dsl.parser import parse
    >>> from autotag.subjects.models import SubjectRecord
    >>> from autotag.tags.store import MemoryTag
    >>> subject = SubjectRecord(subject_id="s1")
    >>> tags = [MemoryTag(tag_id="t1", name="Movies")]
    >>> has_tag(Evaluator(), parse('hasTag("Movies")'), subject, tags)
    True
    """
    name = _text_arg(call)
    return any(tag.name == name for tag in tags)


def has_tag_group(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    """Check whether any of the subject's tags belongs to the given group."""
    group = _text_arg(call)
    return any(tag.group == group for tag in tags)


def count_tag(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> int:
    """Return the live member count of the named tag.

    Reports a diagnostic and returns 0 when no such tag exists.
    """
    name = _text_arg(call)
    store = evaluator.context.tag_store
    found = store.tags_by_name(name) if store is not None else []
    if not found:
        evaluator.context.report_error(f"Tag '{name}' not found")
        return 0
    return found[0].member_count


# Subject state predicates
def has_net(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    """Check whether the subject is enabled on the given network."""
    return _text_arg(call) in subject.networks


def is_private(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    return subject.is_private


def is_force_start(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    return subject.is_force_start


def is_checking(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    """Check whether the subject is verifying its data.

    A seeding subject counts as checking while it is being rechecked.
    """
    if subject.state is SubjectState.CHECKING:
        return True
    return subject.state is SubjectState.SEEDING and subject.is_rechecking


def is_complete(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    return subject.is_complete


def is_stopped(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    """Check whether the subject is stopped but not paused."""
    return subject.state is SubjectState.STOPPED and not subject.is_paused


def is_error(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    return subject.state is SubjectState.ERROR


def is_paused(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    return subject.is_paused


def is_magnet(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    return subject.is_magnet


def is_low_noise(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    return subject.is_low_noise


def can_archive(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    return subject.can_archive


# Comparison functions
def _comparison(compare: Callable[[float, float], bool]) -> Builtin:
    def builtin(
        evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
    ) -> bool:
        lhs = evaluator.resolve_number(call.args[0], subject, tags)
        rhs = evaluator.resolve_number(call.args[1], subject, tags)
        return compare(float(lhs), float(rhs))

    return builtin


# String functions
def contains(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    """Check whether any string of the first argument contains the second.

    The first argument may be a quoted string, ``name`` or ``file_names``;
    the second a quoted string or ``name``.
    """
    haystacks = evaluator.resolve_strings(call.args[0], subject, tags)
    needle = evaluator.resolve_string(call.args[1], subject, tags)
    if needle is None:
        return False
    return any(needle in haystack for haystack in haystacks)


def matches(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    """Check whether any string of the first argument matches the pattern.

    Matching is a case-insensitive search. The last result is cached per
    subject and reused while the strings and the pattern are unchanged.
    """
    pattern = call.pattern
    if pattern is None:
        evaluator.context.report_error(
            call.pattern_error or f"Invalid constraint pattern in '{call}'"
        )
        return False

    strings = evaluator.resolve_strings(call.args[0], subject, tags)

    cached = call.match_cache.get(subject.subject_id)
    if cached is not None and cached[0] == strings and cached[1] is pattern:
        return cached[2]

    result = any(pattern.search(s) is not None for s in strings)
    call.match_cache[subject.subject_id] = (strings, pattern, result)
    return result


# Scripting
def javascript(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> bool:
    """Delegate to the script hook.

    Anything but a boolean result counts as False. Exceptions raised or
    returned by the hook are reported on the owning tag.
    """
    context = evaluator.context
    if context.script_hook is None:
        context.report_error("Script support is not available")
        return False

    source = _text_arg(call)
    try:
        result = context.script_hook(
            context.owner, f"javascript( {source})", subject, "inTag"
        )
    except Exception as e:
        context.report_error(f"Script error: {e}")
        return False

    if isinstance(result, bool):
        return result
    if isinstance(result, BaseException):
        context.report_error(f"Script error: {result}")
    return False


# Time conversions
def _seconds(unit: int) -> Builtin:
    def builtin(
        evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
    ) -> int | float:
        value = evaluator.resolve_number(call.args[0], subject, tags) * unit
        return value if math.isinf(value) else int(value)

    return builtin


# Configuration
def get_config(
    evaluator: Evaluator, call: FunctionCall, subject: Subject, tags: list[Tag]
) -> Any:
    """Read a whitelisted configuration value.

    Reports a diagnostic and returns 0 when the value cannot be read.
    """
    context = evaluator.context
    key = _text_arg(call)
    if context.parameters is None:
        context.report_error(f"Error getting config value for '{key}'")
        return 0
    try:
        return context.config_cache.get(key, context.parameters)
    except EvaluationError as e:
        context.report_error(str(e))
        return 0


BUILTINS: dict[FunctionType, Builtin] = {
    FunctionType.HAS_TAG: has_tag,
    FunctionType.HAS_TAG_GROUP: has_tag_group,
    FunctionType.COUNT_TAG: count_tag,
    FunctionType.HAS_NET: has_net,
    FunctionType.IS_PRIVATE: is_private,
    FunctionType.IS_FORCE_START: is_force_start,
    FunctionType.IS_CHECKING: is_checking,
    FunctionType.IS_COMPLETE: is_complete,
    FunctionType.IS_STOPPED: is_stopped,
    FunctionType.IS_ERROR: is_error,
    FunctionType.IS_PAUSED: is_paused,
    FunctionType.IS_MAGNET: is_magnet,
    FunctionType.IS_LOW_NOISE: is_low_noise,
    FunctionType.CAN_ARCHIVE: can_archive,
    FunctionType.GE: _comparison(operator.ge),
    FunctionType.GT: _comparison(operator.gt),
    FunctionType.LE: _comparison(operator.le),
    FunctionType.LT: _comparison(operator.lt),
    FunctionType.EQ: _comparison(operator.eq),
    FunctionType.NEQ: _comparison(operator.ne),
    FunctionType.CONTAINS: contains,
    FunctionType.MATCHES: matches,
    FunctionType.JAVASCRIPT: javascript,
    FunctionType.HOURS_TO_SECONDS: _seconds(
        SECONDS_PER_UNIT[FunctionType.HOURS_TO_SECONDS]
    ),
    FunctionType.DAYS_TO_SECONDS: _seconds(
        SECONDS_PER_UNIT[FunctionType.DAYS_TO_SECONDS]
    ),
    FunctionType.WEEKS_TO_SECONDS: _seconds(
        SECONDS_PER_UNIT[FunctionType.WEEKS_TO_SECONDS]
    ),
    FunctionType.GET_CONFIG: get_config,
}
"""Builtin implementation per operation code."""
