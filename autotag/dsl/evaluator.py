"""Constraint evaluator for DSL.

This module provides the Evaluator class that executes compiled AST nodes
against a subject and the subject's current tags. Evaluation never raises
for bad data: problems are reported on the evaluation context and a safe
default is used instead.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from autotag.dsl import ast
from autotag.dsl.context import EvaluationContext
from autotag.dsl.errors import EvaluationError
from autotag.dsl.keywords import NUMERIC_ACCESSORS, Keyword
from autotag.dsl.stdlib import BUILTINS

if TYPE_CHECKING:
    from autotag.interfaces import Subject, Tag

logger = logging.getLogger(__name__)


class Evaluator:
    """Evaluator for constraint AST nodes.

    Parameters
    ----------
    context : EvaluationContext | None
        Owner, collaborators and diagnostic sink. A bare context is created
        when omitted.

    Examples
    --------
    >>> from autotag.dsl.parser import parse
    >>> from autotag.subjects.models import SubjectRecord
    >>> evaluator = Evaluator()
    >>> subject = SubjectRecord(subject_id="s1", size=200)
    >>> evaluator.test(parse("size >= 100"), subject, [])
    True
    """

    def __init__(self, context: EvaluationContext | None = None) -> None:
        self.context = context or EvaluationContext()

    def evaluate(self, node: ast.ASTNode, subject: Subject, tags: list[Tag]) -> Any:
        """Evaluate an AST node for one subject.

        Parameters
        ----------
        node : ast.ASTNode
            Node to evaluate.
        subject : Subject
            Subject the expression is evaluated against.
        tags : list[Tag]
            Tags the subject currently carries.

        Returns
        -------
        Any
            Boolean, number or string result.

        Raises
        ------
        EvaluationError
            If the node type cannot be evaluated on its own.
        """
        if isinstance(node, ast.Literal):
            return node.value
        elif isinstance(node, ast.KeywordRef | ast.BareToken):
            return self.resolve_number(node, subject, tags)
        elif isinstance(node, ast.Not):
            value = self._truth(node.operand, subject, tags)
            return False if value is None else not value
        elif isinstance(node, ast.Or):
            return any(self._truth(op, subject, tags) for op in node.operands)
        elif isinstance(node, ast.And):
            return all(self._truth(op, subject, tags) for op in node.operands)
        elif isinstance(node, ast.Xor):
            result = False
            for op in node.operands:
                result ^= bool(self._truth(op, subject, tags))
            return result
        elif isinstance(node, ast.FunctionCall):
            return self._evaluate_function_call(node, subject, tags)
        else:
            raise EvaluationError(f"Unknown node type: {type(node).__name__}")

    def test(self, node: ast.ASTNode, subject: Subject, tags: list[Tag]) -> bool:
        """Evaluate a constraint's root node as a predicate.

        Only a boolean True result matches; any non-boolean result is
        reported and treated as False.
        """
        result = self.evaluate(node, subject, tags)
        if isinstance(result, bool):
            return result
        self.context.report_error(f"Constraint did not evaluate to a boolean: {node}")
        return False

    def _truth(
        self, node: ast.ASTNode, subject: Subject, tags: list[Tag]
    ) -> bool | None:
        value = self.evaluate(node, subject, tags)
        if isinstance(value, bool):
            return value
        self.context.report_error(f"Expected a boolean from '{node}'")
        return None

    def _evaluate_function_call(
        self, node: ast.FunctionCall, subject: Subject, tags: list[Tag]
    ) -> Any:
        builtin = BUILTINS[node.function]
        try:
            return builtin(self, node, subject, tags)
        except Exception as e:
            logger.debug("Builtin %s failed", node.name, exc_info=True)
            self.context.report_error(f"Error evaluating '{node}': {e}")
            return False

    def resolve_number(
        self, node: ast.ASTNode, subject: Subject, tags: list[Tag]
    ) -> int | float:
        """Resolve an argument to a number.

        Literals are returned as is, keywords are read from the subject and
        nested calls are evaluated. Anything else is reported and yields 0.

        Examples
        --------
        >>> from autotag.dsl.ast import BareToken
        >>> from autotag.subjects.models import SubjectRecord
        >>> evaluator = Evaluator()
        >>> subject = SubjectRecord(subject_id="s1")
        >>> evaluator.resolve_number(BareToken(text="bogus"), subject, [])
        0
        >>> evaluator.context.errors
        ['Invalid constraint keyword: bogus']
        """
        if isinstance(node, ast.Literal):
            value = node.value
        elif isinstance(node, ast.KeywordRef):
            accessor = NUMERIC_ACCESSORS.get(node.keyword)
            if accessor is None:
                self.context.report_error(f"Invalid constraint numeric: {node.name}")
                return 0
            try:
                return accessor(subject, self.context)
            except Exception as e:
                self.context.report_error(
                    f"Invalid constraint numeric: {node.name}: {e}"
                )
                return 0
        elif isinstance(node, ast.BareToken):
            self.context.report_error(f"Invalid constraint keyword: {node.text}")
            return 0
        else:
            value = self.evaluate(node, subject, tags)

        if isinstance(value, bool) or not isinstance(value, int | float):
            self.context.report_error(f"Invalid constraint numeric: {node}")
            return 0
        return value

    def resolve_strings(
        self, node: ast.ASTNode, subject: Subject, tags: list[Tag]
    ) -> tuple[str, ...]:
        """Resolve an argument to the strings it denotes.

        A quoted string or ``name`` yields one string, ``file_names`` the
        subject's file names. Anything else is reported and yields nothing.
        """
        if isinstance(node, ast.KeywordRef) and node.keyword is Keyword.FILE_NAMES:
            return tuple(subject.file_names)
        value = self.resolve_string(node, subject, tags)
        return () if value is None else (value,)

    def resolve_string(
        self, node: ast.ASTNode, subject: Subject, tags: list[Tag]
    ) -> str | None:
        """Resolve an argument to a single string, None if it has none."""
        if isinstance(node, ast.Literal) and isinstance(node.value, str):
            return node.value
        if isinstance(node, ast.KeywordRef) and node.keyword is Keyword.NAME:
            return subject.display_name
        self.context.report_error(f"Invalid constraint string: {node}")
        return None
