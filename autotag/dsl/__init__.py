"""Constraint Domain-Specific Language (DSL).

This module provides the expression language tag constraints are written
in. The DSL includes:

- Boolean combinators: ``||``, ``&&``, ``^`` and ``!``
- Comparison operators: ==, !=, <, >, <=, >= (numeric)
- Keywords naming subject attributes (``size``, ``shareratio``, ``age`` ...)
- Builtin function calls (``hasTag``, ``matches``, ``h2s`` ...)

Examples
--------
>>> from autotag.dsl import compile_expression, evaluate
>>> from autotag.subjects.models import SubjectRecord
>>> compiled = compile_expression("size > 1024 && !isPrivate()")
>>> evaluate(compiled.expr, SubjectRecord(subject_id="s1", size=4096))
True
"""

from typing import Any

from autotag.dsl.ast import (
    And,
    ASTNode,
    BareToken,
    FunctionCall,
    KeywordRef,
    Literal,
    Not,
    Or,
    ParamList,
    Xor,
)
from autotag.dsl.context import EvaluationContext
from autotag.dsl.errors import CompileError, DSLError, EvaluationError
from autotag.dsl.evaluator import Evaluator
from autotag.dsl.keywords import DependencyLevel, Keyword
from autotag.dsl.parser import CompiledExpression, compile_expression, parse
from autotag.dsl.stdlib import BUILTINS
from autotag.interfaces import Subject, Tag

__all__ = [
    # AST nodes
    "ASTNode",
    "Literal",
    "KeywordRef",
    "BareToken",
    "ParamList",
    "Not",
    "Or",
    "And",
    "Xor",
    "FunctionCall",
    # Errors
    "DSLError",
    "CompileError",
    "EvaluationError",
    # Compiler
    "CompiledExpression",
    "compile_expression",
    "parse",
    "DependencyLevel",
    "Keyword",
    # Evaluation
    "Evaluator",
    "EvaluationContext",
    "evaluate",
    # Builtins
    "BUILTINS",
]


# Convenience function
def evaluate(
    node: ASTNode,
    subject: Subject,
    tags: list[Tag] | None = None,
    context: EvaluationContext | None = None,
) -> Any:
    """Evaluate a constraint expression for one subject.

    Parameters
    ----------
    node : ASTNode
        Compiled AST node to evaluate.
    subject : Subject
        Subject to evaluate against.
    tags : list[Tag] | None
        Tags the subject currently carries.
    context : EvaluationContext | None
        Evaluation context; a bare one is used when omitted.

    Returns
    -------
    Any
        Result of evaluation.
    """
    return Evaluator(context).evaluate(node, subject, tags or [])
