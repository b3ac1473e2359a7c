"""Abstract Syntax Tree node definitions for constraint DSL.

This module defines the AST nodes that represent compiled constraint
expressions. Nodes are immutable once compiled; the only mutable state is the
per-subject result cache of ``matches`` calls, held in a private attribute.
"""

from __future__ import annotations

import math
import re
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from autotag.dsl.functions import FunctionType
from autotag.dsl.keywords import DependencyLevel, Keyword


class ASTNode(BaseModel):
    """Base class for all AST nodes."""

    model_config = ConfigDict(frozen=True)

    def to_expression(self) -> str:
        """Render the node as re-parseable expression text."""
        raise NotImplementedError

    def __str__(self) -> str:
        """Return the expression form of the node."""
        return self.to_expression()


class Literal(ASTNode):
    """Literal value node (boolean, number or quoted string).

    Examples
    --------
    >>> Literal(value="hello").to_expression()
    '"hello"'
    >>> Literal(value=42).to_expression()
    '42'
    >>> Literal(value=True).to_expression()
    'true'
    """

    value: bool | int | float | str

    def to_expression(self) -> str:
        """Render the literal."""
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            return f'"{self.value}"'
        if isinstance(self.value, float) and math.isinf(self.value):
            return "∞"
        return str(self.value)


class KeywordRef(ASTNode):
    """Bare token naming a subject attribute.

    Examples
    --------
    >>> from autotag.dsl.keywords import lookup_keyword
    >>> keyword, level = lookup_keyword("seeding_for")
    >>> KeywordRef(name="seeding_for", keyword=keyword, level=level).to_expression()
    'seeding_for'
    """

    name: str
    keyword: Keyword
    level: DependencyLevel

    def to_expression(self) -> str:
        """Render the keyword as written."""
        return self.name


class BareToken(ASTNode):
    """Bare token that is neither a number nor a known keyword.

    Such tokens compile, but resolving them at evaluation time records a
    diagnostic and yields a neutral value.
    """

    text: str

    def to_expression(self) -> str:
        """Render the token as written."""
        return self.text


class ParamList(ASTNode):
    """Parameter list of a function call.

    Attributes
    ----------
    text : str
        Raw parameter text with placeholders.
    values : tuple[ASTNode, ...]
        Resolved arguments: literals, keywords, bare tokens or nested
        function calls and sub-expressions.
    """

    text: str = ""
    values: tuple[ASTNode, ...] = ()

    def to_expression(self) -> str:
        """Render the arguments separated by commas."""
        return ",".join(value.to_expression() for value in self.values)


class Not(ASTNode):
    """Logical negation."""

    operand: ASTNode

    def to_expression(self) -> str:
        """Render as ``!(operand)``."""
        return f"!({self.operand.to_expression()})"


class _Combinator(ASTNode):
    operands: tuple[ASTNode, ...] = Field(min_length=1)

    symbol: ClassVar[str] = ""

    def to_expression(self) -> str:
        """Render the operands joined by the operator, in brackets."""
        inner = self.symbol.join(op.to_expression() for op in self.operands)
        return f"({inner})"


class Or(_Combinator):
    """Short-circuit disjunction of two or more operands."""

    symbol: ClassVar[str] = "||"


class And(_Combinator):
    """Short-circuit conjunction of two or more operands."""

    symbol: ClassVar[str] = "&&"


class Xor(_Combinator):
    """Exclusive-or fold over two or more operands."""

    operands: tuple[ASTNode, ...] = Field(min_length=2)

    symbol: ClassVar[str] = "^"


class FunctionCall(ASTNode):
    """Call of a builtin function.

    Attributes
    ----------
    name : str
        Function name as written (aliases preserved).
    function : FunctionType
        Resolved operation code.
    params : ParamList
        Validated arguments.
    """

    name: str
    function: FunctionType
    params: ParamList

    _pattern: re.Pattern[str] | None = PrivateAttr(default=None)
    _pattern_error: str | None = PrivateAttr(default=None)
    _match_cache: dict[str, tuple[Any, ...]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        """Compile the pattern of a ``matches`` call once."""
        if self.function is FunctionType.MATCHES:
            pattern = self.args[1]
            if isinstance(pattern, Literal) and isinstance(pattern.value, str):
                try:
                    self._pattern = re.compile(pattern.value, re.IGNORECASE)
                except re.error as e:
                    self._pattern_error = (
                        f"Invalid constraint pattern: {pattern.value}: {e}"
                    )

    @property
    def args(self) -> tuple[ASTNode, ...]:
        """Arguments of the call."""
        return self.params.values

    @property
    def pattern(self) -> re.Pattern[str] | None:
        """Compiled pattern of a ``matches`` call, None if invalid."""
        return self._pattern

    @property
    def pattern_error(self) -> str | None:
        """Pattern compilation error of a ``matches`` call."""
        return self._pattern_error

    @property
    def match_cache(self) -> dict[str, tuple[Any, ...]]:
        """Last (values, pattern, result) per subject id."""
        return self._match_cache

    def to_expression(self) -> str:
        """Render as ``name(args)``."""
        return f"{self.name}({self.params.to_expression()})"
