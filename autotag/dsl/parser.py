"""Constraint expression compiler.

This module converts constraint text into AST nodes. Compilation works in
two steps per nesting level:

1. Bracket extraction. Top-level bracketed regions are pulled out of the
   text and replaced by ``{N}`` placeholders. A region directly following a
   name is the raw parameter list of a function call and is kept as a
   ``ParamList``; any other region is compiled recursively as a
   sub-expression. Double quotes suppress operator and bracket recognition.
2. The flattened text is split on ``||``, ``&&`` or ``^`` (in that order,
   one combinator kind per level), or desugared from a comparison operator
   into a comparison function, or read as ``!`` negation, a placeholder, or a
   ``name({N})`` function call.

Examples
--------
>>> parse('!(hasTag("A") && hasTag("B")) || hasTag("C")').to_expression()
'(!((hasTag("A")&&hasTag("B")))||hasTag("C"))'
>>> parse("seeding_for > h2s(10)").to_expression()
'isGT(seeding_for,h2s(10))'
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

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
from autotag.dsl.config_values import CONFIG_KEYS
from autotag.dsl.errors import CompileError
from autotag.dsl.functions import (
    COMPARISON_FUNCTIONS,
    FUNCTIONS,
    ArgKind,
    FunctionType,
    internalise_network,
)
from autotag.dsl.keywords import (
    INFINITY,
    INFINITY_TOKENS,
    STRING_KEYWORDS,
    DependencyLevel,
    lookup_keyword,
)

if TYPE_CHECKING:
    from autotag.interfaces import Tag

TagLookup = Callable[[str], "list[Tag]"]

QUOTES = frozenset('"“”')

_COMPARISON = re.compile(r"(.+?)(==|!=|>=|>|<=|<)(.+)")
_PLACEHOLDER = re.compile(r"\{\d+\}")


def is_quoted(text: str) -> bool:
    """Check whether text is a complete double-quoted string.

    Examples
    --------
    >>> is_quoted('"abc"')
    True
    >>> is_quoted('"abc')
    False
    """
    return len(text) >= 2 and text[0] in QUOTES and text[-1] in QUOTES


class CompiledExpression(BaseModel):
    """Result of compiling a constraint expression.

    Attributes
    ----------
    text : str
        Source text.
    expr : ASTNode
        Root of the compiled expression.
    dependency_level : DependencyLevel
        Highest dependency level of the keywords referenced.
    depends_on_running_state : bool
        Whether any referenced function tracks the subject's running state.
    dependent_tags : tuple[Any, ...]
        Tags whose membership ``hasTag`` calls read and that can carry
        constraints of their own.
    warnings : tuple[str, ...]
        Non-fatal problems found while compiling, e.g. an invalid pattern.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    text: str
    expr: ASTNode
    dependency_level: DependencyLevel = DependencyLevel.STATIC
    depends_on_running_state: bool = False
    dependent_tags: tuple[Any, ...] = Field(default=())
    warnings: tuple[str, ...] = Field(default=())

    def to_expression(self) -> str:
        """Render the compiled expression as re-parseable text."""
        return self.expr.to_expression()


class ConstraintCompiler:
    """Compiler for a single constraint expression.

    A compiler instance holds the placeholder map and the facts gathered
    while compiling (dependency level, running-state dependence, dependent
    tags), so it must not be reused across expressions.

    Parameters
    ----------
    tag_lookup : TagLookup | None
        Resolves a tag name to the tags carrying it. When given, ``hasTag``
        arguments must name an existing tag and become dependency edges.
    """

    def __init__(self, tag_lookup: TagLookup | None = None) -> None:
        self._tag_lookup = tag_lookup
        self._context: dict[str, ASTNode] = {}
        self._level = DependencyLevel.STATIC
        self._running_state = False
        self._dependent_tags: list[Tag] = []
        self._warnings: list[str] = []

    def compile(self, text: str) -> CompiledExpression:
        """Compile expression text.

        Raises
        ------
        CompileError
            If the text is not a valid constraint expression.
        """
        try:
            expr = self._compile_start(text)
        except RecursionError as e:
            raise CompileError("Expression nested too deeply", text) from e

        return CompiledExpression(
            text=text,
            expr=expr,
            dependency_level=self._level,
            depends_on_running_state=self._running_state,
            dependent_tags=tuple(self._dependent_tags),
            warnings=tuple(self._warnings),
        )

    def _store(self, node: ASTNode) -> str:
        key = f"{{{len(self._context)}}}"
        self._context[key] = node
        return key

    def _compile_start(self, text: str) -> ASTNode:
        text = text.strip()
        if not text:
            raise CompileError("Missing expression")
        if text.lower() == "true":
            return Literal(value=True)

        in_quote = False
        level = 0
        bracket_start = 0
        flat: list[str] = []

        for i, c in enumerate(text):
            if c in QUOTES and (i == 0 or text[i - 1] != "\\"):
                in_quote = not in_quote

            if not in_quote:
                if c == "(":
                    level += 1
                    if level == 1:
                        bracket_start = i + 1
                elif c == ")":
                    level -= 1
                    if level < 0:
                        raise CompileError("Unmatched ')'", text)
                    if level == 0:
                        inner = text[bracket_start:i].strip()
                        if flat and flat[-1][-1].isalnum():
                            # function call
                            key = self._store(self._param_list(inner))
                            flat.append(f"({key})")
                        else:
                            key = self._store(self._compile_start(inner))
                            flat.append(key)
                elif level == 0 and not c.isspace():
                    flat.append(c)
            elif level == 0:
                flat.append(c)

        if level != 0:
            raise CompileError("Unmatched '('", text)
        if in_quote:
            raise CompileError("Unmatched '\"'", text)

        return self._compile_basic("".join(flat))

    def _compile_basic(self, text: str) -> ASTNode:
        if not text:
            raise CompileError("Missing operand")

        for separator, node_type in (("||", Or), ("&&", And), ("^", Xor)):
            parts = [part.strip() for part in _split_outside_quotes(text, separator)]
            if len(parts) > 1:
                if node_type is Xor and not all(parts):
                    raise CompileError("Two or more arguments required for ^", text)
                operands = tuple(self._compile_basic(part) for part in parts)
                return node_type(operands=operands)

        if text.lower() in ("true", "false"):
            return Literal(value=text.lower() == "true")

        m = _COMPARISON.match(text)
        if m is not None and not is_quoted(text):
            lhs, op, rhs = (group.strip() for group in m.groups())
            params = self._param_list(f"{lhs},{rhs}")
            return self._function(COMPARISON_FUNCTIONS[op], params)

        if text.startswith("!"):
            return Not(operand=self._compile_basic(text[1:].strip()))

        if _PLACEHOLDER.fullmatch(text):
            node = self._context.get(text)
            if node is None or isinstance(node, ParamList):
                raise CompileError("Failed to compile", text)
            return node

        pos = text.find("(")
        if pos > 0 and text.endswith(")"):
            name = text[:pos]
            params = self._context.get(text[pos + 1 : -1].strip())
            if not isinstance(params, ParamList):
                raise CompileError("Failed to compile", text)
            return self._function(name, params)

        raise CompileError("Unsupported construct", text)

    def _param_list(self, text: str) -> ParamList:
        text = text.strip()
        if not text:
            return ParamList()
        values = tuple(self._param_value(item) for item in _split_params(text))
        return ParamList(text=text, values=values)

    def _param_value(self, item: str) -> ASTNode:
        if not item:
            raise CompileError("Missing parameter")
        if is_quoted(item):
            return Literal(value=item[1:-1])
        if item[0] in QUOTES:
            raise CompileError("Unmatched '\"'", item)
        if _PLACEHOLDER.fullmatch(item):
            return self._dereference(item)
        if "(" in item:
            return self._compile_start(item)
        return self._classify_token(item)

    def _dereference(self, key: str) -> ASTNode:
        node = self._context.get(key)
        if node is None:
            raise CompileError(f"Reference {key} not found")
        if isinstance(node, ParamList):
            if len(node.values) != 1:
                raise CompileError(f"Reference {key} resolved incorrectly")
            return node.values[0]
        return node

    def _classify_token(self, token: str) -> ASTNode:
        lowered = token.lower()
        if lowered in INFINITY_TOKENS:
            return Literal(value=INFINITY)

        number = _parse_number(token)
        if number is not None:
            return Literal(value=number)

        found = lookup_keyword(token)
        if found is not None:
            keyword, level = found
            self._level = max(self._level, level)
            return KeywordRef(name=token, keyword=keyword, level=level)

        if lowered in ("true", "false"):
            return Literal(value=lowered == "true")

        return BareToken(text=token)

    def _function(self, name: str, params: ParamList) -> FunctionCall:
        spec = FUNCTIONS.get(name)
        if spec is None:
            raise CompileError(f"Unsupported function '{name}'")

        values = list(params.values)
        if len(values) != spec.arity or not all(
            _arg_ok(value, kind) for value, kind in zip(values, spec.args)
        ):
            raise CompileError(
                f"Invalid parameters for function '{name}'", params.to_expression()
            )

        if spec.running_state:
            self._running_state = True

        match spec.function:
            case FunctionType.HAS_TAG:
                self._add_tag_dependency(_literal_text(values[0]))
            case FunctionType.HAS_NET:
                network = internalise_network(_literal_text(values[0]))
                if network is None:
                    raise CompileError(
                        f"Invalid parameters for function '{name}'",
                        params.to_expression(),
                    )
                values[0] = Literal(value=network)
            case FunctionType.GET_CONFIG:
                key = _literal_text(values[0]).lower()
                if key not in CONFIG_KEYS:
                    raise CompileError(f"Unsupported configuration parameter: {key}")
                values[0] = Literal(value=key)
            case _:
                pass

        if tuple(values) != params.values:
            params = params.model_copy(update={"values": tuple(values)})

        call = FunctionCall(name=name, function=spec.function, params=params)
        if call.pattern_error is not None:
            self._warnings.append(call.pattern_error)
        return call

    def _add_tag_dependency(self, tag_name: str) -> None:
        if self._tag_lookup is None:
            return
        tags = self._tag_lookup(tag_name)
        if not tags:
            raise CompileError(f"Tag '{tag_name}' not found")
        for tag in tags:
            if tag.supports_properties and all(
                tag is not known for known in self._dependent_tags
            ):
                self._dependent_tags.append(tag)


def _literal_text(node: ASTNode) -> str:
    assert isinstance(node, Literal) and isinstance(node.value, str)
    return node.value


def _arg_ok(value: ASTNode, kind: ArgKind) -> bool:
    if kind is ArgKind.STRING_LITERAL:
        return isinstance(value, Literal) and isinstance(value.value, str)
    if kind is ArgKind.NUMERIC:
        if isinstance(value, Literal):
            return not isinstance(value.value, (bool, str))
        return isinstance(value, KeywordRef) and value.keyword not in STRING_KEYWORDS
    return True


def _parse_number(token: str) -> int | float | None:
    try:
        return float(token) if "." in token else int(token)
    except ValueError:
        return None


def _split_outside_quotes(text: str, separator: str) -> list[str]:
    """Split text on separator, ignoring separators inside double quotes."""
    parts: list[str] = []
    in_quote = False
    start = 0
    i = 0
    while i < len(text):
        c = text[i]
        if c in QUOTES and (i == 0 or text[i - 1] != "\\"):
            in_quote = not in_quote
        elif not in_quote and text.startswith(separator, i):
            parts.append(text[start:i])
            i += len(separator)
            start = i
            continue
        i += 1
    parts.append(text[start:])
    return parts


def _split_params(text: str) -> list[str]:
    """Split a parameter list on top-level commas.

    Whitespace outside quotes is dropped; commas inside quotes or brackets
    do not split.
    """
    params: list[str] = []
    current: list[str] = []
    in_quote = False
    depth = 0

    for i, c in enumerate(text):
        if c in QUOTES and (i == 0 or text[i - 1] != "\\"):
            in_quote = not in_quote

        if not in_quote:
            if c == "(":
                depth += 1
            elif c == ")":
                depth -= 1
            elif c == "," and depth == 0:
                params.append("".join(current))
                current = []
                continue
            if c.isspace():
                continue
        current.append(c)

    params.append("".join(current))
    return params


def compile_expression(
    text: str, tag_lookup: TagLookup | None = None
) -> CompiledExpression:
    """Compile constraint text.

    Parameters
    ----------
    text : str
        Constraint expression.
    tag_lookup : TagLookup | None
        Tag resolver used to validate ``hasTag`` and collect dependencies.

    Returns
    -------
    CompiledExpression
        AST plus the facts the scheduler needs.

    Raises
    ------
    CompileError
        If the expression cannot be compiled.

    Examples
    --------
    >>> compiled = compile_expression("age > daysToSeconds(7)")
    >>> compiled.dependency_level.name
    'TIME'
    """
    return ConstraintCompiler(tag_lookup).compile(text)


def parse(text: str) -> ASTNode:
    """Compile constraint text and return the root AST node.

    Raises
    ------
    CompileError
        If the expression cannot be compiled.
    """
    return compile_expression(text).expr
