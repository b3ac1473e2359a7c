"""Tests for the constraint expression compiler."""

from __future__ import annotations

import math

import pytest

from autotag.dsl import (
    And,
    BareToken,
    CompileError,
    DependencyLevel,
    FunctionCall,
    KeywordRef,
    Literal,
    Not,
    Or,
    Xor,
    compile_expression,
    parse,
)
from autotag.dsl.functions import FunctionType
from autotag.tags.store import MemoryTag


# Literals and keywords
def test_true_compiles_to_literal() -> None:
    """Test the whole-text 'true' shortcut."""
    assert parse("true") == Literal(value=True)
    assert parse("  TRUE ") == Literal(value=True)


def test_false_compiles_to_literal() -> None:
    """Test 'false' as an expression."""
    assert parse("false") == Literal(value=False)


def test_comparison_desugars_to_function() -> None:
    """Test comparison operators become comparison functions."""
    node = parse("size > 5")
    assert isinstance(node, FunctionCall)
    assert node.function is FunctionType.GT
    assert node.name == "isGT"
    assert isinstance(node.args[0], KeywordRef)
    assert node.args[1] == Literal(value=5)


@pytest.mark.parametrize(
    ("operator", "name"),
    [
        ("==", "isEQ"),
        ("!=", "isNEQ"),
        (">=", "isGE"),
        ("<=", "isLE"),
        (">", "isGT"),
        ("<", "isLT"),
    ],
)
def test_comparison_operators(operator: str, name: str) -> None:
    """Test every comparison operator maps to its function."""
    assert parse(f"size {operator} 5").to_expression() == f"{name}(size,5)"


def test_float_literal() -> None:
    """Test a number with a decimal point is a float literal."""
    node = parse("shareratio >= 1.5")
    assert isinstance(node, FunctionCall)
    assert node.args[1] == Literal(value=1.5)


@pytest.mark.parametrize("token", ["∞", "inf", "Infinity"])
def test_infinity_tokens(token: str) -> None:
    """Test the infinity sentinel spellings."""
    node = parse(f"shareratio >= {token}")
    assert isinstance(node, FunctionCall)
    value = node.args[1]
    assert isinstance(value, Literal)
    assert math.isinf(value.value)  # type: ignore[arg-type]


def test_keywords_are_case_insensitive() -> None:
    """Test keyword lookup ignores case but keeps the spelling."""
    node = parse("SIZE > 5")
    assert isinstance(node, FunctionCall)
    keyword = node.args[0]
    assert isinstance(keyword, KeywordRef)
    assert keyword.name == "SIZE"


def test_unknown_bare_token_compiles() -> None:
    """Test unknown bare tokens are kept for evaluation-time reporting."""
    node = parse("size > bogus")
    assert isinstance(node, FunctionCall)
    assert node.args[1] == BareToken(text="bogus")


def test_whitespace_is_insignificant() -> None:
    """Test whitespace outside quotes is ignored."""
    assert parse("  size   >   5  ").to_expression() == "isGT(size,5)"
    assert parse('hasTag ( "A" )').to_expression() == 'hasTag("A")'


def test_redundant_brackets() -> None:
    """Test bracketed sub-expressions collapse."""
    assert parse("((size > 5))").to_expression() == "isGT(size,5)"


# Combinators
def test_or_and_precedence() -> None:
    """Test || binds looser than &&."""
    node = parse("isPrivate() || isMagnet() && isPaused()")
    assert isinstance(node, Or)
    assert isinstance(node.operands[1], And)


def test_and_of_three() -> None:
    """Test one combinator node per level with all operands."""
    node = parse("isPrivate() && isMagnet() && isPaused()")
    assert isinstance(node, And)
    assert len(node.operands) == 3


def test_xor() -> None:
    """Test ^ builds an exclusive-or node."""
    node = parse("isPrivate() ^ isMagnet()")
    assert isinstance(node, Xor)


def test_xor_requires_two_operands() -> None:
    """Test a dangling ^ is rejected."""
    with pytest.raises(CompileError, match=r"Two or more arguments required for \^"):
        parse('hasTag("A") ^')


def test_negation() -> None:
    """Test ! negates the following operand."""
    node = parse("!isPrivate()")
    assert isinstance(node, Not)
    assert isinstance(node.operand, FunctionCall)


def test_negated_group() -> None:
    """Test the documented mixed expression."""
    node = parse('!(hasTag("A") && hasTag("B")) || hasTag("C")')
    assert node.to_expression() == '(!((hasTag("A")&&hasTag("B")))||hasTag("C"))'


def test_operators_inside_quotes_do_not_split() -> None:
    """Test quoted text is opaque to the operator split."""
    node = parse('contains(name, "a && b || c") || isPrivate()')
    assert isinstance(node, Or)
    call = node.operands[0]
    assert isinstance(call, FunctionCall)
    assert call.args[1] == Literal(value="a && b || c")


def test_smart_quotes() -> None:
    """Test typographic double quotes delimit strings."""
    node = parse("hasTag(“Movies”)")
    assert isinstance(node, FunctionCall)
    assert node.args[0] == Literal(value="Movies")


def test_nested_function_arguments() -> None:
    """Test calls nested in argument lists."""
    node = parse("seeding_for > h2s(10)")
    assert node.to_expression() == "isGT(seeding_for,h2s(10))"


def test_function_aliases_keep_their_spelling() -> None:
    """Test aliases resolve to the same operation."""
    for alias in ("hoursToSeconds", "htos", "h2s"):
        node = parse(f"{alias}(1) > 0")
        assert isinstance(node, FunctionCall)
        inner = node.args[0]
        assert isinstance(inner, FunctionCall)
        assert inner.function is FunctionType.HOURS_TO_SECONDS
        assert inner.name == alias


# Round trip
@pytest.mark.parametrize(
    "text",
    [
        "true",
        "size > 1024",
        "shareratio >= ∞",
        'hasTag("A") && !hasTag("B")',
        '!(hasTag("A") && hasTag("B")) || hasTag("C")',
        "isPrivate() ^ isMagnet() ^ isPaused()",
        'matches(file_names, "\\.mkv$")',
        "age > daysToSeconds(7)",
        'getConfig("queue.seeding.ignore.share.ratio") <= shareratio',
        "isGE(size_mb, 1.5)",
    ],
)
def test_to_expression_round_trips(text: str) -> None:
    """Test rendering and recompiling gives the same expression."""
    rendered = parse(text).to_expression()
    assert parse(rendered).to_expression() == rendered


# Function validation
def test_unsupported_function() -> None:
    """Test unknown function names are rejected."""
    with pytest.raises(CompileError, match="Unsupported function 'bogus'"):
        parse("bogus(1)")


@pytest.mark.parametrize(
    "text",
    [
        "hasTag(1)",
        "hasTag(name)",
        "isPrivate(1)",
        'isGT(size)',
        "h2s(name) > 0",
        'h2s("one") > 0',
        'hasNet("carrier pigeon")',
    ],
)
def test_invalid_parameters(text: str) -> None:
    """Test arity and argument shapes are checked at compile time."""
    with pytest.raises(CompileError, match="Invalid parameters for function"):
        parse(text)


def test_has_net_canonicalises_network() -> None:
    """Test network names are stored canonically."""
    assert parse('hasNet("i2p")').to_expression() == 'hasNet("I2P")'


def test_get_config_key_is_lowercased() -> None:
    """Test configuration keys are matched case-insensitively."""
    node = parse('getConfig("Queue.Seeding.Ignore.Share.Ratio") > 1')
    assert "queue.seeding.ignore.share.ratio" in node.to_expression()


def test_get_config_rejects_unknown_key() -> None:
    """Test only whitelisted configuration keys compile."""
    with pytest.raises(
        CompileError, match="Unsupported configuration parameter: bogus"
    ):
        parse('getConfig("bogus") > 1')


def test_invalid_pattern_is_a_warning() -> None:
    """Test a bad regular expression compiles with a warning."""
    compiled = compile_expression('matches(name, "[")')
    assert len(compiled.warnings) == 1
    assert compiled.warnings[0].startswith("Invalid constraint pattern: [")


# Syntax errors
@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("", "Missing expression"),
        ("   ", "Missing expression"),
        ('hasTag("A"', r"Unmatched '\('"),
        ('hasTag("A"))', r"Unmatched '\)'"),
        ('contains(name, "abc") || "x', "Unmatched '\"'"),
        ("size", "Unsupported construct"),
        ("size > 5 && ", "Missing operand"),
    ],
)
def test_syntax_errors(text: str, message: str) -> None:
    """Test malformed expressions are rejected with a message."""
    with pytest.raises(CompileError, match=message):
        parse(text)


def test_deep_nesting_is_rejected() -> None:
    """Test runaway nesting fails cleanly."""
    text = "(" * 1500 + "true" + ")" * 1500
    with pytest.raises(CompileError, match="nested too deeply"):
        parse(text)


def test_compile_error_keeps_message_and_text() -> None:
    """Test CompileError carries the offending text separately."""
    with pytest.raises(CompileError) as exc_info:
        parse("size")
    assert exc_info.value.message == "Unsupported construct"
    assert exc_info.value.text == "size"


# Compile-time facts
@pytest.mark.parametrize(
    ("text", "level"),
    [
        ("size > 5", DependencyLevel.STATIC),
        ('hasTag("A")', DependencyLevel.STATIC),
        ("shareratio > 1", DependencyLevel.RUNNING),
        ("age > 5 && shareratio > 1", DependencyLevel.TIME),
        ("shareratio > 1 || size > 5", DependencyLevel.RUNNING),
    ],
)
def test_dependency_level_is_maximum(text: str, level: DependencyLevel) -> None:
    """Test the dependency level is the maximum over referenced keywords."""
    assert compile_expression(text).dependency_level is level


def test_running_state_functions_flag_expression() -> None:
    """Test running-state functions mark the whole expression."""
    assert compile_expression("isStopped() || size > 5").depends_on_running_state
    assert not compile_expression("shareratio > 1").depends_on_running_state


def test_has_tag_resolves_dependencies() -> None:
    """Test hasTag arguments become dependency edges when tags are known."""
    bar = MemoryTag(tag_id="t1", name="Bar")
    plain = MemoryTag(tag_id="t2", name="Plain", supports_properties=False)
    tags = {"Bar": [bar], "Plain": [plain]}

    compiled = compile_expression(
        'hasTag("Bar") && !hasTag("Bar") || hasTag("Plain")',
        tag_lookup=lambda name: tags.get(name, []),
    )

    assert compiled.dependent_tags == (bar,)


def test_has_tag_unknown_tag() -> None:
    """Test hasTag of a missing tag fails when tags are known."""
    with pytest.raises(CompileError, match="Tag 'Missing' not found"):
        compile_expression('hasTag("Missing")', tag_lookup=lambda name: [])


def test_has_tag_without_lookup_is_unchecked() -> None:
    """Test compiling without a tag lookup accepts any tag name."""
    assert compile_expression('hasTag("Anything")').dependent_tags == ()
