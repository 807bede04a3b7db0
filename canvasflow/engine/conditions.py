"""
Condition Evaluator for Decision Nodes.

Evaluates the restricted condition language used by decision nodes.
It is not a general expression language: a condition is
one comparison between two operands.

Supported forms, checked in this priority:
- ``a > b`` and ``a < b``: numeric comparison, best-effort parse of both sides
- ``a == b``: string equality of the operand texts
- ``a != b``: inverse of ``==``

Variables are substituted by name before comparison. Anything that does
not match a supported form evaluates to True; an error while evaluating
evaluates to False and is reported.
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional
import json
import logging
import math
import re

from canvasflow.engine.errors import ConditionError


logger = logging.getLogger(__name__)

# Comparison operators, highest priority first
COMPARISON_OPERATORS = (">", "<", "==", "!=")

_TOKEN_RE = re.compile(
    r"""
    (?P<number>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<string>"[^"]*"?|'[^']*'?)
    |(?P<ident>[A-Za-z_]\w*)
    |(?P<op>==|!=|&&|\|\||[><=!&|+\-*/()])
    |(?P<space>\s+)
    """,
    re.VERBOSE,
)

_NUMERIC_PREFIX_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class Token(NamedTuple):
    """A lexical token of a condition."""
    type: str
    text: str
    spaced: bool = False  # whitespace preceded the token


def tokenize(expression: str) -> List[Token]:
    """
    Split a condition into tokens.

    Characters outside the grammar are dropped.
    """
    tokens = []
    pos = 0
    spaced = False
    while pos < len(expression):
        match = _TOKEN_RE.match(expression, pos)
        if match is None:
            pos += 1
            continue
        pos = match.end()
        kind = match.lastgroup
        if kind == "space":
            spaced = True
            continue
        tokens.append(Token(kind, match.group(), spaced))
        spaced = False
    return tokens


def render_literal(value: Any) -> str:
    """Render a variable value as condition text."""
    if value is None:
        raise ConditionError("variable has no value")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return json.dumps(value, separators=(",", ":"))


def substitute(tokens: List[Token], variables: Dict[str, Any]) -> List[Token]:
    """Replace identifiers bound in ``variables`` with their literal text."""
    result = []
    for token in tokens:
        if token.type == "ident" and token.text in variables:
            try:
                text = render_literal(variables[token.text])
            except ConditionError as e:
                raise ConditionError(f"Cannot substitute '{token.text}': {e}") from e
            result.append(Token("literal", text, token.spaced))
        else:
            result.append(token)
    return result


def parse_number(text: str) -> Optional[float]:
    """
    Best-effort numeric parse using the leading numeric prefix.

    Returns:
        The number, or None if the text does not start with one
    """
    text = text.strip()
    match = _NUMERIC_PREFIX_RE.match(text)
    if match:
        return float(match.group())
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    return None


def _operand_text(tokens: List[Token]) -> str:
    parts = []
    for token in tokens:
        if parts and token.spaced:
            parts.append(" ")
        parts.append(token.text)
    return "".join(parts)


def _compare(tokens: List[Token]) -> bool:
    op_positions = [i for i, t in enumerate(tokens) if t.type == "op" and t.text in COMPARISON_OPERATORS]

    for operator in COMPARISON_OPERATORS:
        index = next((i for i in op_positions if tokens[i].text == operator), None)
        if index is None:
            continue

        right_end = next((i for i in op_positions if i > index), len(tokens))
        left = _operand_text(tokens[:index])
        right = _operand_text(tokens[index + 1:right_end])
        if not left or not right:
            # Unparseable comparison
            return True

        if operator in (">", "<"):
            left_num = parse_number(left)
            right_num = parse_number(right)
            if left_num is None or right_num is None:
                return False
            return left_num > right_num if operator == ">" else left_num < right_num

        if operator == "==":
            return left == right
        return left != right

    return True


def evaluate_condition(
    expression: str,
    variables: Dict[str, Any],
    on_error: Optional[Callable[[str], None]] = None,
) -> bool:
    """
    Evaluate a decision condition against variable values.

    Args:
        expression: Condition text, e.g. ``"x > 10"``
        variables: Variable name -> value
        on_error: Called with a message when evaluation fails

    Returns:
        The condition result. Unrecognized conditions are True and
        conditions that fail to evaluate are False.
    """
    try:
        tokens = substitute(tokenize(expression or ""), variables)
        return _compare(tokens)
    except Exception as e:
        message = f'Error evaluating condition "{expression}": {e}'
        logger.warning(message)
        if on_error:
            on_error(message)
        return False
