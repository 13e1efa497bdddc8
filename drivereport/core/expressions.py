"""
Highlight Template Rendering

Fills highlight text templates from an event's counts. Two placeholder
forms are supported:

- `%TOTAL%`, `%VIOLATIONS%`, `%RATE%`, `%RISK%`: the named value
- `%calc:<expr>%`: arithmetic over named values, e.g.
  `%calc:total - violations%`

Expressions are parsed by a small recursive-descent parser that accepts
numeric literals, identifiers from the supplied source, `+ - * / ( )` and
whitespace. Anything else is uncomputable; nothing is ever passed to `eval`.
"""

from __future__ import annotations
import math
import re
from typing import Any, List, Mapping, Optional, Tuple

from drivereport.utils.constants import UNCOMPUTABLE_TEXT

_TOKEN_RE = re.compile(r"\s*(?:(\d+(?:\.\d*)?|\.\d+)|([A-Za-z_][A-Za-z0-9_]*)|(.))")
_CALC_RE = re.compile(r"%calc:([^%]*)%", re.IGNORECASE)
_NAMED_RE = re.compile(r"%([A-Z_]+)%")


class _Uncomputable(Exception):
    pass


def _tokenize(expr: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    for number, name, op in _TOKEN_RE.findall(expr):
        if number:
            tokens.append(("num", number))
        elif name:
            tokens.append(("name", name))
        elif op:
            if op not in "+-*/()":
                raise _Uncomputable(f"unexpected character {op!r}")
            tokens.append(("op", op))
    return tokens


def _lookup(source: Mapping[str, Any], name: str) -> float:
    lowered = {str(k).lower(): v for k, v in source.items()}
    value = lowered.get(name.lower())
    if value is None or isinstance(value, bool):
        raise _Uncomputable(f"unknown name {name!r}")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise _Uncomputable(f"{name!r} is not numeric")
    if not math.isfinite(number):
        raise _Uncomputable(f"{name!r} is not finite")
    return number


class _Parser:
    """expr := term (('+'|'-') term)* ; term := factor (('*'|'/') factor)* ;
    factor := ('+'|'-') factor | number | name | '(' expr ')'"""

    def __init__(self, tokens: List[Tuple[str, str]], source: Mapping[str, Any]):
        self.tokens = tokens
        self.pos = 0
        self.source = source

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self) -> Tuple[str, str]:
        token = self._peek()
        if token is None:
            raise _Uncomputable("unexpected end of expression")
        self.pos += 1
        return token

    def parse(self) -> float:
        value = self._expr()
        if self._peek() is not None:
            raise _Uncomputable(f"trailing token {self._peek()[1]!r}")
        return value

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in (("op", "+"), ("op", "-")):
            op = self._take()[1]
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> float:
        value = self._factor()
        while self._peek() in (("op", "*"), ("op", "/")):
            op = self._take()[1]
            rhs = self._factor()
            if op == "*":
                value = value * rhs
            else:
                if rhs == 0:
                    raise _Uncomputable("division by zero")
                value = value / rhs
        return value

    def _factor(self) -> float:
        kind, text = self._take()
        if kind == "num":
            return float(text)
        if kind == "name":
            return _lookup(self.source, text)
        if text == "-":
            return -self._factor()
        if text == "+":
            return self._factor()
        if text == "(":
            value = self._expr()
            if self._take() != ("op", ")"):
                raise _Uncomputable("missing ')'")
            return value
        raise _Uncomputable(f"unexpected {text!r}")


def evaluate_expression(expr: str, source: Mapping[str, Any]) -> Optional[float]:
    """
    Evaluate an arithmetic expression over named values.

    Args:
        expr: e.g. "violations / total * 100"
        source: name -> value (names match case-insensitively)

    Returns:
        The result, or None when the expression is uncomputable
    """
    try:
        tokens = _tokenize(expr or "")
        if not tokens:
            return None
        result = _Parser(tokens, source).parse()
    except _Uncomputable:
        return None
    return result if math.isfinite(result) else None


def format_number(value: Any) -> str:
    """Whole numbers without '.0'; other floats rounded to one decimal."""
    if isinstance(value, bool) or value is None:
        return "" if value is None else str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        rounded = round(value, 1)
        return str(int(rounded)) if rounded.is_integer() else str(rounded)
    return str(value)


def render_template(template: str, source: Mapping[str, Any]) -> str:
    """
    Substitute `%NAME%` and `%calc:...%` placeholders from `source`.

    Named placeholders whose value is missing are left as-is; uncomputable
    expressions render as '-'.

    Example:
        >>> render_template("%VIOLATIONS%/%TOTAL% (%RATE%%)", {"violations": 1, "total": 4, "rate": 25})
        '1/4 (25%)'
    """
    if not template:
        return ""

    def _calc(match: "re.Match") -> str:
        result = evaluate_expression(match.group(1), source)
        return UNCOMPUTABLE_TEXT if result is None else format_number(result)

    text = _CALC_RE.sub(_calc, template)

    lowered = {str(k).lower(): v for k, v in source.items()}

    def _named(match: "re.Match") -> str:
        value = lowered.get(match.group(1).lower())
        if value is None:
            return match.group(0)
        return format_number(value)

    return _NAMED_RE.sub(_named, text)
