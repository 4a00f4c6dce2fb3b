"""Tokenizer, parser and interpreter for substituted formula expressions.

By the time text reaches this module every cell reference has already been
replaced by a number and every range by a list literal, so the grammar only
covers::

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/") unary)*
    unary   := ("+" | "-") unary | primary
    primary := NUMBER | list | NAME "(" [expr ("," expr)*] ")" | "(" expr ")"
    list    := "[" [expr ("," expr)*] [";" INTEGER] "]"

A trailing ``;N`` in a list stands for ``N`` further zeros, which is how a
range reaching past the grid edge is written without listing every blank.
Only whitelisted function names parse; anything else is a ``FormulaError``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import math
import re
from typing import Final, NamedTuple, TypeAlias

from cellmatrix.errors import FormulaError

_TOKEN_PATTERN = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Z_][A-Z0-9_]*)"
    r"|(?P<op>[-+*/(),;\[\]])"
    r")"
)


class Token(NamedTuple):
    kind: str
    text: str
    position: int


class Number(NamedTuple):
    value: float


class ListLiteral(NamedTuple):
    items: tuple[Node, ...]
    zeros: int = 0


class UnaryOp(NamedTuple):
    op: str
    operand: Node


class BinaryOp(NamedTuple):
    op: str
    left: Node
    right: Node


class Call(NamedTuple):
    name: str
    args: tuple[Node, ...]


Node: TypeAlias = "Number | ListLiteral | UnaryOp | BinaryOp | Call"


class Series(NamedTuple):
    """Evaluated list: explicit numbers followed by ``zeros`` implicit zeros."""

    values: list[float]
    zeros: int = 0

    @property
    def count(self) -> int:
        return len(self.values) + self.zeros


Value: TypeAlias = "float | Series"


def _flatten(args: Sequence[Value]) -> tuple[list[float], int]:
    """Return the explicit numbers of ``args`` and how many numbers they stand for."""
    numbers: list[float] = []
    count = 0
    for arg in args:
        if isinstance(arg, Series):
            numbers.extend(arg.values)
            count += arg.count
        else:
            numbers.append(arg)
            count += 1
    return numbers, count


def _sum(args: Sequence[Value]) -> float:
    numbers, _ = _flatten(args)
    return math.fsum(numbers)


def _average(args: Sequence[Value]) -> float:
    numbers, count = _flatten(args)
    if count == 0:
        raise FormulaError("AVERAGE requires at least one number.")
    return math.fsum(numbers) / count


FUNCTIONS: Final[dict[str, Callable[[Sequence[Value]], float]]] = {
    "SUM": _sum,
    "AVERAGE": _average,
}


def tokenize(text: str) -> list[Token]:
    """Split an expression into tokens, ending with an ``end`` token."""
    tokens: list[Token] = []
    position = 0
    length = len(text)
    while position < length:
        if text[position:].isspace():
            break
        match = _TOKEN_PATTERN.match(text, position)
        if match is None or match.end() == position:
            raise FormulaError(f"Unexpected character at {position}: {text[position:]!r}")
        kind = match.lastgroup
        if kind is None:
            raise FormulaError(f"Unexpected character at {position}.")
        tokens.append(Token(kind, match.group(kind), match.start(kind)))
        position = match.end()
    tokens.append(Token("end", "", length))
    return tokens


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._index = 0

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != "end":
            self._index += 1
        return token

    def _expect(self, text: str) -> None:
        token = self._advance()
        if token.text != text:
            raise FormulaError(
                f"Expected {text!r} at {token.position}, found {token.text or 'end'!r}."
            )

    def parse(self) -> Node:
        node = self._expression()
        token = self._peek()
        if token.kind != "end":
            raise FormulaError(f"Unexpected {token.text!r} at {token.position}.")
        return node

    def _expression(self) -> Node:
        node = self._term()
        while self._peek().text in ("+", "-") and self._peek().kind == "op":
            op = self._advance().text
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while self._peek().text in ("*", "/") and self._peek().kind == "op":
            op = self._advance().text
            node = BinaryOp(op, node, self._unary())
        return node

    def _unary(self) -> Node:
        token = self._peek()
        if token.kind == "op" and token.text in ("+", "-"):
            self._advance()
            return UnaryOp(token.text, self._unary())
        return self._primary()

    def _primary(self) -> Node:
        token = self._advance()
        if token.kind == "number":
            return Number(float(token.text))
        if token.kind == "name":
            if token.text not in FUNCTIONS:
                raise FormulaError(f"Unknown function or name: {token.text}")
            self._expect("(")
            return Call(token.text, self._arguments(")"))
        if token.text == "[":
            return self._list()
        if token.text == "(":
            node = self._expression()
            self._expect(")")
            return node
        raise FormulaError(
            f"Unexpected {token.text or 'end of formula'!r} at {token.position}."
        )

    def _list(self) -> ListLiteral:
        items: list[Node] = []
        if self._peek().text not in ("]", ";"):
            items.append(self._expression())
            while self._peek().text == ",":
                self._advance()
                items.append(self._expression())
        zeros = 0
        if self._peek().text == ";":
            self._advance()
            token = self._advance()
            if token.kind != "number" or not token.text.isdigit():
                raise FormulaError(
                    f"Expected a zero count at {token.position}, found {token.text or 'end'!r}."
                )
            zeros = int(token.text)
        self._expect("]")
        return ListLiteral(tuple(items), zeros)

    def _arguments(self, closing: str) -> tuple[Node, ...]:
        if self._peek().text == closing:
            self._advance()
            return ()
        items = [self._expression()]
        while self._peek().text == ",":
            self._advance()
            items.append(self._expression())
        self._expect(closing)
        return tuple(items)


def parse(text: str) -> Node:
    """Parse a substituted expression into an AST.

    Raises:
        FormulaError: On any syntax error or non-whitelisted name.
    """
    return _Parser(tokenize(text)).parse()


def _as_number(value: Value, context: str) -> float:
    if isinstance(value, Series):
        raise FormulaError(f"{context} cannot be applied to a list.")
    return value


def interpret(node: Node) -> Value:
    """Evaluate an AST produced by :func:`parse`."""
    if isinstance(node, Number):
        return node.value
    if isinstance(node, ListLiteral):
        values = [_as_number(interpret(item), "A nested list") for item in node.items]
        return Series(values, node.zeros)
    if isinstance(node, UnaryOp):
        operand = _as_number(interpret(node.operand), f"Unary {node.op}")
        return -operand if node.op == "-" else operand
    if isinstance(node, BinaryOp):
        left = _as_number(interpret(node.left), f"Operator {node.op}")
        right = _as_number(interpret(node.right), f"Operator {node.op}")
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if right == 0:
            raise FormulaError("Division by zero.")
        return left / right
    if isinstance(node, Call):
        return FUNCTIONS[node.name]([interpret(arg) for arg in node.args])
    raise FormulaError(f"Unsupported node: {node!r}")


def evaluate_expression(text: str) -> float:
    """Parse and evaluate ``text`` to a single finite number."""
    result = interpret(parse(text))
    if isinstance(result, Series):
        raise FormulaError("A formula must produce a single number, not a list.")
    if not math.isfinite(result):
        raise FormulaError("Formula result is not a finite number.")
    return result
