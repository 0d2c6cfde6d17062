"""
Persistent syntax tree shared by all language front ends

Nodes are frozen dataclasses. A rewrite never mutates a node: it builds new
ancestors along the path to the changed node and shares everything else with
the original tree.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

from litescape.errors import ParseError, UnexpectedTreeShape

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

__all__ = (
    "TriviaKind",
    "Trivia",
    "TokenKind",
    "Token",
    "LiteralKind",
    "Literal",
    "Group",
    "CompilationUnit",
    "Node",
    "SyntaxRewriter",
    "replace",
    "iter_tokens",
    "to_source",
    "attach_trivia",
    "build_tree",
)


class TriviaKind(Enum):
    WHITESPACE = "whitespace"
    END_OF_LINE = "end_of_line"
    COMMENT = "comment"
    DIRECTIVE = "directive"
    LINE_CONTINUATION = "line_continuation"


@dataclass(frozen=True, slots=True)
class Trivia:
    kind: TriviaKind
    text: str


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    NUMBER = "number"
    PUNCTUATION = "punctuation"
    INTERPOLATED_STRING = "interpolated_string"
    OTHER = "other"
    END_OF_FILE = "end_of_file"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    leading_trivia: tuple[Trivia, ...] = ()
    trailing_trivia: tuple[Trivia, ...] = ()


class LiteralKind(Enum):
    STRING = "string"
    CHARACTER = "character"


@dataclass(frozen=True, slots=True)
class Literal:
    """
    A string or character literal

    `text` is the literal exactly as written, `value` is what it evaluates to.
    `supports_escapes` is False for forms where a backslash does not start an
    escape sequence (verbatim and raw strings).
    """

    kind: LiteralKind
    text: str
    value: str | bytes
    leading_trivia: tuple[Trivia, ...] = ()
    trailing_trivia: tuple[Trivia, ...] = ()
    supports_escapes: bool = True

    def with_text(self, text: str) -> Literal:
        return dataclasses.replace(self, text=text)


@dataclass(frozen=True, slots=True)
class Group:
    open: Token
    children: tuple[Node, ...]
    close: Token


@dataclass(frozen=True, slots=True)
class CompilationUnit:
    children: tuple[Node, ...]
    end_of_file: Token


Node = Union[Token, Literal, Group, CompilationUnit]


def _parts(node: Group | CompilationUnit) -> tuple[Node, ...]:
    if isinstance(node, Group):
        return (node.open, *node.children, node.close)

    return (*node.children, node.end_of_file)


class SyntaxRewriter:
    """
    Depth-first rewriter over a syntax tree

    Subclasses override the `visit_*` methods they care about. Container nodes
    are only rebuilt when one of their parts came back as a different object,
    so an untouched subtree is returned as the very same object.

    The walk keeps its own stack, so nesting depth is not bounded by the
    interpreter's recursion limit.
    """

    def visit(self, node: Node) -> Node:
        substitute = self.enter(node)
        if substitute is not None:
            return substitute

        if not isinstance(node, (Group, CompilationUnit)):
            return self._visit_leaf(node)

        stack: list[tuple[Group | CompilationUnit, tuple[Node, ...], list[Node]]]
        stack = [(node, _parts(node), [])]
        while True:
            container, parts, done = stack[-1]
            if len(done) < len(parts):
                child = parts[len(done)]
                substitute = self.enter(child)
                if substitute is not None:
                    done.append(substitute)
                elif isinstance(child, (Group, CompilationUnit)):
                    stack.append((child, _parts(child), []))
                else:
                    done.append(self._visit_leaf(child))

                continue

            stack.pop()
            if all(new is old for new, old in zip(done, parts)):
                result = container
            elif isinstance(container, Group):
                result = self.visit_group(container, tuple(done))
            else:
                result = self.visit_compilation_unit(container, tuple(done))

            if not stack:
                return result

            stack[-1][2].append(result)

    def enter(self, node: Node) -> Node | None:
        """
        Called before `node` is visited

        Returning a node uses it as the result for `node` without walking
        into it.
        """
        return None

    def visit_token(self, node: Token) -> Node:
        return node

    def visit_literal(self, node: Literal) -> Node:
        return node

    def visit_group(self, node: Group, parts: tuple[Node, ...]) -> Node:
        """Rebuilds `node` from its rewritten brackets and children"""
        open_token, *children, close_token = parts
        return Group(
            self._token_slot(open_token),
            tuple(children),
            self._token_slot(close_token),
        )

    def visit_compilation_unit(
        self, node: CompilationUnit, parts: tuple[Node, ...]
    ) -> Node:
        *children, end_of_file = parts
        return CompilationUnit(tuple(children), self._token_slot(end_of_file))

    def _visit_leaf(self, node: Node) -> Node:
        if isinstance(node, Literal):
            return self.visit_literal(node)

        if isinstance(node, Token):
            return self.visit_token(node)

        raise UnexpectedTreeShape(
            f"Not a syntax node: {type(node).__name__}", node
        )

    @staticmethod
    def _token_slot(node: Node) -> Token:
        if not isinstance(node, Token):
            raise UnexpectedTreeShape(
                f"Bracket or end-of-file slot rewritten to {type(node).__name__}",
                node,
            )

        return node


class _NodeReplacer(SyntaxRewriter):
    def __init__(self, old: Node, new: Node) -> None:
        self.old = old
        self.new = new
        self.found = False

    def enter(self, node: Node) -> Node | None:
        if node is self.old:
            self.found = True
            return self.new

        return None


def replace(tree: Node, old: Node, new: Node) -> Node:
    """
    Returns `tree` with the node `old` (matched by identity) swapped for `new`

    Only the ancestors of `old` are rebuilt, all other subtrees are shared with
    `tree`.
    """
    replacer = _NodeReplacer(old, new)
    result = replacer.visit(tree)
    if not replacer.found:
        raise UnexpectedTreeShape("Node to replace is not part of the tree", old)

    return result


def iter_tokens(node: Node) -> Iterator[Token | Literal]:
    """Yields the tokens and literals of `node` in source order"""
    stack = [node]
    while stack:
        node = stack.pop()
        if isinstance(node, (Token, Literal)):
            yield node
        elif isinstance(node, (Group, CompilationUnit)):
            stack.extend(reversed(_parts(node)))
        else:
            raise UnexpectedTreeShape(
                f"Not a syntax node: {type(node).__name__}", node
            )


def to_source(node: Node) -> str:
    """Prints a tree back to source text, trivia included"""
    parts: list[str] = []
    for token in iter_tokens(node):
        parts.extend(trivia.text for trivia in token.leading_trivia)
        parts.append(token.text)
        parts.extend(trivia.text for trivia in token.trailing_trivia)

    return "".join(parts)


_LINE_BREAKS = frozenset({TriviaKind.END_OF_LINE, TriviaKind.LINE_CONTINUATION})


def attach_trivia(
    pieces: Sequence[Trivia],
) -> tuple[tuple[Trivia, ...], tuple[Trivia, ...]]:
    """
    Splits the trivia between two tokens into (trailing, leading)

    The previous token keeps everything up to and including the first line
    break (or line continuation), the rest leads the next token.
    """
    for i, piece in enumerate(pieces):
        if piece.kind in _LINE_BREAKS:
            return tuple(pieces[: i + 1]), tuple(pieces[i + 1 :])

    return tuple(pieces), ()


_BRACKETS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_BRACKETS.values())


def build_tree(
    tokens: Iterable[Token | Literal], end_of_file: Token, offsets: Sequence[int]
) -> CompilationUnit:
    """
    Nests a flat token stream into bracket groups

    `offsets` holds the source offset of each token, used for error reporting.
    """
    stack: list[tuple[Token, list[Node], int]] = []
    current: list[Node] = []
    for token, offset in zip(tokens, offsets):
        if isinstance(token, Token) and token.kind is TokenKind.PUNCTUATION:
            if token.text in _BRACKETS:
                stack.append((token, current, offset))
                current = []
                continue

            if token.text in _CLOSERS:
                if not stack:
                    raise ParseError(f"Unmatched {token.text!r}", offset)

                open_token, parent, open_offset = stack.pop()
                if _BRACKETS[open_token.text] != token.text:
                    raise ParseError(
                        f"{token.text!r} does not close {open_token.text!r} "
                        f"opened at offset {open_offset}",
                        offset,
                    )

                parent.append(Group(open_token, tuple(current), token))
                current = parent
                continue

        current.append(token)

    if stack:
        open_token, _, open_offset = stack[-1]
        raise ParseError(f"Unclosed {open_token.text!r}", open_offset)

    return CompilationUnit(tuple(current), end_of_file)
