"""
Python front end, built on the standard library tokenizer
"""

from __future__ import annotations

import ast
import dataclasses
import io
import re
import tokenize
from typing import cast

from litescape.errors import ParseError
from litescape.syntax import (
    CompilationUnit,
    Literal,
    LiteralKind,
    Token,
    TokenKind,
    Trivia,
    TriviaKind,
    attach_trivia,
    build_tree,
)

_TRIVIA_RE = re.compile(
    r"(?P<whitespace>[ \t\f]+)"
    r"|(?P<end_of_line>\r\n|\r|\n)"
    r"|(?P<comment>#[^\r\n]*)"
    r"|(?P<line_continuation>\\(?:\r\n|\r|\n))"
)

# tokens whose text is carried as trivia instead
_LAYOUT_TOKENS = frozenset(
    {
        tokenize.NEWLINE,
        tokenize.NL,
        tokenize.INDENT,
        tokenize.DEDENT,
        tokenize.COMMENT,
        tokenize.ENDMARKER,
    }
)

_TOKEN_KINDS = {
    tokenize.NAME: TokenKind.IDENTIFIER,
    tokenize.NUMBER: TokenKind.NUMBER,
    tokenize.OP: TokenKind.PUNCTUATION,
}

_INTERPOLATED_START = frozenset({"FSTRING_START", "TSTRING_START"})
_INTERPOLATED_END = frozenset({"FSTRING_END", "TSTRING_END"})

_PREFIX_CHARS = "bBrRuUfFtT"
# an unrecognised escape keeps its backslash, so escaping the character after
# it would change the value
_ESCAPED_NON_ASCII_RE = re.compile(r"(?<!\\)(?:\\\\)*\\[^\x00-\x7f]")


def _split_trivia(text: str, offset: int) -> list[Trivia]:
    pieces: list[Trivia] = []
    pos = 0
    while pos < len(text):
        match = _TRIVIA_RE.match(text, pos)
        if match is None:
            raise ParseError(f"Unexpected text {text[pos]!r}", offset + pos)

        pieces.append(Trivia(TriviaKind(cast(str, match.lastgroup)), match.group()))
        pos = match.end()

    return pieces


def _string_literal(text: str, offset: int) -> Literal | Token:
    flags = text[: len(text) - len(text.lstrip(_PREFIX_CHARS))].lower()
    if "f" in flags or "t" in flags:
        return Token(TokenKind.INTERPOLATED_STRING, text)

    try:
        value = ast.literal_eval(text)
    except (SyntaxError, ValueError) as e:
        raise ParseError(f"Invalid string literal: {e}", offset) from e

    supports_escapes = not (
        "r" in flags or "b" in flags or _ESCAPED_NON_ASCII_RE.search(text)
    )
    return Literal(LiteralKind.STRING, text, value, supports_escapes=supports_escapes)


def decode_literal(text: str) -> str | bytes:
    """
    >>> decode_literal("'caf\\\\u00e9'") == "caf\\xe9"
    True
    """
    return ast.literal_eval(text)


class _Converter:
    def __init__(self, text: str) -> None:
        self.text = text
        self.lines = io.StringIO(text).readlines()
        self.line_offsets = [0]
        for line in self.lines:
            self.line_offsets.append(self.line_offsets[-1] + len(line))

        self.tokens: list[Token | Literal] = []
        self.offsets: list[int] = []
        self.leading: tuple[Trivia, ...] = ()
        self.pos = 0

    def offset(self, position: tuple[int, int]) -> int:
        row, col = position
        if row > len(self.lines):
            return len(self.text)

        return self.line_offsets[row - 1] + col

    def end_offset(self, tok: tokenize.TokenInfo) -> int:
        start = self.offset(tok.start)
        end = start + len(tok.string)
        if self.text[start:end] == tok.string:
            return end

        # the tokenizer normalised line endings inside the token
        return self.offset(tok.end)

    def run(self) -> CompilationUnit:
        depth = 0
        interpolated_start = 0
        try:
            for tok in tokenize.generate_tokens(iter(self.lines).__next__):
                name = tokenize.tok_name[tok.type]
                if name in _INTERPOLATED_START:
                    if depth == 0:
                        interpolated_start = self.offset(tok.start)

                    depth += 1
                elif name in _INTERPOLATED_END:
                    depth -= 1
                    if depth == 0:
                        end = self.end_offset(tok)
                        text = self.text[interpolated_start:end]
                        self.push(
                            Token(TokenKind.INTERPOLATED_STRING, text),
                            interpolated_start,
                            end,
                        )
                elif depth or tok.type in _LAYOUT_TOKENS:
                    continue
                elif tok.type == tokenize.ERRORTOKEN:
                    if tok.string.strip():
                        raise ParseError(
                            f"Unexpected token {tok.string!r}", self.offset(tok.start)
                        )
                else:
                    start = self.offset(tok.start)
                    end = self.end_offset(tok)
                    text = self.text[start:end]
                    if tok.type == tokenize.STRING:
                        token = _string_literal(text, start)
                    else:
                        kind = _TOKEN_KINDS.get(tok.type, TokenKind.OTHER)
                        token = Token(kind, text)

                    self.push(token, start, end)
        except (tokenize.TokenError, SyntaxError) as e:
            raise ParseError(f"Could not tokenize source: {e}", self.pos) from e

        self.attach(_split_trivia(self.text[self.pos :], self.pos))
        end_of_file = Token(TokenKind.END_OF_FILE, "", self.leading)
        return build_tree(self.tokens, end_of_file, self.offsets)

    def push(self, token: Token | Literal, start: int, end: int) -> None:
        self.attach(_split_trivia(self.text[self.pos : start], self.pos))
        self.tokens.append(token)
        self.offsets.append(start)
        self.pos = end

    def attach(self, pieces: list[Trivia]) -> None:
        """Splits trivia between the last token pushed and the one to come"""
        if not self.tokens:
            self.leading = tuple(pieces)
            return

        trailing, leading = attach_trivia(pieces)
        self.tokens[-1] = dataclasses.replace(
            self.tokens[-1], leading_trivia=self.leading, trailing_trivia=trailing
        )
        self.leading = leading


def parse(text: str) -> CompilationUnit:
    """Parses Python source text, raising `ParseError` for input it cannot tokenize"""
    return _Converter(text).run()
