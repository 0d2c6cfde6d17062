"""
C# front end

A lexer, not a parser: it recognises trivia, literals, identifiers, numbers and
punctuation, and nests the token stream by bracket pairs. That is all the
literal rewriter needs, and it keeps `to_source(parse(text)) == text`.
"""

from __future__ import annotations

import dataclasses
import re

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

_NEWLINE_CHARS = "\r\n\x85\u2028\u2029"

_WHITESPACE_RE = re.compile(
    "[ \t\v\f\u00a0\u1680\u2000-\u200a\u202f\u205f\u3000\ufeff]+"
)
_END_OF_LINE_RE = re.compile(r"\r\n|[\r\n\x85\u2028\u2029]")
_LINE_COMMENT_RE = re.compile(rf"//[^{_NEWLINE_CHARS}]*")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_DIRECTIVE_RE = re.compile(rf"#[^{_NEWLINE_CHARS}]*")

_IDENTIFIER_RE = re.compile(
    r"@?(?:[^\W\d]|\\u[0-9A-Fa-f]{4})(?:\w|\\u[0-9A-Fa-f]{4})*"
)
_NUMBER_RE = re.compile(
    r"0[xX][0-9A-Fa-f_]+[uUlL]*"
    r"|0[bB][01_]+[uUlL]*"
    r"|(?:\d[\d_]*)?\.?\d[\d_]*(?:[eE][+-]?\d[\d_]*)?[uUlLfFdDmM]*"
)
_CHARACTER_RE = re.compile(rf"'(?:[^'\\{_NEWLINE_CHARS}]|\\[^{_NEWLINE_CHARS}])*'")
_STRING_RE = re.compile(
    rf'"(?:[^"\\{_NEWLINE_CHARS}]|\\[^{_NEWLINE_CHARS}])*"(?:[uU]8)?'
)
_VERBATIM_RE = re.compile(r'@"(?:[^"]|"")*"(?:[uU]8)?')
_RAW_OPEN_RE = re.compile(r'"{3,}')
_INTERPOLATED_OPEN_RE = re.compile(r'(?:\$+@?|@\$+)(?=")')

# longest first, ">>" stays split so generic type arguments can close
_OPERATORS = sorted(
    "??= <<= ... => == != <= >= && || ?? ?. ++ -- += -= *= /= %= &= |= ^= << -> :: ..".split(),
    key=len,
    reverse=True,
)
_PUNCTUATION = frozenset("{}()[];,.:?+-*/%&|^!~=<>")

_SIMPLE_ESCAPES = {
    "'": "'",
    '"': '"',
    "\\": "\\",
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}
_HEX_RE = re.compile(r"[0-9A-Fa-f]{1,4}")
_HEX4_RE = re.compile(r"[0-9A-Fa-f]{4}")
_HEX8_RE = re.compile(r"[0-9A-Fa-f]{8}")
_LINE_SPLIT_RE = re.compile(r"(\r\n|[\r\n\x85\u2028\u2029])")


def _unescape(body: str, offset: int) -> str:
    out: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\":
            out.append(char)
            i += 1
            continue

        if i + 1 >= len(body):
            raise ParseError("Dangling backslash in literal", offset + i)

        code = body[i + 1]
        if code in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[code])
            i += 2
            continue

        if code == "x":
            match = _HEX_RE.match(body, i + 2)
        elif code == "u":
            match = _HEX4_RE.match(body, i + 2)
        elif code == "U":
            match = _HEX8_RE.match(body, i + 2)
        else:
            raise ParseError(
                f"Unrecognized escape sequence '\\{code}'", offset + i
            )

        if match is None:
            raise ParseError(f"Malformed '\\{code}' escape", offset + i)

        value = int(match.group(), 16)
        if value > 0x10FFFF:
            raise ParseError("Escape is outside the Unicode range", offset + i)

        out.append(chr(value))
        i = match.end()

    return "".join(out)


def _raw_value(text: str, offset: int) -> str:
    quotes = len(text) - len(text.lstrip('"'))
    content = text[quotes:-quotes]
    if not any(char in content for char in _NEWLINE_CHARS):
        return content

    parts = _LINE_SPLIT_RE.split(content)
    lines = parts[0::2]
    separators = parts[1::2]
    if lines[0].strip() or lines[-1].strip():
        raise ParseError(
            "Multi-line raw string delimiters must be on their own lines",
            offset,
        )

    indentation = lines[-1]
    out: list[str] = []
    for i, line in enumerate(lines[1:-1]):
        if i:
            out.append(separators[i])

        if line.startswith(indentation):
            out.append(line[len(indentation) :])
        elif line.strip():
            raise ParseError(
                "Raw string line does not start with the closing indentation",
                offset,
            )

    return "".join(out)


def decode_literal(kind: LiteralKind, text: str, offset: int = 0) -> str:
    """
    Evaluates a C# string or character literal

    >>> decode_literal(LiteralKind.STRING, r'"caf\\u00E9"') == "caf\\xe9"
    True
    >>> decode_literal(LiteralKind.STRING, '@"say ""hi"" twice"')
    'say "hi" twice'
    """
    if kind is LiteralKind.CHARACTER:
        value = _unescape(text[1:-1], offset + 1)
        if not value:
            raise ParseError("Empty character literal", offset)

        return value

    if text[-2:] in ("u8", "U8"):
        text = text[:-2]

    if text.startswith('@"'):
        return text[2:-1].replace('""', '"')

    if text.startswith('"""'):
        return _raw_value(text, offset)

    return _unescape(text[1:-1], offset + 1)


class _Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def run(self) -> CompilationUnit:
        tokens: list[Token | Literal] = []
        offsets: list[int] = []
        leading = tuple(self._scan_trivia())
        while self.pos < len(self.text):
            start = self.pos
            token = self._scan_token()
            trailing, next_leading = attach_trivia(self._scan_trivia())
            tokens.append(
                dataclasses.replace(
                    token, leading_trivia=leading, trailing_trivia=trailing
                )
            )
            offsets.append(start)
            leading = next_leading

        end_of_file = Token(TokenKind.END_OF_FILE, "", leading)
        return build_tree(tokens, end_of_file, offsets)

    def _at_line_start(self) -> bool:
        line_start = self.pos
        while line_start > 0 and self.text[line_start - 1] not in _NEWLINE_CHARS:
            line_start -= 1

        return not self.text[line_start : self.pos].strip()

    def _scan_trivia(self) -> list[Trivia]:
        pieces: list[Trivia] = []
        text = self.text
        while self.pos < len(text):
            if match := _WHITESPACE_RE.match(text, self.pos):
                kind = TriviaKind.WHITESPACE
            elif match := _END_OF_LINE_RE.match(text, self.pos):
                kind = TriviaKind.END_OF_LINE
            elif match := _LINE_COMMENT_RE.match(text, self.pos):
                kind = TriviaKind.COMMENT
            elif text.startswith("/*", self.pos):
                match = _BLOCK_COMMENT_RE.match(text, self.pos)
                if match is None:
                    raise ParseError("Unterminated block comment", self.pos)

                kind = TriviaKind.COMMENT
            elif text.startswith("#", self.pos) and self._at_line_start():
                match = _DIRECTIVE_RE.match(text, self.pos)
                kind = TriviaKind.DIRECTIVE
            else:
                break

            pieces.append(Trivia(kind, match.group()))
            self.pos = match.end()

        return pieces

    def _scan_token(self) -> Token | Literal:
        text = self.text
        start = self.pos
        char = text[start]

        if _INTERPOLATED_OPEN_RE.match(text, start):
            return self._token(
                TokenKind.INTERPOLATED_STRING, self._interpolated_end(start)
            )

        if text.startswith('"""', start):
            return self._literal(
                LiteralKind.STRING, self._raw_end(start), supports_escapes=False
            )

        if char == '"':
            return self._literal(LiteralKind.STRING, self._match(_STRING_RE))

        if text.startswith('@"', start):
            return self._literal(
                LiteralKind.STRING,
                self._match(_VERBATIM_RE),
                supports_escapes=False,
            )

        if char == "'":
            return self._literal(LiteralKind.CHARACTER, self._match(_CHARACTER_RE))

        if match := _IDENTIFIER_RE.match(text, start):
            return self._token(TokenKind.IDENTIFIER, match.end())

        if match := _NUMBER_RE.match(text, start):
            return self._token(TokenKind.NUMBER, match.end())

        for operator in _OPERATORS:
            if text.startswith(operator, start):
                return self._token(TokenKind.PUNCTUATION, start + len(operator))

        if char in _PUNCTUATION:
            return self._token(TokenKind.PUNCTUATION, start + 1)

        raise ParseError(f"Unexpected character {char!r}", start)

    def _match(self, pattern: re.Pattern[str]) -> int:
        match = pattern.match(self.text, self.pos)
        if match is None:
            raise ParseError("Unterminated literal", self.pos)

        return match.end()

    def _token(self, kind: TokenKind, end: int) -> Token:
        token = Token(kind, self.text[self.pos : end])
        self.pos = end
        return token

    def _literal(
        self, kind: LiteralKind, end: int, *, supports_escapes: bool = True
    ) -> Literal:
        raw = self.text[self.pos : end]
        value = decode_literal(kind, raw, self.pos)
        self.pos = end
        return Literal(kind, raw, value, supports_escapes=supports_escapes)

    def _raw_end(self, start: int) -> int:
        opening = _RAW_OPEN_RE.match(self.text, start)
        if opening is None:
            raise ParseError("Expected raw string delimiter", start)

        delimiter = opening.group()
        close = self.text.find(delimiter, opening.end())
        if close < 0:
            raise ParseError("Unterminated raw string literal", start)

        end = close + len(delimiter)
        if self.text.startswith("u8", end) or self.text.startswith("U8", end):
            end += 2

        return end

    def _interpolated_end(self, start: int) -> int:
        prefix = _INTERPOLATED_OPEN_RE.match(self.text, start)
        if prefix is None:
            raise ParseError("Expected interpolated string", start)

        quote = prefix.end()
        if self.text.startswith('"""', quote):
            return self._raw_end(quote)

        verbatim = "@" in prefix.group()
        text = self.text
        i = quote + 1
        while i < len(text):
            char = text[i]
            if verbatim and text.startswith('""', i):
                i += 2
            elif char == '"':
                return i + 1
            elif not verbatim and char == "\\":
                i += 2
            elif not verbatim and char in _NEWLINE_CHARS:
                break
            elif text.startswith("{{", i) or text.startswith("}}", i):
                i += 2
            elif char == "{":
                i = self._hole_end(i + 1)
            else:
                i += 1

        raise ParseError("Unterminated interpolated string", start)

    def _hole_end(self, start: int) -> int:
        """Skips an interpolation hole, returning the offset after its '}'"""
        saved = self.pos
        self.pos = start
        depth = 0
        try:
            while True:
                self._scan_trivia()
                if self.pos >= len(self.text):
                    raise ParseError("Unterminated interpolation", start)

                char = self.text[self.pos]
                if depth == 0 and char == "}":
                    return self.pos + 1

                if depth == 0 and char == ":":
                    close = self.text.find("}", self.pos)
                    if close < 0:
                        raise ParseError("Unterminated format specifier", self.pos)

                    return close + 1

                token = self._scan_token()
                if token.text in ("(", "[", "{"):
                    depth += 1
                elif token.text in (")", "]", "}"):
                    depth -= 1
        finally:
            self.pos = saved


def parse(text: str) -> CompilationUnit:
    """Parses C# source text, raising `ParseError` for input it cannot lex"""
    return _Lexer(text).run()
