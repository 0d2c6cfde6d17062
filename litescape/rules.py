"""
Rewrites string and character literals which contain non-ASCII characters to
use the \\uXXXX or \\UXXXXXXXX escape syntax instead
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from typing_extensions import override

from litescape.codec import escape_non_ascii, has_non_ascii
from litescape.errors import ShouldBeUnreachable
from litescape.syntax import Literal, LiteralKind, Node, SyntaxRewriter

if TYPE_CHECKING:
    from concurrent.futures import Executor

    from litescape.document import Document

logger = logging.getLogger("litescape")


class UnicodeCharacterEscapingRewriter(SyntaxRewriter):
    @override
    def visit_literal(self, node: Literal) -> Node:
        if node.kind in (LiteralKind.STRING, LiteralKind.CHARACTER):
            return _escape_literal(node)

        raise ShouldBeUnreachable


def _escape_literal(node: Literal) -> Literal:
    if not has_non_ascii(node.text):
        return node

    if not node.supports_escapes:
        logger.debug("Leaving %s untouched, it does not support escapes", node.text)
        return node

    # value and trivia are carried over as-is
    return node.with_text(escape_non_ascii(node.text))


REWRITER = UnicodeCharacterEscapingRewriter()


def transform(tree: Node) -> Node:
    """
    Escapes every non-ASCII literal in `tree`

    Returns `tree` itself when there was nothing to escape.
    """
    return REWRITER.visit(tree)


class NonAsciiCharactersAreEscapedInLiterals:
    def process(self, document: Document) -> Document:
        root = document.get_syntax_root()
        if root is None:
            return document

        new_root = transform(root)
        if new_root is root:
            return document

        return document.with_syntax_root(new_root)

    async def process_async(
        self, document: Document, executor: Executor | None = None
    ) -> Document:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor, self.process, document)
