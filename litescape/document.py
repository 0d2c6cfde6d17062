from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path

from litescape.errors import ParseError
from litescape.languages import get_language
from litescape.syntax import CompilationUnit, Node, to_source

logger = logging.getLogger("litescape")

BOM = "\ufeff"


@dataclass(frozen=True)
class Document:
    """
    The text of one source file and the language it is written in

    A leading byte order mark is kept out of `text` and restored by `write`.
    """

    text: str
    language: str
    path: Path | None = None
    bom: bool = False

    @classmethod
    def from_path(cls, path: str | Path, language: str) -> Document:
        path = Path(path)
        with open(path, encoding="utf-8", newline="") as f:
            text = f.read()

        bom = text.startswith(BOM)
        if bom:
            text = text[len(BOM) :]

        return cls(text, language, path, bom)

    def get_syntax_root(self) -> CompilationUnit | None:
        try:
            return get_language(self.language).parse(self.text)
        except ParseError as e:
            logger.warning(
                "Unable to parse %s, leaving it untouched: %s",
                self.path or "<document>",
                e,
            )
            return None

    def with_syntax_root(self, root: Node) -> Document:
        return dataclasses.replace(self, text=to_source(root))

    def write(self) -> None:
        if self.path is None:
            raise ValueError("Document has no path to write to")

        with open(self.path, "w", encoding="utf-8", newline="") as f:
            f.write(BOM + self.text if self.bom else self.text)
