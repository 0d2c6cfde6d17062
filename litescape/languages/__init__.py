"""
Language front ends - turn source text into a `litescape.syntax` tree
"""

from __future__ import annotations

import importlib
from pathlib import PurePath
from types import ModuleType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

LANGUAGES = ("csharp", "python")

DEFAULT_EXTENSIONS = {
    ".cs": "csharp",
    ".csx": "csharp",
    ".py": "python",
    ".pyi": "python",
}


class UnknownLanguageError(LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(
            f"{name!r} is not a known language, known languages are: {list(LANGUAGES)}"
        )
        self.name = name


def get_language(name: str) -> ModuleType:
    """
    Returns the front end module for `name`

    Every front end module provides `parse(text) -> CompilationUnit`.
    """
    if name not in LANGUAGES:
        raise UnknownLanguageError(name)

    return importlib.import_module(f"{__name__}.{name}")


def language_for_path(
    path: str | PurePath, extensions: Mapping[str, str] | None = None
) -> str | None:
    """
    >>> language_for_path("src/Program.CS")
    'csharp'
    >>> language_for_path("README.md") is None
    True
    """
    if extensions is None:
        extensions = DEFAULT_EXTENSIONS

    return extensions.get(PurePath(path).suffix.lower())
