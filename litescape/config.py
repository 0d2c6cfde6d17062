from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from litescape import CONFIG_FILENAME
from litescape.languages import (
    DEFAULT_EXTENSIONS,
    LANGUAGES,
    UnknownLanguageError,
    language_for_path,
)

if TYPE_CHECKING:
    from pathlib import PurePath

logger = logging.getLogger("litescape")


class Config(dict[str, Any]):
    def __init__(self, *, filename: str | Path = CONFIG_FILENAME) -> None:
        super().__init__()
        self.filename = str(filename)
        self.path = Path(self.filename).resolve()
        self.extensions: dict[str, str] = {}
        self.load_config()

    def load_config(self) -> None:
        """(re)loads the config from the config file"""
        if self.path.exists():
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise ValueError(f"{self.filename} must contain a JSON object")
        else:
            logger.debug("No config file at %s, using defaults", self.path)
            data = {}

        extensions = dict(DEFAULT_EXTENSIONS)
        for suffix, language in data.get("extensions", {}).items():
            if language not in LANGUAGES:
                raise UnknownLanguageError(language)

            if not suffix.startswith("."):
                suffix = "." + suffix

            extensions[suffix.lower()] = language

        self.clear()
        self.update(data)
        self.extensions = extensions

    def language_for(self, path: str | PurePath) -> str | None:
        return language_for_path(path, self.extensions)
