from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import litescape
from litescape.config import Config
from litescape.document import Document
from litescape.rules import NonAsciiCharactersAreEscapedInLiterals

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("litescape")


def load_documents(
    paths: Sequence[str], config: Config
) -> tuple[list[Document], bool]:
    documents = []
    ok = True
    for name in paths:
        path = Path(name)
        language = config.language_for(path)
        if language is None:
            logger.warning("No language configured for %s, skipping", path)
            continue

        try:
            documents.append(Document.from_path(path, language))
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Unable to read %s: %s", path, e)
            ok = False

    return documents, ok


async def async_main(argv: Sequence[str] | None = None) -> int:
    # Avoid some unnecessary work when logging
    logging.logThreads = False
    logging.logProcesses = False
    logging._srcfile = None

    if argv is None:
        argv = sys.argv[1:]

    config = Config()
    rule = NonAsciiCharactersAreEscapedInLiterals()
    documents, ok = load_documents(argv, config)

    results = await asyncio.gather(
        *(rule.process_async(document) for document in documents)
    )
    for old, new in zip(documents, results):
        if new is old:
            logger.debug("%s: nothing to escape", old.path)
            continue

        try:
            new.write()
        except OSError as e:
            logger.error("Unable to write %s: %s", new.path, e)
            ok = False
        else:
            logger.info("%s: escaped non-ASCII literals", new.path)

    return 0 if ok else 1


def main() -> None:
    litescape._setup()
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
