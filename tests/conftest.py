from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from litescape.codec import utf16_units

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


@pytest.fixture()
def caplog_litescape(
    caplog: pytest.LogCaptureFixture,
) -> Generator[pytest.LogCaptureFixture]:
    caplog.set_level(logging.WARNING, "asyncio")
    caplog.set_level(0, "litescape")
    caplog.set_level(0)
    logging.getLogger("litescape").propagate = True
    yield caplog


@pytest.fixture(params=["csharp", "python"])
def language(request) -> str:
    return request.param


@pytest.fixture()
def same_value() -> Callable[[str | bytes, str | bytes], bool]:
    """Compares literal values as UTF-16 code units, the way the codec sees them"""

    def _compare(a: str | bytes, b: str | bytes) -> bool:
        if isinstance(a, str) and isinstance(b, str):
            return utf16_units(a) == utf16_units(b)

        return a == b

    return _compare
