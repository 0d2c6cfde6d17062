r"""
Escape codec - rewrites non-ASCII code units as \uXXXX and \UXXXXXXXX escapes

Text is treated as a sequence of UTF-16 code units, so a supplementary
character gives the same result whether it is held as one astral code point or
as a surrogate pair.
"""

from __future__ import annotations

import struct

HIGH_SURROGATES = range(0xD800, 0xDC00)
LOW_SURROGATES = range(0xDC00, 0xE000)


def utf16_units(text: str) -> tuple[int, ...]:
    """
    >>> utf16_units("a\U0001F600")
    (97, 55357, 56832)
    """
    data = text.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def is_high_surrogate(unit: int) -> bool:
    return unit in HIGH_SURROGATES


def is_low_surrogate(unit: int) -> bool:
    return unit in LOW_SURROGATES


def combine_surrogates(high: int, low: int) -> int:
    """
    >>> hex(combine_surrogates(0xD83D, 0xDE00))
    '0x1f600'
    """
    return 0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00)


def has_non_ascii(text: str) -> bool:
    """
    Checks whether any code unit of `text` is outside the ASCII range

    >>> has_non_ascii('"hello // not a comment"')
    False
    >>> has_non_ascii('"caf\xe9"')
    True
    """
    # a code point >= 0x80 always encodes to at least one unit >= 0x80
    for char in text:
        if ord(char) >= 0x80:
            return True

    return False


def escape_non_ascii(text: str) -> str:
    r"""
    Replaces every non-ASCII code unit in `text` with an escape sequence

    A high surrogate directly followed by a low surrogate becomes a single
    \U escape of the combined scalar value, any other unit >= 0x80 becomes a
    \u escape. Everything below 0x80 is copied as-is, including backslashes.

    >>> escape_non_ascii('"caf\xe9"')
    '"caf\\u00E9"'
    >>> escape_non_ascii('"\U0001F600"')
    '"\\U0001F600"'
    """
    units = utf16_units(text)
    out: list[str] = []
    i = 0
    while i < len(units):
        unit = units[i]
        if unit < 0x80:
            out.append(chr(unit))
        elif (
            is_high_surrogate(unit)
            and i + 1 < len(units)
            and is_low_surrogate(units[i + 1])
        ):
            out.append(f"\\U{combine_surrogates(unit, units[i + 1]):08X}")
            i += 1  # the low surrogate was consumed with its pair
        else:
            out.append(f"\\u{unit:04X}")

        i += 1

    return "".join(out)
