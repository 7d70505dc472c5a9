"""Small C-library helpers with their classic semantics."""

import re
from itertools import zip_longest

_LEADING_DIGITS = re.compile(r"[0-9]*")
_LINE_ENDS = ("\n", "\r", b"\n", b"\r")


def atoi(s):
    """Parse the leading decimal digits of ``s``; no sign, no whitespace."""
    if isinstance(s, (bytes, bytearray)):
        s = bytes(s).decode("latin-1")
    digits = _LEADING_DIGITS.match(s).group()
    return int(digits) if digits else 0


def _cbytes(s):
    data = s.encode() if isinstance(s, str) else bytes(s)
    return data.split(b"\0", 1)[0]


def strcmp(p, q):
    """Compare two strings as unsigned bytes up to the first NUL."""
    for a, b in zip_longest(_cbytes(p), _cbytes(q), fillvalue=0):
        if a != b:
            return a - b
    return 0


def gets(stream, max):
    """Read one line of at most ``max - 1`` characters from ``stream``.

    Reading stops after a newline or carriage return, which is kept.
    """
    pieces = []
    empty = ""
    while len(pieces) + 1 < max:
        c = stream.read(1)
        empty = c[:0]
        if not c:
            break
        pieces.append(c)
        if c in _LINE_ENDS:
            break
    return empty.join(pieces)