"""Minimal printf-style formatting: %d, %u, %x (with l/ll), %p, %s and %%."""

import re
import sys

_DIGITS = "0123456789ABCDEF"
_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

_SPEC = re.compile(r"%(lld|llu|llx|ld|lu|lx|.)?", re.DOTALL)
_KNOWN = set("duxps%")


def _int32(value):
    value &= _MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def _format_int(value, base, signed):
    # Integers are always narrowed to 32 bits before printing.
    value = _int32(int(value))
    negative = signed and value < 0
    x = (-value if negative else value) & _MASK32
    digits = []
    while True:
        digits.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _format_ptr(value):
    return "0x" + format(int(value) & _MASK64, "016X")


def _format_str(value):
    if value is None:
        return "(null)"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    return str(value)


def format_string(fmt, *args):
    """Expand ``fmt`` with ``args`` and return the resulting text."""
    remaining = iter(args)

    def take():
        try:
            return next(remaining)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    def convert(match):
        spec = match.group(1)
        if spec is None:
            return ""
        kind = spec[-1]
        if len(spec) == 1 and kind not in _KNOWN:
            return "%" + spec
        if kind == "d":
            return _format_int(take(), 10, True)
        if kind == "u":
            return _format_int(take(), 10, False)
        if kind == "x":
            return _format_int(take(), 16, False)
        if kind == "p":
            return _format_ptr(take())
        if kind == "s":
            return _format_str(take())
        return "%"

    return _SPEC.sub(convert, fmt)


def fprintf(stream, fmt, *args):
    """Write the formatted text to ``stream``."""
    stream.write(format_string(fmt, *args))


def printf(fmt, *args):
    """Write the formatted text to standard output."""
    fprintf(sys.stdout, fmt, *args)