"""Line filter supporting the ``^ . * $`` regular-expression operators."""

import sys

from .fmt import fprintf, printf

BUF_SIZE = 1024


def match(regex, text):
    """Return whether ``regex`` matches anywhere in ``text``."""
    if regex.startswith("^"):
        return _match_here(regex, 1, text, 0)
    return any(_match_here(regex, 0, text, start) for start in range(len(text) + 1))


def _match_here(regex, r, text, t):
    # Literal steps are iterative so long lines do not exhaust the stack.
    while True:
        if r == len(regex):
            return True
        if r + 1 < len(regex) and regex[r + 1] == "*":
            return _match_star(regex[r], regex, r + 2, text, t)
        if regex[r] == "$" and r + 1 == len(regex):
            return t == len(text)
        if t < len(text) and (regex[r] == "." or regex[r] == text[t]):
            r += 1
            t += 1
            continue
        return False


def _match_star(c, regex, r, text, t):
    while True:
        if _match_here(regex, r, text, t):
            return True
        if not (t < len(text) and (text[t] == c or c == ".")):
            return False
        t += 1


def _as_text(line):
    return line.decode("latin-1") if isinstance(line, (bytes, bytearray)) else line


def grep(pattern, stream, out):
    """Write each complete line of ``stream`` that matches ``pattern`` to ``out``.

    Lines are read through a buffer of ``BUF_SIZE`` bytes; a trailing line
    without a newline is not examined.
    """
    pending = None
    while True:
        room = BUF_SIZE - 1 - (len(pending) if pending is not None else 0)
        chunk = stream.read(room)
        if not chunk:
            break
        newline = "\n" if isinstance(chunk, str) else b"\n"
        pending = chunk if pending is None else pending + chunk
        *lines, pending = pending.split(newline)
        for line in lines:
            if match(pattern, _as_text(line)):
                out.write(line + newline)


def main(argv=None):
    """Run grep on the named files, or on standard input; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        fprintf(sys.stderr, "usage: grep pattern [file ...]\n")
        return 1
    pattern, files = args[0], args[1:]
    out = sys.stdout.buffer
    if not files:
        grep(pattern, sys.stdin.buffer, out)
        out.flush()
        return 0
    for name in files:
        try:
            stream = open(name, "rb")
        except OSError:
            out.flush()
            printf("grep: cannot open %s\n", name)
            sys.stdout.flush()
            return 1
        with stream:
            grep(pattern, stream, out)
        out.flush()
    return 0