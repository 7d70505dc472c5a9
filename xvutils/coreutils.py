"""Small file utilities: cat, echo, wc, ls, mkdir, rm, ln and kill."""

import os
import signal
import sys

from .fmt import fprintf, printf
from .stat import FileType, stat_path
from .ulib import atoi

DIRSIZ = 14
_CHUNK = 512
_PATH_BUF = 512
_WHITESPACE = b" \r\t\n\v\0"


def cat(stream, out):
    """Copy ``stream`` to ``out`` in 512-byte pieces."""
    while True:
        chunk = stream.read(_CHUNK)
        if not chunk:
            break
        out.write(chunk)


def echo(args, out):
    """Write ``args`` separated by spaces and ended by a newline."""
    if args:
        out.write(" ".join(args) + "\n")


def wc(stream, name, out):
    """Count lines, words and bytes of ``stream``; report and return them."""
    lines = words = chars = 0
    in_word = False
    while True:
        chunk = stream.read(_CHUNK)
        if not chunk:
            break
        if isinstance(chunk, str):
            chunk = chunk.encode("latin-1")
        for byte in chunk:
            chars += 1
            if byte == 0x0A:
                lines += 1
            if byte in _WHITESPACE:
                in_word = False
            elif not in_word:
                words += 1
                in_word = True
    out.write(f"{lines} {words} {chars} {name}\n")
    return lines, words, chars


def fmtname(path):
    """Last path component, blank-padded to ``DIRSIZ`` characters."""
    name = path.rsplit("/", 1)[-1]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def _line(path, st):
    return f"{fmtname(path)} {int(st.type)} {st.ino} {st.size}\n"


def ls(path, out, err):
    """List a file, or every entry of a directory, to ``out``."""
    try:
        st = stat_path(path)
    except OSError:
        err.write(f"ls: cannot open {path}\n")
        return
    if st.type != FileType.DIR:
        out.write(_line(path, st))
        return
    if len(path) + 1 + DIRSIZ + 1 > _PATH_BUF:
        out.write("ls: path too long\n")
        return
    try:
        names = sorted(os.listdir(path))
    except OSError:
        err.write(f"ls: cannot open {path}\n")
        return
    for name in [".", "..", *names]:
        full = f"{path}/{name}"
        try:
            entry = stat_path(full)
        except OSError:
            out.write(f"ls: cannot stat {full}\n")
            continue
        out.write(_line(full, entry))


def _args(argv):
    return sys.argv[1:] if argv is None else list(argv)


def main_cat(argv=None):
    """Concatenate files, or standard input, to standard output."""
    args = _args(argv)
    out = sys.stdout.buffer
    if not args:
        cat(sys.stdin.buffer, out)
        out.flush()
        return 0
    for name in args:
        try:
            stream = open(name, "rb")
        except OSError:
            fprintf(sys.stderr, "cat: cannot open %s\n", name)
            return 1
        with stream:
            try:
                cat(stream, out)
            except OSError:
                fprintf(sys.stderr, "cat: read error\n")
                return 1
        out.flush()
    return 0


def main_echo(argv=None):
    """Print the arguments."""
    echo(_args(argv), sys.stdout)
    return 0


def main_wc(argv=None):
    """Count lines, words and bytes of files or standard input."""
    args = _args(argv)
    if not args:
        wc(sys.stdin.buffer, "", sys.stdout)
        return 0
    for name in args:
        try:
            stream = open(name, "rb")
        except OSError:
            printf("wc: cannot open %s\n", name)
            return 1
        with stream:
            wc(stream, name, sys.stdout)
    return 0


def main_ls(argv=None):
    """List the named paths, or the current directory."""
    args = _args(argv) or ["."]
    for path in args:
        ls(path, sys.stdout, sys.stderr)
    return 0


def main_mkdir(argv=None):
    """Create directories, stopping at the first failure."""
    args = _args(argv)
    if not args:
        fprintf(sys.stderr, "Usage: mkdir files...\n")
        return 1
    for name in args:
        try:
            os.mkdir(name)
        except OSError:
            fprintf(sys.stderr, "mkdir: %s failed to create\n", name)
            break
    return 0


def _unlink(name):
    if os.path.isdir(name) and not os.path.islink(name):
        os.rmdir(name)
    else:
        os.unlink(name)


def main_rm(argv=None):
    """Remove files or empty directories, stopping at the first failure."""
    args = _args(argv)
    if not args:
        fprintf(sys.stderr, "Usage: rm files...\n")
        return 1
    for name in args:
        try:
            _unlink(name)
        except OSError:
            fprintf(sys.stderr, "rm: %s failed to delete\n", name)
            break
    return 0


def main_ln(argv=None):
    """Make a hard link ``new`` to ``old``."""
    args = _args(argv)
    if len(args) != 2:
        fprintf(sys.stderr, "Usage: ln old new\n")
        return 1
    old, new = args
    try:
        os.link(old, new)
    except OSError:
        fprintf(sys.stderr, "link %s %s: failed\n", old, new)
    return 0


_KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


def main_kill(argv=None):
    """Kill each listed process id; failures are ignored."""
    args = _args(argv)
    if not args:
        fprintf(sys.stderr, "usage: kill pid...\n")
        return 1
    for arg in args:
        pid = atoi(arg)
        if pid <= 0:
            # No process has such an id; never signal a process group.
            continue
        try:
            os.kill(pid, _KILL_SIGNAL)
        except (OSError, OverflowError):
            pass
    return 0