"""Command shell: parser for pipes, lists, redirections and blocks, and an evaluator."""

import io
import os
import sys
import threading
from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass, field

from . import coreutils
from .fmt import fprintf
from .grep import grep
from .stat import OpenFlag, os_open_flags
from .ulib import gets

MAXARGS = 10
LINE_MAX = 100
WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"
_ENCODING = {"encoding": "utf-8", "errors": "surrogateescape", "newline": ""}


class ShellSyntaxError(Exception):
    """A command line could not be parsed."""

    def __init__(self, message, leftover=None):
        super().__init__(message)
        self.leftover = leftover


@dataclass
class ExecCmd:
    """Run a program with arguments."""

    argv: list = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run ``cmd`` with descriptor ``fd`` opened on ``file``."""

    cmd: object
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCmd:
    """Feed the output of ``left`` to ``right``."""

    left: object
    right: object


@dataclass
class ListCmd:
    """Run ``left`` and then ``right``."""

    left: object
    right: object


@dataclass
class BackCmd:
    """Run ``cmd`` without waiting for it."""

    cmd: object


class _Parser:
    def __init__(self, text):
        self.s = text
        self.pos = 0

    def _skip(self):
        while self.pos < len(self.s) and self.s[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks):
        self._skip()
        return self.pos < len(self.s) and self.s[self.pos] in toks

    def gettoken(self):
        """Return ``(kind, text)``; kind is ``""`` at the end, ``"a"`` for a word."""
        self._skip()
        start = self.pos
        if self.pos == len(self.s):
            kind = ""
        else:
            c = self.s[self.pos]
            if c in "|();&<":
                kind = c
                self.pos += 1
            elif c == ">":
                self.pos += 1
                kind = ">"
                if self.pos < len(self.s) and self.s[self.pos] == ">":
                    kind = "+"
                    self.pos += 1
            else:
                kind = "a"
                while (
                    self.pos < len(self.s)
                    and self.s[self.pos] not in WHITESPACE
                    and self.s[self.pos] not in SYMBOLS
                ):
                    self.pos += 1
        text = self.s[start : self.pos]
        self._skip()
        return kind, text

    def parse_line(self):
        cmd = self.parse_pipe()
        while self.peek("&"):
            self.gettoken()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.gettoken()
            cmd = ListCmd(cmd, self.parse_line())
        return cmd

    def parse_pipe(self):
        cmd = self.parse_exec()
        if self.peek("|"):
            self.gettoken()
            cmd = PipeCmd(cmd, self.parse_pipe())
        return cmd

    def parse_redirs(self, cmd):
        while self.peek("<>"):
            kind, _ = self.gettoken()
            word, name = self.gettoken()
            if word != "a":
                raise ShellSyntaxError("missing file for redirection")
            if kind == "<":
                cmd = RedirCmd(cmd, name, OpenFlag.RDONLY, 0)
            elif kind == ">":
                cmd = RedirCmd(cmd, name, OpenFlag.WRONLY | OpenFlag.CREATE | OpenFlag.TRUNC, 1)
            else:
                cmd = RedirCmd(cmd, name, OpenFlag.WRONLY | OpenFlag.CREATE, 1)
        return cmd

    def parse_block(self):
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.gettoken()
        cmd = self.parse_line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.gettoken()
        return self.parse_redirs(cmd)

    def parse_exec(self):
        if self.peek("("):
            return self.parse_block()
        exec_cmd = ExecCmd()
        ret = self.parse_redirs(exec_cmd)
        while not self.peek("|)&;"):
            kind, word = self.gettoken()
            if kind == "":
                break
            if kind != "a":
                raise ShellSyntaxError("syntax")
            exec_cmd.argv.append(word)
            if len(exec_cmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self.parse_redirs(ret)
        return ret


def parse_cmd(s):
    """Parse a command line into a command tree."""
    parser = _Parser(s.split("\0", 1)[0])
    cmd = parser.parse_line()
    parser.peek("")
    if parser.pos != len(parser.s):
        raise ShellSyntaxError("syntax", leftover=parser.s[parser.pos :])
    return cmd


def _open_redirect(name, mode):
    fd = os.open(name, os_open_flags(mode), 0o666)
    access = int(mode) & 0x3
    text_mode = "r" if access == 0 else ("w" if access == int(OpenFlag.WRONLY) else "r+")
    try:
        return os.fdopen(fd, text_mode, **_ENCODING)
    except Exception:
        os.close(fd)
        raise


def _redirected(main):
    def program(argv, stdin, stdout, stderr):
        with redirect_stdout(stdout), redirect_stderr(stderr):
            return main(argv[1:])

    return program


def _cat_program(argv, stdin, stdout, stderr):
    if len(argv) < 2:
        coreutils.cat(stdin, stdout)
        return 0
    for name in argv[1:]:
        try:
            stream = open(name, **_ENCODING)
        except OSError:
            fprintf(stderr, "cat: cannot open %s\n", name)
            return 1
        with stream:
            coreutils.cat(stream, stdout)
    return 0


def _grep_program(argv, stdin, stdout, stderr):
    if len(argv) < 2:
        fprintf(stderr, "usage: grep pattern [file ...]\n")
        return 1
    pattern, files = argv[1], argv[2:]
    if not files:
        grep(pattern, stdin, stdout)
        return 0
    for name in files:
        try:
            stream = open(name, **_ENCODING)
        except OSError:
            fprintf(stdout, "grep: cannot open %s\n", name)
            return 1
        with stream:
            grep(pattern, stream, stdout)
    return 0


def _wc_program(argv, stdin, stdout, stderr):
    if len(argv) < 2:
        data = stdin.read()
        if isinstance(data, str):
            data = data.encode("utf-8", "surrogateescape")
        coreutils.wc(io.BytesIO(data), "", stdout)
        return 0
    for name in argv[1:]:
        try:
            stream = open(name, "rb")
        except OSError:
            fprintf(stdout, "wc: cannot open %s\n", name)
            return 1
        with stream:
            coreutils.wc(stream, name, stdout)
    return 0


def _default_programs():
    return {
        "cat": _cat_program,
        "grep": _grep_program,
        "wc": _wc_program,
        "echo": _redirected(coreutils.main_echo),
        "ls": _redirected(coreutils.main_ls),
        "mkdir": _redirected(coreutils.main_mkdir),
        "rm": _redirected(coreutils.main_rm),
        "ln": _redirected(coreutils.main_ln),
        "kill": _redirected(coreutils.main_kill),
    }


class Shell:
    """Evaluates command trees against a table of in-process programs.

    Each program is called as ``program(argv, stdin, stdout, stderr)`` and
    returns its exit status (``None`` counts as 0).
    """

    def __init__(self, programs=None):
        self.programs = _default_programs() if programs is None else dict(programs)

    def run(self, cmd, stdin, stdout, stderr):
        """Execute ``cmd`` and return its exit status."""
        match cmd:
            case None:
                return 1
            case ExecCmd(argv=argv):
                if not argv:
                    return 1
                program = self.programs.get(argv[0])
                if program is None:
                    fprintf(stderr, "exec %s failed\n", argv[0])
                    return 0
                status = program(list(argv), stdin, stdout, stderr)
                return 0 if status is None else int(status)
            case RedirCmd(cmd=inner, file=name, mode=mode, fd=fd):
                streams = [stdin, stdout, stderr]
                if not 0 <= fd < len(streams):
                    raise ValueError(f"cannot redirect descriptor {fd}")
                try:
                    stream = _open_redirect(name, mode)
                except OSError:
                    fprintf(stderr, "open %s failed\n", name)
                    return 1
                with stream:
                    streams[fd] = stream
                    return self.run(inner, *streams)
            case ListCmd(left=left, right=right):
                self.run(left, stdin, stdout, stderr)
                return self.run(right, stdin, stdout, stderr)
            case PipeCmd(left=left, right=right):
                buffer = io.StringIO()
                self.run(left, stdin, buffer, stderr)
                self.run(right, io.StringIO(buffer.getvalue()), stdout, stderr)
                return 0
            case BackCmd(cmd=inner):
                job = threading.Thread(
                    target=self.run, args=(inner, stdin, stdout, stderr), daemon=True
                )
                job.start()
                return 0
            case _:
                raise TypeError("runcmd")

    def run_line(self, line, stdin, stdout, stderr):
        """Run one input line, handling ``cd`` itself; return the exit status."""
        if line.startswith("cd "):
            path = line[3:]
            if path.endswith(("\n", "\r")):
                path = path[:-1]
            try:
                os.chdir(path)
            except OSError:
                fprintf(stderr, "cannot cd %s\n", path)
                return 1
            return 0
        try:
            cmd = parse_cmd(line)
        except ShellSyntaxError as exc:
            if exc.leftover is not None:
                fprintf(stderr, "leftovers: %s\n", exc.leftover)
            fprintf(stderr, "%s\n", str(exc))
            return 1
        return self.run(cmd, stdin, stdout, stderr)

    def repl(self, stdin, stdout, stderr):
        """Prompt for and run lines until end of input."""
        while True:
            stderr.write("$ ")
            stderr.flush()
            line = gets(stdin, LINE_MAX)
            if not line or line[0] in ("\0", b"\0"):
                break
            if isinstance(line, bytes):
                line = line.decode("utf-8", "surrogateescape")
            self.run_line(line, stdin, stdout, stderr)
            stdout.flush()
        return 0


def main(argv=None):
    """Run the interactive shell on the standard streams."""
    return Shell().repl(sys.stdin, sys.stdout, sys.stderr)