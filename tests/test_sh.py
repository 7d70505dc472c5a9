import io
import os
import threading

import pytest

from xvutils.sh import (
    BackCmd,
    ExecCmd,
    ListCmd,
    PipeCmd,
    RedirCmd,
    Shell,
    ShellSyntaxError,
    parse_cmd,
)
from xvutils.stat import OpenFlag


def _echo(argv, stdin, stdout, stderr):
    stdout.write(" ".join(argv[1:]) + "\n")
    return 0


def _upper(argv, stdin, stdout, stderr):
    stdout.write(stdin.read().upper())
    return 0


def _cat(argv, stdin, stdout, stderr):
    stdout.write(stdin.read())


def _status(argv, stdin, stdout, stderr):
    return int(argv[1])


PROGRAMS = {"echo": _echo, "up": _upper, "cat": _cat, "status": _status}


def _run(shell, line, stdin=""):
    out, err = io.StringIO(), io.StringIO()
    status = shell.run_line(line, io.StringIO(stdin), out, err)
    return status, out.getvalue(), err.getvalue()


def test_parse_simple_exec():
    assert parse_cmd("echo hello world\n") == ExecCmd(["echo", "hello", "world"])


def test_parse_pipe_list_back():
    assert parse_cmd("a | b") == PipeCmd(ExecCmd(["a"]), ExecCmd(["b"]))
    assert parse_cmd("a ; b") == ListCmd(ExecCmd(["a"]), ExecCmd(["b"]))
    assert parse_cmd("a &") == BackCmd(ExecCmd(["a"]))
    assert parse_cmd("a | b | c") == PipeCmd(
        ExecCmd(["a"]), PipeCmd(ExecCmd(["b"]), ExecCmd(["c"]))
    )


def test_parse_redirections_nest_in_order():
    trunc = OpenFlag.WRONLY | OpenFlag.CREATE | OpenFlag.TRUNC
    assert parse_cmd("cat < in > out") == RedirCmd(
        RedirCmd(ExecCmd(["cat"]), "in", OpenFlag.RDONLY, 0), "out", trunc, 1
    )
    assert parse_cmd("echo x >> log") == RedirCmd(
        ExecCmd(["echo", "x"]), "log", OpenFlag.WRONLY | OpenFlag.CREATE, 1
    )


def test_parse_block_with_redirect():
    assert parse_cmd("(a ; b) > f") == RedirCmd(
        ListCmd(ExecCmd(["a"]), ExecCmd(["b"])),
        "f",
        OpenFlag.WRONLY | OpenFlag.CREATE | OpenFlag.TRUNC,
        1,
    )


def test_parse_words_split_at_symbols():
    assert parse_cmd("a|b") == PipeCmd(ExecCmd(["a"]), ExecCmd(["b"]))


@pytest.mark.parametrize(
    "line, message",
    [
        ("a >", "missing file for redirection"),
        ("a < |", "missing file for redirection"),
        ("(a", "syntax - missing )"),
        ("a b c d e f g h i j", "too many args"),
    ],
)
def test_parse_errors(line, message):
    with pytest.raises(ShellSyntaxError) as info:
        parse_cmd(line)
    assert str(info.value) == message


def test_nine_args_allowed():
    words = "a b c d e f g h i".split()
    assert parse_cmd(" ".join(words)).argv == words


def test_leftovers_reported():
    with pytest.raises(ShellSyntaxError) as info:
        parse_cmd("a & b")
    assert info.value.leftover == "b"
    assert str(info.value) == "syntax"


def test_run_line_syntax_error_output():
    status, out, err = _run(Shell(PROGRAMS), "a )")
    assert status == 1
    assert err == "leftovers: )\nsyntax\n"


def test_pipe_feeds_output():
    status, out, _ = _run(Shell(PROGRAMS), "echo hi | up\n")
    assert status == 0
    assert out == "HI\n"


def test_list_runs_in_order():
    status, out, _ = _run(Shell(PROGRAMS), "echo a ; echo b\n")
    assert out == "a\nb\n"
    assert status == 0


def test_status_propagation():
    shell = Shell(PROGRAMS)
    assert _run(shell, "status 3")[0] == 3
    assert _run(shell, "status 0 ; status 5")[0] == 5
    assert _run(shell, "status 3 | status 4")[0] == 0


def test_missing_program_reports_and_status_zero():
    status, out, err = _run(Shell(PROGRAMS), "nosuch arg")
    assert status == 0
    assert err == "exec nosuch failed\n"


def test_empty_command_fails():
    assert _run(Shell(PROGRAMS), "\n")[0] == 1


def test_redirect_roundtrip(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    shell = Shell(PROGRAMS)
    assert _run(shell, "echo hello > f\n")[0] == 0
    assert (tmp_path / "f").read_text() == "hello\n"
    status, out, _ = _run(shell, "up < f\n")
    assert out == "HELLO\n"


def test_append_mode_overwrites_without_truncating(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "f").write_text("hello")
    status, out, err = _run(Shell(PROGRAMS), "echo ab >> f")
    assert status == 0
    assert out == ""
    assert err == ""
    assert (tmp_path / "f").read_text() == "ab\nlo"


def test_redirect_open_failure(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    status, out, err = _run(Shell(PROGRAMS), "cat < missing")
    assert status == 1
    assert err == "open missing failed\n"


def test_cd_builtin(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "sub").mkdir()
    shell = Shell(PROGRAMS)
    assert _run(shell, "cd sub\n")[0] == 0
    assert os.path.samefile(os.getcwd(), tmp_path / "sub")
    status, _, err = _run(shell, "cd nope\n")
    assert status == 1
    assert err == "cannot cd nope\n"


def test_background_runs_without_waiting():
    done = threading.Event()

    def mark(argv, stdin, stdout, stderr):
        done.set()
        return 7

    status, _, _ = _run(Shell({"mark": mark}), "mark &")
    assert status == 0
    assert done.wait(5)


def test_repl_reads_until_eof():
    out, err = io.StringIO(), io.StringIO()
    status = Shell(PROGRAMS).repl(io.StringIO("echo one\necho two\n"), out, err)
    assert status == 0
    assert out.getvalue() == "one\ntwo\n"
    assert err.getvalue() == "$ $ $ "


def test_default_programs_pipeline():
    status, out, _ = _run(Shell(), "echo hi | wc")
    assert status == 0
    assert out == "1 1 3 \n"


def test_default_grep_filters():
    shell = Shell()
    assert _run(shell, "echo foo | grep f")[1] == "foo\n"
    assert _run(shell, "echo foo | grep z")[1] == ""


def test_default_cat_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    shell = Shell()
    _run(shell, "echo data > g")
    assert _run(shell, "cat g")[1] == "data\n"
    status, _, err = _run(shell, "cat absent")
    assert status == 1
    assert err == "cat: cannot open absent\n"