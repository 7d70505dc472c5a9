# xvutils

A compact toolbox of classic Unix-style programs and the pieces beneath them,
written in plain Python with no third-party dependencies.

## What is inside

- `xvutils.sh` — a minimal shell. `parse_cmd` turns a line into a tree of
  `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`, understanding
  `;` lists, `&` background jobs, `|` pipes, `<`, `>` and `>>` redirections
  and `( … )` blocks; a malformed line raises `ShellSyntaxError`. `Shell` runs
  a tree against a table of in-process programs (`run`, `run_line`, `repl`);
  `cd` is handled by the shell itself.
- `xvutils.grep` — `match(regex, text)` and `grep(pattern, stream, out)`,
  supporting only `^`, `.`, `*` and `$`.
- `xvutils.coreutils` — `cat`, `echo`, `wc`, `fmtname` and `ls`, plus the
  command entry points `main_cat`, `main_echo`, `main_wc`, `main_ls`,
  `main_mkdir`, `main_rm`, `main_ln` and `main_kill`.
- `xvutils.fmt` — `format_string`, `fprintf` and `printf` with `%d`, `%u`,
  `%x` (and their `l`/`ll` forms), `%p`, `%s` and `%%`. Integers are narrowed
  to 32 bits; `%p` prints `0x` and 16 upper-case hex digits; an unknown
  conversion is printed as written.
- `xvutils.umalloc` — `Allocator`, a first-fit, coalescing free-list allocator
  over a simulated program break (`sbrk`, `malloc`, `free`, `free_blocks`).
- `xvutils.vm` — `PageTable`, a three-level Sv39 page table over simulated
  `PhysicalMemory`, with `walk`, `mappages`, `grow`, `shrink`, `copy_to`,
  `copyin`, `copyout`, `copyinstr` and friends. Broken invariants raise
  `KernelPanic`, bad user addresses `BadAddress`, exhausted memory
  `OutOfMemory`.
- `xvutils.virtio` — dataclasses that pack to and unpack from the virtio ring
  and block-request layouts (`VirtqDesc`, `VirtqAvail`, `VirtqUsedElem`,
  `VirtqUsed`, `BlkRequest`), the MMIO register offsets, and `Buf`.
- `xvutils.rand` — the Park–Miller minimal-standard generator: `next_state`
  and `ParkMiller`.
- `xvutils.stat` — `FileType`, `OpenFlag`, `Stat`, `stat_path` and
  `os_open_flags`.
- `xvutils.memlayout` — address constants and helpers such as `kstack`,
  `utrapframe`, `plic_sclaim`, `pg_round_up` and `pg_round_down`.
- `xvutils.ulib` — `atoi`, `strcmp` and `gets` with their classic behaviour.
- `xvutils.threadtest` — `SpinLock` and `run`, two threads incrementing a
  shared counter.
- `xvutils.stressfs` — `stress`, concurrent workers each writing and then
  reading their own file.

## Installing

```
pip install .
```

## Command line

```
xv-sh                      # interactive shell, prompt "$ " on standard error
xv-grep 'ab*c' file.txt    # print matching lines
xv-cat a.txt b.txt
xv-echo hello world
xv-wc notes.txt            # lines words bytes name
xv-ls .                    # name type inode size, one line per entry
xv-mkdir newdir
xv-rm oldfile              # files or empty directories
xv-ln old new              # hard link
xv-kill 1234
xv-threadtest              # prints 20000
xv-stressfs                # writes stressfs0 … stressfs4 in the current directory
```

`xv-grep` only examines lines that end in a newline. `xv-kill` sends `SIGKILL`
where the host has it and `SIGTERM` otherwise, and ignores failures.

## Library use

```python
from xvutils.grep import match
from xvutils.sh import parse_cmd
from xvutils.fmt import format_string
from xvutils.umalloc import Allocator

match("^ab*c$", "abbbc")             # True
cmd = parse_cmd("echo hi | cat > out")
format_string("%d items at %p", 3, 0x1000)

heap = Allocator(limit=1 << 20)
addr = heap.malloc(100)
heap.free(addr)
```

## What it does not do

- The shell never starts external programs. It knows only `cat`, `grep`,
  `wc`, `echo`, `ls`, `mkdir`, `rm`, `ln` and `kill` (or the table passed to
  `Shell`); any other command prints `exec NAME failed`.
- Pipes are buffered: the left side runs to completion before the right side
  reads its output. Background jobs run as threads, not processes.
- There is no kernel, scheduler, disk driver or file-system image here. The
  page-table, allocator and virtio modules are models and data layouts; the
  utilities work on the host's own file system.

## Tests

```
pip install .[test]
pytest
```