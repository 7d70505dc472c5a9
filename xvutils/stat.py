"""File types, open flags and file status records."""

import os
import stat as _stat
from dataclasses import dataclass
from enum import IntEnum, IntFlag


class FileType(IntEnum):
    """Kinds of file an inode can hold."""

    DIR = 1
    FILE = 2
    DEVICE = 3


class OpenFlag(IntFlag):
    """Flags accepted by open."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200
    TRUNC = 0x400


_KNOWN_FLAGS = OpenFlag.WRONLY | OpenFlag.RDWR | OpenFlag.CREATE | OpenFlag.TRUNC


@dataclass(frozen=True)
class Stat:
    """Status of a file."""

    dev: int
    ino: int
    type: FileType
    nlink: int
    size: int


def stat_path(path):
    """Return the status of the file at ``path``."""
    st = os.stat(path)
    if _stat.S_ISDIR(st.st_mode):
        kind = FileType.DIR
    elif _stat.S_ISREG(st.st_mode):
        kind = FileType.FILE
    else:
        kind = FileType.DEVICE
    return Stat(dev=st.st_dev, ino=st.st_ino, type=kind, nlink=st.st_nlink, size=st.st_size)


def os_open_flags(flags):
    """Translate open flags into the host's ``os.open`` flags."""
    flags = int(flags)
    if flags & ~int(_KNOWN_FLAGS):
        raise ValueError(f"unknown open flags: {flags:#x}")
    if flags & OpenFlag.RDWR:
        result = os.O_RDWR
    elif flags & OpenFlag.WRONLY:
        result = os.O_WRONLY
    else:
        result = os.O_RDONLY
    if flags & OpenFlag.CREATE:
        result |= os.O_CREAT
    if flags & OpenFlag.TRUNC:
        result |= os.O_TRUNC
    return result