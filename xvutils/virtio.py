"""Virtio MMIO register layout, ring structures and block requests."""

import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag

NUM = 8
BSIZE = 1024


class MmioReg(IntEnum):
    """Offsets of the virtio MMIO control registers."""

    MAGIC_VALUE = 0x000
    VERSION = 0x004
    DEVICE_ID = 0x008
    VENDOR_ID = 0x00C
    DEVICE_FEATURES = 0x010
    DRIVER_FEATURES = 0x020
    QUEUE_SEL = 0x030
    QUEUE_NUM_MAX = 0x034
    QUEUE_NUM = 0x038
    QUEUE_READY = 0x044
    QUEUE_NOTIFY = 0x050
    INTERRUPT_STATUS = 0x060
    INTERRUPT_ACK = 0x064
    STATUS = 0x070
    QUEUE_DESC_LOW = 0x080
    QUEUE_DESC_HIGH = 0x084
    DRIVER_DESC_LOW = 0x090
    DRIVER_DESC_HIGH = 0x094
    DEVICE_DESC_LOW = 0x0A0
    DEVICE_DESC_HIGH = 0x0A4


class ConfigStatus(IntFlag):
    """Status register bits."""

    ACKNOWLEDGE = 1
    DRIVER = 2
    DRIVER_OK = 4
    FEATURES_OK = 8


class Feature(IntEnum):
    """Device feature bit numbers."""

    BLK_RO = 5
    BLK_SCSI = 7
    BLK_CONFIG_WCE = 11
    BLK_MQ = 12
    ANY_LAYOUT = 27
    RING_INDIRECT_DESC = 28
    RING_EVENT_IDX = 29


class DescFlag(IntFlag):
    """Descriptor flags."""

    NEXT = 1
    WRITE = 2


BLK_T_IN = 0
BLK_T_OUT = 1

_DESC = struct.Struct("<QIHH")
_AVAIL = struct.Struct(f"<HH{NUM}HH")
_USED_ELEM = struct.Struct("<II")
_USED_HEADER = struct.Struct("<HH")
_BLK_REQ = struct.Struct("<IIQ")
_USED_SIZE = _USED_HEADER.size + NUM * _USED_ELEM.size


def _pack(layout, *values):
    try:
        return layout.pack(*(int(v) for v in values))
    except struct.error as exc:
        raise ValueError(str(exc)) from None


def _check_size(data, size):
    if len(data) != size:
        raise ValueError(f"expected {size} bytes, got {len(data)}")


@dataclass
class VirtqDesc:
    """A single descriptor."""

    addr: int = 0
    len: int = 0
    flags: int = 0
    next: int = 0

    def pack(self):
        return _pack(_DESC, self.addr, self.len, self.flags, self.next)

    @classmethod
    def unpack(cls, data):
        _check_size(data, _DESC.size)
        addr, length, flags, nxt = _DESC.unpack(data)
        return cls(addr=addr, len=length, flags=DescFlag(flags), next=nxt)


@dataclass
class VirtqAvail:
    """The driver's available ring."""

    flags: int = 0
    idx: int = 0
    ring: list = field(default_factory=lambda: [0] * NUM)
    unused: int = 0

    def __post_init__(self):
        if len(self.ring) != NUM:
            raise ValueError(f"ring must hold {NUM} entries")

    def pack(self):
        return _pack(_AVAIL, self.flags, self.idx, *self.ring, self.unused)

    @classmethod
    def unpack(cls, data):
        _check_size(data, _AVAIL.size)
        flags, idx, *rest = _AVAIL.unpack(data)
        return cls(flags=flags, idx=idx, ring=rest[:NUM], unused=rest[NUM])


@dataclass
class VirtqUsedElem:
    """One completed request reported by the device."""

    id: int = 0
    len: int = 0

    def pack(self):
        return _pack(_USED_ELEM, self.id, self.len)

    @classmethod
    def unpack(cls, data):
        _check_size(data, _USED_ELEM.size)
        ident, length = _USED_ELEM.unpack(data)
        return cls(id=ident, len=length)


@dataclass
class VirtqUsed:
    """The device's used ring."""

    flags: int = 0
    idx: int = 0
    ring: list = field(default_factory=lambda: [VirtqUsedElem() for _ in range(NUM)])

    def __post_init__(self):
        if len(self.ring) != NUM:
            raise ValueError(f"ring must hold {NUM} entries")

    def pack(self):
        return _pack(_USED_HEADER, self.flags, self.idx) + b"".join(e.pack() for e in self.ring)

    @classmethod
    def unpack(cls, data):
        _check_size(data, _USED_SIZE)
        flags, idx = _USED_HEADER.unpack(data[: _USED_HEADER.size])
        body = data[_USED_HEADER.size :]
        step = _USED_ELEM.size
        ring = [VirtqUsedElem.unpack(body[i : i + step]) for i in range(0, len(body), step)]
        return cls(flags=flags, idx=idx, ring=ring)


@dataclass
class BlkRequest:
    """Header of a block-device request."""

    type: int = BLK_T_IN
    reserved: int = 0
    sector: int = 0

    def pack(self):
        return _pack(_BLK_REQ, self.type, self.reserved, self.sector)

    @classmethod
    def unpack(cls, data):
        _check_size(data, _BLK_REQ.size)
        kind, reserved, sector = _BLK_REQ.unpack(data)
        return cls(type=kind, reserved=reserved, sector=sector)


@dataclass
class Buf:
    """A cached disk block."""

    dev: int = 0
    blockno: int = 0
    valid: bool = False
    disk: bool = False
    refcnt: int = 0
    data: bytearray = field(default_factory=lambda: bytearray(BSIZE))

    def __post_init__(self):
        if len(self.data) != BSIZE:
            raise ValueError(f"block data must be {BSIZE} bytes")