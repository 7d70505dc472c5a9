import pytest

from xvutils.virtio import (
    BLK_T_OUT,
    BSIZE,
    NUM,
    BlkRequest,
    Buf,
    DescFlag,
    VirtqAvail,
    VirtqDesc,
    VirtqUsed,
    VirtqUsedElem,
)


def test_desc_wire_bytes():
    desc = VirtqDesc(addr=1, len=2, flags=DescFlag.NEXT, next=3)
    assert desc.pack() == bytes([1, 0, 0, 0, 0, 0, 0, 0, 2, 0, 0, 0, 1, 0, 3, 0])


def test_desc_round_trip():
    desc = VirtqDesc(addr=0x80001000, len=BSIZE, flags=DescFlag.NEXT | DescFlag.WRITE, next=7)
    assert VirtqDesc.unpack(desc.pack()) == desc


def test_blk_request_wire_bytes():
    req = BlkRequest(type=BLK_T_OUT, sector=5)
    assert req.pack() == b"\x01\x00\x00\x00" + b"\x00" * 4 + b"\x05" + b"\x00" * 7


def test_blk_request_round_trip():
    req = BlkRequest(type=BLK_T_OUT, reserved=0, sector=2**40 + 3)
    assert BlkRequest.unpack(req.pack()) == req


def test_avail_round_trip():
    avail = VirtqAvail(flags=0, idx=9, ring=list(range(NUM)), unused=0)
    assert VirtqAvail.unpack(avail.pack()) == avail


def test_avail_ring_length():
    with pytest.raises(ValueError):
        VirtqAvail(ring=[0] * (NUM - 1))


def test_used_round_trip():
    used = VirtqUsed(idx=4, ring=[VirtqUsedElem(id=i, len=i * 10) for i in range(NUM)])
    data = used.pack()
    assert len(data) == 4 + NUM * len(VirtqUsedElem().pack())
    assert VirtqUsed.unpack(data) == used


def test_used_elem_round_trip():
    elem = VirtqUsedElem(id=3, len=1)
    assert VirtqUsedElem.unpack(elem.pack()) == elem


def test_unpack_wrong_size():
    with pytest.raises(ValueError):
        VirtqDesc.unpack(b"\x00" * 15)
    with pytest.raises(ValueError):
        VirtqUsed.unpack(b"")


def test_pack_out_of_range():
    with pytest.raises(ValueError):
        VirtqDesc(next=70000).pack()


def test_buf_defaults_and_size():
    buf = Buf(dev=1, blockno=2)
    assert len(buf.data) == BSIZE and not buf.valid and buf.refcnt == 0
    with pytest.raises(ValueError):
        Buf(data=bytearray(10))