import pytest

from xvutils.umalloc import HEADER_SIZE, MIN_UNITS, Allocator


def test_addresses_aligned_and_disjoint():
    a = Allocator()
    sizes = [1, 7, 16, 100, 1000, 33, 5000]
    blocks = [(a.malloc(n), n) for n in sizes]
    for addr, _ in blocks:
        assert addr % HEADER_SIZE == 0
        assert a.start <= addr <= a.brk
    spans = sorted(blocks)
    for (addr1, n1), (addr2, _) in zip(spans, spans[1:]):
        assert addr1 + n1 <= addr2


def test_free_all_coalesces():
    a = Allocator()
    ptrs = [a.malloc(n) for n in (1, 100, 1000, 20000, 100000, 3)]
    for p in reversed(ptrs[::2]):
        a.free(p)
    for p in ptrs[1::2]:
        a.free(p)
    assert a.free_blocks() == [(a.start, a.brk - a.start)]


def test_reuse_after_free():
    a = Allocator()
    p = a.malloc(50)
    a.free(p)
    assert a.malloc(50) == p


def test_heap_grows_by_minimum_chunk():
    a = Allocator()
    a.malloc(10)
    assert a.brk - a.start == MIN_UNITS * HEADER_SIZE


def test_out_of_memory():
    a = Allocator(limit=MIN_UNITS * HEADER_SIZE)
    a.malloc(10)
    with pytest.raises(MemoryError):
        a.malloc(MIN_UNITS * HEADER_SIZE)
    with pytest.raises(MemoryError):
        Allocator(limit=0).malloc(1)


def test_bad_free():
    a = Allocator()
    p = a.malloc(10)
    a.free(p)
    with pytest.raises(ValueError):
        a.free(p)
    with pytest.raises(ValueError):
        a.free(p + 1)


def test_sbrk():
    a = Allocator(limit=1000)
    old = a.sbrk(0)
    assert a.sbrk(100) == old
    assert a.brk == old + 100
    assert a.sbrk(-100) == old + 100
    with pytest.raises(MemoryError):
        a.sbrk(-1)
    with pytest.raises(MemoryError):
        a.sbrk(1001)
    assert a.brk == old


def test_free_space_accounting():
    a = Allocator()
    ptrs = [a.malloc(200) for _ in range(30)]
    used_bytes = sum((200 + HEADER_SIZE - 1) // HEADER_SIZE + 1 for _ in ptrs) * HEADER_SIZE
    free_bytes = sum(size for _, size in a.free_blocks())
    assert used_bytes + free_bytes == a.brk - a.start