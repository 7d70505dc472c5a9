import pytest

from xvutils.memlayout import (
    MAXVA,
    PGSIZE,
    TRAMPOLINE,
    kstack,
    pg_round_down,
    pg_round_up,
    plic_sclaim,
    plic_senable,
    plic_spriority,
    utrapframe,
)


def test_top_of_address_space():
    assert MAXVA == 0x4000000000
    assert TRAMPOLINE == 0x3FFFFFF000
    assert utrapframe(0) == 0x3FFFFFE000


@pytest.mark.parametrize("p", [0, 1, 5, 63])
def test_kernel_stacks_have_guard_pages(p):
    assert kstack(p) % PGSIZE == 0
    assert kstack(p) - kstack(p + 1) == 2 * PGSIZE
    assert kstack(p) + PGSIZE < TRAMPOLINE


@pytest.mark.parametrize("p", [0, 3, 10])
def test_trapframes_adjacent(p):
    assert utrapframe(p) - utrapframe(p + 1) == PGSIZE
    assert utrapframe(p) < TRAMPOLINE


@pytest.mark.parametrize("hart", [0, 1, 2])
def test_plic_registers(hart):
    assert plic_sclaim(hart) - plic_spriority(hart) == 4
    assert plic_senable(hart + 1) - plic_senable(hart) == 0x100
    assert plic_spriority(hart + 1) - plic_spriority(hart) == 0x2000


def test_negative_indices():
    with pytest.raises(ValueError):
        kstack(-1)
    with pytest.raises(ValueError):
        plic_sclaim(-1)


@pytest.mark.parametrize("addr", [0, 1, PGSIZE - 1, PGSIZE, PGSIZE + 1, 123456789])
def test_rounding(addr):
    up = pg_round_up(addr)
    down = pg_round_down(addr)
    assert up % PGSIZE == 0 and down % PGSIZE == 0
    assert down <= addr <= up
    assert up - down in (0, PGSIZE)
    assert (up == down) == (addr % PGSIZE == 0)