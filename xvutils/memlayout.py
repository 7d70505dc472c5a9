"""Physical and virtual memory layout of the qemu ``virt`` machine."""

PGSIZE = 4096
MAXVA = 1 << (9 + 9 + 9 + 12 - 1)

UART0 = 0x10000000
UART0_IRQ = 10

VIRTIO0 = 0x10001000
VIRTIO0_IRQ = 1

PLIC = 0x0C000000
PLIC_PRIORITY = PLIC + 0x0
PLIC_PENDING = PLIC + 0x1000

KERNBASE = 0x80000000
PHYSTOP = KERNBASE + 128 * 1024 * 1024

TRAMPOLINE = MAXVA - PGSIZE


def _check_index(value, what):
    if value < 0:
        raise ValueError(f"{what} must not be negative")


def plic_senable(hart):
    """Supervisor-mode enable bits for ``hart``."""
    _check_index(hart, "hart")
    return PLIC + 0x2080 + hart * 0x100


def plic_spriority(hart):
    """Supervisor-mode priority threshold for ``hart``."""
    _check_index(hart, "hart")
    return PLIC + 0x201000 + hart * 0x2000


def plic_sclaim(hart):
    """Supervisor-mode claim/complete register for ``hart``."""
    _check_index(hart, "hart")
    return PLIC + 0x201004 + hart * 0x2000


def kstack(p):
    """Kernel stack of process slot ``p``, each beneath a guard page."""
    _check_index(p, "process slot")
    return TRAMPOLINE - (p + 1) * 2 * PGSIZE


def utrapframe(p):
    """User-space trapframe address of process slot ``p``."""
    _check_index(p, "process slot")
    return TRAMPOLINE - (p + 1) * PGSIZE


def pg_round_up(addr):
    """Round ``addr`` up to a page boundary."""
    return (addr + PGSIZE - 1) & ~(PGSIZE - 1)


def pg_round_down(addr):
    """Round ``addr`` down to a page boundary."""
    return addr & ~(PGSIZE - 1)