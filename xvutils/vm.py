"""Three-level Sv39 page tables over simulated physical memory."""

import struct

from .memlayout import KERNBASE, MAXVA, PGSIZE, pg_round_down, pg_round_up

PGSHIFT = 12
PXMASK = 0x1FF
PTES_PER_PAGE = 512

PTE_V = 1 << 0
PTE_R = 1 << 1
PTE_W = 1 << 2
PTE_X = 1 << 3
PTE_U = 1 << 4

_PTE = struct.Struct("<Q")


class KernelPanic(RuntimeError):
    """An invariant of the memory system was violated."""


class BadAddress(ValueError):
    """A user virtual address is unmapped or lacks the needed permission."""


class OutOfMemory(MemoryError):
    """No free physical page was available."""


def _px(level, va):
    return (va >> (PGSHIFT + 9 * level)) & PXMASK


def _pa2pte(pa):
    return (pa >> 12) << 10


def _pte2pa(pte):
    return (pte >> 10) << 12


def _pte_flags(pte):
    return pte & 0x3FF


class PhysicalMemory:
    """A run of physical pages starting at ``KERNBASE`` with a page allocator."""

    def __init__(self, npages):
        if npages < 0:
            raise ValueError("npages must not be negative")
        self.base = KERNBASE
        self.end = KERNBASE + npages * PGSIZE
        self._data = bytearray(npages * PGSIZE)
        # Pages are handed out from the end of the list, highest address first.
        self._freelist = [KERNBASE + i * PGSIZE for i in range(npages)]
        self._free = set(self._freelist)

    def kalloc(self):
        """Allocate one page and return its physical address."""
        if not self._freelist:
            raise OutOfMemory("kalloc: out of physical pages")
        pa = self._freelist.pop()
        self._free.discard(pa)
        return pa

    def kfree(self, pa):
        """Return the page at ``pa`` to the allocator."""
        if pa % PGSIZE or not self.base <= pa < self.end:
            raise KernelPanic("kfree")
        if pa in self._free:
            raise KernelPanic("kfree: page already free")
        self._freelist.append(pa)
        self._free.add(pa)

    def _offset(self, pa, n):
        if n < 0 or pa < self.base or pa + n > self.end:
            raise ValueError(f"physical range {pa:#x}+{n} is outside memory")
        return pa - self.base

    def read(self, pa, n):
        """Return ``n`` bytes starting at physical address ``pa``."""
        off = self._offset(pa, n)
        return bytes(self._data[off : off + n])

    def write(self, pa, data):
        """Store ``data`` at physical address ``pa``."""
        data = bytes(data)
        off = self._offset(pa, len(data))
        self._data[off : off + len(data)] = data

    def free_pages(self):
        """Number of pages the allocator can still hand out."""
        return len(self._freelist)


class PageTable:
    """A user page table whose pages live in a :class:`PhysicalMemory`."""

    def __init__(self, memory):
        self.memory = memory
        self.root = self._zeroed_page()

    def _zeroed_page(self):
        pa = self.memory.kalloc()
        self.memory.write(pa, bytes(PGSIZE))
        return pa

    def _load(self, addr):
        return _PTE.unpack(self.memory.read(addr, _PTE.size))[0]

    def _store(self, addr, value):
        self.memory.write(addr, _PTE.pack(value))

    def walk(self, va, alloc=False):
        """Return the physical address of the leaf PTE for ``va``.

        Missing intermediate tables are created when ``alloc`` is true;
        otherwise ``None`` is returned for them.
        """
        if va >= MAXVA:
            raise KernelPanic("walk")
        table = self.root
        for level in (2, 1):
            pte_addr = table + 8 * _px(level, va)
            pte = self._load(pte_addr)
            if pte & PTE_V:
                table = _pte2pa(pte)
            else:
                if not alloc:
                    return None
                table = self._zeroed_page()
                self._store(pte_addr, _pa2pte(table) | PTE_V)
        return table + 8 * _px(0, va)

    def walkaddr(self, va):
        """Physical address of the user page holding ``va``, or ``None``."""
        if va >= MAXVA:
            return None
        pte_addr = self.walk(va)
        if pte_addr is None:
            return None
        pte = self._load(pte_addr)
        if not pte & PTE_V or not pte & PTE_U:
            return None
        return _pte2pa(pte)

    def mappages(self, va, size, pa, perm):
        """Map ``size`` bytes at ``va`` to physical memory at ``pa``."""
        if va % PGSIZE:
            raise KernelPanic("mappages: va not aligned")
        if size % PGSIZE:
            raise KernelPanic("mappages: size not aligned")
        if size == 0:
            raise KernelPanic("mappages: size")
        for offset in range(0, size, PGSIZE):
            pte_addr = self.walk(va + offset, alloc=True)
            if self._load(pte_addr) & PTE_V:
                raise KernelPanic("mappages: remap")
            self._store(pte_addr, _pa2pte(pa + offset) | perm | PTE_V)

    def unmap(self, va, npages, do_free):
        """Remove ``npages`` existing mappings from ``va``, optionally freeing them."""
        if va % PGSIZE:
            raise KernelPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            pte_addr = self.walk(a)
            if pte_addr is None:
                raise KernelPanic("uvmunmap: walk")
            pte = self._load(pte_addr)
            if not pte & PTE_V:
                raise KernelPanic("uvmunmap: not mapped")
            if _pte_flags(pte) == PTE_V:
                raise KernelPanic("uvmunmap: not a leaf")
            if do_free:
                self.memory.kfree(_pte2pa(pte))
            self._store(pte_addr, 0)

    def load_first(self, src):
        """Place ``src`` (less than a page) at virtual address zero."""
        src = bytes(src)
        if len(src) >= PGSIZE:
            raise KernelPanic("uvmfirst: more than a page")
        mem = self._zeroed_page()
        self.mappages(0, PGSIZE, mem, PTE_W | PTE_R | PTE_X | PTE_U)
        self.memory.write(mem, src)

    def grow(self, oldsz, newsz, xperm=PTE_W):
        """Allocate zeroed pages to grow from ``oldsz`` to ``newsz``; return the new size."""
        if newsz < oldsz:
            return oldsz
        oldsz = pg_round_up(oldsz)
        for a in range(oldsz, newsz, PGSIZE):
            try:
                mem = self._zeroed_page()
            except OutOfMemory:
                self.shrink(a, oldsz)
                raise
            try:
                self.mappages(a, PGSIZE, mem, PTE_R | PTE_U | xperm)
            except OutOfMemory:
                self.memory.kfree(mem)
                self.shrink(a, oldsz)
                raise
        return newsz

    def shrink(self, oldsz, newsz):
        """Free user pages to bring the size from ``oldsz`` down to ``newsz``."""
        if newsz >= oldsz:
            return oldsz
        low, high = pg_round_up(newsz), pg_round_up(oldsz)
        if low < high:
            self.unmap(low, (high - low) // PGSIZE, True)
        return newsz

    def _freewalk(self, table):
        for i, (pte,) in enumerate(_PTE.iter_unpack(self.memory.read(table, PGSIZE))):
            if pte & PTE_V and not pte & (PTE_R | PTE_W | PTE_X):
                self._freewalk(_pte2pa(pte))
                self._store(table + 8 * i, 0)
            elif pte & PTE_V:
                raise KernelPanic("freewalk: leaf")
        self.memory.kfree(table)

    def free(self, sz):
        """Free ``sz`` bytes of user memory and then every page-table page."""
        if sz > 0:
            self.unmap(0, pg_round_up(sz) // PGSIZE, True)
        self._freewalk(self.root)

    def copy_to(self, other, sz):
        """Copy the first ``sz`` bytes of mappings and memory into ``other``."""
        for i in range(0, sz, PGSIZE):
            pte_addr = self.walk(i)
            if pte_addr is None:
                raise KernelPanic("uvmcopy: pte should exist")
            pte = self._load(pte_addr)
            if not pte & PTE_V:
                raise KernelPanic("uvmcopy: page not present")
            pa, flags = _pte2pa(pte), _pte_flags(pte)
            try:
                mem = other.memory.kalloc()
                other.memory.write(mem, self.memory.read(pa, PGSIZE))
                try:
                    other.mappages(i, PGSIZE, mem, flags)
                except OutOfMemory:
                    other.memory.kfree(mem)
                    raise
            except OutOfMemory:
                other.unmap(0, i // PGSIZE, True)
                raise

    def clear_user(self, va):
        """Make the page at ``va`` inaccessible to user mode."""
        pte_addr = self.walk(va)
        if pte_addr is None:
            raise KernelPanic("uvmclear")
        self._store(pte_addr, self._load(pte_addr) & ~PTE_U)

    def copyout(self, dstva, data):
        """Copy ``data`` to user virtual address ``dstva``."""
        data = bytes(data)
        pos = 0
        needed = PTE_V | PTE_U | PTE_W
        while pos < len(data):
            va0 = pg_round_down(dstva)
            if va0 >= MAXVA:
                raise BadAddress(f"copyout: {dstva:#x} is beyond the address space")
            pte_addr = self.walk(va0)
            pte = 0 if pte_addr is None else self._load(pte_addr)
            if pte & needed != needed:
                raise BadAddress(f"copyout: {dstva:#x} is not writable user memory")
            n = min(PGSIZE - (dstva - va0), len(data) - pos)
            self.memory.write(_pte2pa(pte) + (dstva - va0), data[pos : pos + n])
            pos += n
            dstva = va0 + PGSIZE

    def copyin(self, srcva, n):
        """Return ``n`` bytes read from user virtual address ``srcva``."""
        out = bytearray()
        while n > 0:
            va0 = pg_round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"copyin: {srcva:#x} is not user memory")
            chunk = min(PGSIZE - (srcva - va0), n)
            out += self.memory.read(pa0 + (srcva - va0), chunk)
            n -= chunk
            srcva = va0 + PGSIZE
        return bytes(out)

    def copyinstr(self, srcva, max):
        """Return the NUL-terminated string at ``srcva``, without the NUL.

        At most ``max`` bytes, the NUL included, are examined.
        """
        out = bytearray()
        while max > 0:
            va0 = pg_round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"copyinstr: {srcva:#x} is not user memory")
            n = min(PGSIZE - (srcva - va0), max)
            chunk = self.memory.read(pa0 + (srcva - va0), n)
            nul = chunk.find(b"\0")
            if nul >= 0:
                out += chunk[:nul]
                return bytes(out)
            out += chunk
            max -= n
            srcva = va0 + PGSIZE
        raise BadAddress("copyinstr: string is not terminated")