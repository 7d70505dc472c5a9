"""First-fit free-list allocator over a simulated program break."""

HEADER_SIZE = 16
MIN_UNITS = 4096
_HEAP_START = 0x10000


class Allocator:
    """Circular free list of blocks measured in header-sized units.

    Addresses are byte offsets in a simulated address space; the heap
    grows through :meth:`sbrk` up to ``limit`` bytes.
    """

    def __init__(self, limit=64 * 1024 * 1024):
        if limit < 0:
            raise ValueError("limit must not be negative")
        self.limit = limit
        self._start = _HEAP_START
        self._brk = _HEAP_START
        self._base = 0
        self._free = {}  # unit -> [next unit, size in units]
        self._used = {}  # unit -> size in units
        self._freep = None

    @property
    def start(self):
        """Lowest heap address."""
        return self._start

    @property
    def brk(self):
        """Current program break."""
        return self._brk

    def sbrk(self, nbytes):
        """Move the break by ``nbytes`` and return the old break."""
        old = self._brk
        new = old + nbytes
        if new < self._start or new - self._start > self.limit:
            raise MemoryError("sbrk: cannot move the break there")
        self._brk = new
        return old

    def _morecore(self, nunits):
        nunits = max(nunits, MIN_UNITS)
        pad = -self._brk % HEADER_SIZE
        addr = self.sbrk(pad + nunits * HEADER_SIZE) + pad
        unit = addr // HEADER_SIZE
        self._used[unit] = nunits
        self.free((unit + 1) * HEADER_SIZE)
        return self._freep

    def malloc(self, nbytes):
        """Allocate ``nbytes`` and return the block's address."""
        if nbytes < 0:
            raise ValueError("size must not be negative")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._free[self._base] = [self._base, 0]
            self._freep = self._base
        prevp = self._freep
        p = self._free[prevp][0]
        while True:
            size = self._free[p][1]
            if size >= nunits:
                if size == nunits:
                    self._free[prevp][0] = self._free.pop(p)[0]
                else:
                    self._free[p][1] -= nunits
                    p += self._free[p][1]
                self._freep = prevp
                self._used[p] = nunits
                return (p + 1) * HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._free[p][0]

    def free(self, address):
        """Return the block at ``address`` to the free list."""
        bp = address // HEADER_SIZE - 1
        if address % HEADER_SIZE or bp not in self._used:
            raise ValueError(f"free: {address:#x} is not an allocated block")
        size = self._used.pop(bp)

        def nxt(unit):
            return self._free[unit][0]

        p = self._freep
        while not (p < bp < nxt(p)):
            if p >= nxt(p) and (bp > p or bp < nxt(p)):
                break
            p = nxt(p)

        q = nxt(p)
        if bp + size == q:
            q_next, q_size = self._free.pop(q)
            entry = [q_next, size + q_size]
        else:
            entry = [q, size]
        if p + self._free[p][1] == bp:
            self._free[p][1] += entry[1]
            self._free[p][0] = entry[0]
        else:
            self._free[bp] = entry
            self._free[p][0] = bp
        self._freep = p

    def free_blocks(self):
        """Free blocks as sorted ``(address, size in bytes)`` pairs, headers included."""
        return sorted(
            (unit * HEADER_SIZE, size * HEADER_SIZE)
            for unit, (_, size) in self._free.items()
            if unit != self._base
        )