"""Park-Miller minimal standard pseudo-random generator."""

_MASK64 = 0xFFFFFFFFFFFFFFFF
_MODULUS = 0x7FFFFFFF
_Q = 127773
_R = 2836
_A = 16807


def next_state(ctx):
    """Return the generator state that follows ``ctx``; it is also the output."""
    x = (ctx & _MASK64) % (_MODULUS - 1) + 1
    hi, lo = divmod(x, _Q)
    x = _A * lo - _R * hi
    if x < 0:
        x += _MODULUS
    return x - 1


class ParkMiller:
    """Stateful generator producing values in ``[0, 0x7ffffffd]``."""

    def __init__(self, seed=1):
        self.state = seed & _MASK64

    def rand(self):
        """Advance the state and return it."""
        self.state = next_state(self.state)
        return self.state