"""
Row Permutation Module
- Derives a deterministic row permutation from a signed 64-bit key
- Seeded 48-bit linear congruential generator drives a Fisher-Yates shuffle
- NOT a security primitive: it only hides visual structure from casual viewing
"""

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

_MULTIPLIER = 0x5DEECE66D
_INCREMENT = 0xB
_MASK = (1 << 48) - 1
_INT31 = 1 << 31


# ── Seeded generator ──────────────────────────────────────────────────────────

class Lcg48:
    """48-bit LCG; identical seeds give identical streams on every platform."""

    def __init__(self, seed: int):
        self._seed = (seed ^ _MULTIPLIER) & _MASK

    def next_bits(self, bits: int) -> int:
        self._seed = (self._seed * _MULTIPLIER + _INCREMENT) & _MASK
        return self._seed >> (48 - bits)

    def next_int(self, bound: int) -> int:
        """Uniform draw from [0, bound)."""
        if bound <= 0:
            raise ValueError("bound must be positive")
        if bound & (bound - 1) == 0:
            return (bound * self.next_bits(31)) >> 31
        u = self.next_bits(31)
        r = u % bound
        # reject draws from the incomplete last bucket
        while u - r + (bound - 1) >= _INT31:
            u = self.next_bits(31)
            r = u % bound
        return r


# ── Public API ────────────────────────────────────────────────────────────────

def generate(key: int, n: int) -> list:
    """
    Build the row permutation for a key and a row count.

    Args:
        key: Signed 64-bit seed.
        n:   Number of rows (frame height).

    Returns:
        A list of ``n`` distinct ints covering ``[0, n)``. The same
        ``(key, n)`` always yields the same list.
    """
    if not INT64_MIN <= key <= INT64_MAX:
        raise ValueError(f"Key out of signed 64-bit range: {key}")
    if n < 0:
        raise ValueError(f"Row count must be non-negative, got {n}")

    rows = list(range(n))
    rng = Lcg48(key)
    for i in range(n - 1, 0, -1):
        j = rng.next_int(i + 1)
        rows[i], rows[j] = rows[j], rows[i]
    return rows
