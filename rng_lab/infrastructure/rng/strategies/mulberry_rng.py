import struct

_UINT32_MASK = 0xFFFFFFFF
_GOLDEN_GAMMA = 0x6D2B79F5
_TWO_POW_32 = 4294967296


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, wrapping like a C uint32."""
    return (a * b) & _UINT32_MASK


def derive_seed(raw_seed: str) -> int:
    """
    Fold a seed string into a signed 32-bit integer.

    Each UTF-16 code unit is folded in with ``seed = seed * 31 + unit`` and
    the running value is truncated to signed 32 bits after every step, so
    the same string always gives the same seed.

    Args:
        raw_seed: User supplied seed text

    Returns:
        Signed 32-bit integer seed
    """
    encoded = raw_seed.encode("utf-16-le", errors="surrogatepass")
    seed = 0
    for (unit,) in struct.iter_unpack("<H", encoded):
        seed = (seed * 31 + unit) & _UINT32_MASK
    if seed >= 0x80000000:
        seed -= _TWO_POW_32
    return seed


class Mulberry32RNG:
    """
    Mulberry32 generator: a 32-bit state pushed through an add-constant,
    two multiply-xor-shift rounds and a final xor-shift per draw.
    """
    def __init__(self, seed_value: int):
        """
        Initialize the RNG with an integer seed.

        Args:
            seed_value: Seed value, any int; only the low 32 bits are kept
        """
        self.seed(seed_value)

    def seed(self, seed_value: int) -> None:
        """
        Reset the generator state.

        Args:
            seed_value: Seed value to use
        """
        self._state = seed_value & _UINT32_MASK

    @property
    def state(self) -> int:
        return self._state

    def next_uint32(self) -> int:
        self._state = (self._state + _GOLDEN_GAMMA) & _UINT32_MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & _UINT32_MASK) ^ t
        return (t ^ (t >> 14)) & _UINT32_MASK

    def next(self) -> float:
        """
        Get the next float in the range [0, 1).

        Returns:
            Random float scaled by 2**32
        """
        return self.next_uint32() / _TWO_POW_32
