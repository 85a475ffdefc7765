"""
Deterministic pseudorandom generator for owd_offset.

A linear congruential generator (LCG) produces a reproducible stream from a
64-bit seed. It is a fast simulation source, not a security primitive.

References:
    D. H. Lehmer. "Mathematical methods in large-scale computing units".
    Annals of the Computation Laboratory, Harvard Univ. 26 (1951): 141-146.

    D. E. Knuth. The Art of Computer Programming, Volume 2, Section 3.2.1.
"""

import operator
import time
import logging
from typing import Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Knuth's MMIX constants: c is odd and a = 1 (mod 4), so the period is the full 2**64.
LCG_MULTIPLIER = 6364136223846793005
LCG_INCREMENT = 1442695040888963407
LCG_MODULUS = 2 ** 64

U64_MAX = 2 ** 64 - 1
_UNIFORM_BITS = 53


def lcg_step(state: int,
             a: int = LCG_MULTIPLIER,
             c: int = LCG_INCREMENT,
             m: int = LCG_MODULUS) -> Tuple[int, int]:
    """
    Advance an LCG state by one step.

    Args:
        state: Current state
        a: Multiplier
        c: Increment
        m: Modulus

    Returns:
        Tuple of (value, new_state); for an LCG the two are the same number
    """
    new_state = (a * state + c) % m
    return new_state, new_state


def _validate_seed(seed: int) -> int:
    if isinstance(seed, bool):
        raise ConfigurationError("Seed must be an integer, got bool")
    try:
        seed = operator.index(seed)
    except TypeError:
        raise ConfigurationError(f"Seed must be an integer, got {type(seed).__name__}") from None
    if seed < 0 or seed > U64_MAX:
        raise ConfigurationError(f"Seed must be an unsigned 64-bit integer, got {seed}")
    return seed


class LcgRng:
    """
    Linear congruential generator: state' = (a * state + c) mod m.

    The generator advances exactly once per draw. It holds no lock; callers
    sharing one instance across threads must synchronize externally.
    """

    def __init__(self, seed: int,
                 a: int = LCG_MULTIPLIER,
                 c: int = LCG_INCREMENT,
                 m: int = LCG_MODULUS):
        """
        Initialize the generator.

        Args:
            seed: Unsigned 64-bit seed
            a: Multiplier, 0 < a < m
            c: Increment, 0 <= c < m
            m: Modulus, m >= 2

        Raises:
            ConfigurationError: On a degenerate modulus, out-of-range constants
                or an invalid seed
        """
        if m < 2:
            raise ConfigurationError(f"LCG modulus must be >= 2, got {m}")
        if not 0 < a < m:
            raise ConfigurationError(f"LCG multiplier must be in (0, {m}), got {a}")
        if not 0 <= c < m:
            raise ConfigurationError(f"LCG increment must be in [0, {m}), got {c}")

        self.a = a
        self.c = c
        self.m = m
        # Uniforms keep at most 53 bits of the state so they stay strictly below 1.0
        self._shift = max((m - 1).bit_length() - _UNIFORM_BITS, 0)
        self._denominator = float(((m - 1) >> self._shift) + 1)
        self._state = _validate_seed(seed) % m

    @property
    def state(self) -> int:
        return self._state

    def reseed(self, seed: int) -> None:
        self._state = _validate_seed(seed) % self.m

    def next_u64(self) -> int:
        """Advance the generator and return the raw state."""
        value, self._state = lcg_step(self._state, self.a, self.c, self.m)
        return value

    def next_uniform(self) -> float:
        """Draw a uniform value in [0, 1)."""
        return (self.next_u64() >> self._shift) / self._denominator

    def gen_range(self, low: float, high: float) -> float:
        """Draw a uniform value in [low, high)."""
        return low + self.next_uniform() * (high - low)


def time_seed() -> int:
    """
    Derive a seed from the system clock.

    The nanosecond timestamp is scrambled through one LCG step so that calls a
    few nanoseconds apart still start from distant states. Results are not
    reproducible; tests should always pass an explicit seed.
    """
    seed, _ = lcg_step(time.time_ns() & U64_MAX)
    logger.debug(f"Derived time-based seed {seed}")
    return seed
