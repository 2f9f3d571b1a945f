"""Deterministic test data generation."""

import random


def random_bytes(seed: int, length: int) -> bytes:
    """Return `length` pseudo-random bytes derived from `seed`.

    Uses a private generator, so calls never disturb each other or the
    module-level `random` state.
    """
    if length < 0:
        raise ValueError(f"length must be >= 0, got {length}")
    return random.Random(seed).randbytes(length)
