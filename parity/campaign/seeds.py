"""Per-iteration seed derivation."""
import hashlib
import random

SEED_MASK = 0x7FFFFFFF


def derive_seed(master_seed: int, iteration: int) -> int:
    """Seed for one campaign iteration.

    A pure function of ``(master_seed, iteration)``, so any iteration can be
    replayed without running the ones before it.
    """
    digest = hashlib.sha256(f"{master_seed}:{iteration}".encode("ascii")).digest()
    return int.from_bytes(digest[:4], "big") & SEED_MASK


def draw_master_seed() -> int:
    return random.SystemRandom().randint(0, SEED_MASK)
