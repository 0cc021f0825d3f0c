"""Generation orchestrator: digging, variant sampling and generation flows."""

from .digging import DigReport, dig_puzzle, shuffle_positions
from .generation import GeneratedPuzzle, generate_custom, generate_random
from .rng import SeededRandom
from .sampler import RandomConfig, sample_local_variants

__all__ = [
    "DigReport",
    "GeneratedPuzzle",
    "RandomConfig",
    "SeededRandom",
    "dig_puzzle",
    "generate_custom",
    "generate_random",
    "sample_local_variants",
    "shuffle_positions",
]
