"""
Permutation helpers used for within-section and across-section shuffling.

A Permutation takes a list and returns a new, reordered list. Generation code
receives one as an argument so callers can swap in a deterministic ordering.
"""

import random
from typing import Callable, List, TypeVar

T = TypeVar("T")

Permutation = Callable[[List[T]], List[T]]


def fisher_yates_shuffle(items: List[T], rng: random.Random = None) -> List[T]:
    """Uniform random permutation of items. The input list is not modified."""
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def identity(items: List[T]) -> List[T]:
    return list(items)
