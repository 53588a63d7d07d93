"""Unbiased in-place shuffle."""
import random
from typing import List, Optional, TypeVar

T = TypeVar("T")


def fisher_yates_shuffle(items: List[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Shuffle ``items`` in place with the Fisher-Yates algorithm.

    For each index from the last down to 1, swap it with a uniformly chosen
    index in [0, i].

    Returns:
        The same list, shuffled
    """
    rng = rng or random.SystemRandom()
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items
