"""General utility functions"""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

A = TypeVar("A")
B = TypeVar("B")

# Monadic stuff !
def none_or(c: Callable[[A], B], e: Optional[A]) -> Optional[B]:
    if e is None:
        return None
    else:
        return c(e)


def fraction_to_decimal(frac: Fraction) -> Decimal:
    "Thanks stackoverflow ! https://stackoverflow.com/a/40468867/10768117"
    return frac.numerator / Decimal(frac.denominator)


def round_half_up(frac: Fraction) -> int:
    """Python's round() goes to the nearest even number on ties, chart tools
    usually don't"""
    return int(fraction_to_decimal(frac).to_integral_value(rounding=ROUND_HALF_UP))


def rescale(position: int, source_resolution: int, target_resolution: int) -> int:
    """Move a tick position from one resolution to another"""
    return round_half_up(Fraction(position * target_resolution, source_resolution))


K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def group_by(elements: Iterable[V], key: Callable[[V], K]) -> Dict[K, List[V]]:
    res = defaultdict(list)
    for e in elements:
        res[key(e)].append(e)

    return res
