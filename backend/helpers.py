"""
Numeric helpers shared by every engine.

This module contains:
- Margin clamping, growth-rate capping and the EBITDA floor
- Piecewise-linear interpolation
- Seeded RNG streams and small sampling helpers
- Display formatting for money, percentages and multiples
"""

import random
from typing import Dict, Optional, Sequence, Tuple, TypeVar

from config import (
    EBITDA_FLOOR_PCT,
    MAX_MARGIN,
    MAX_ORGANIC_GROWTH_RATE,
    MIN_GROWTH_RATE,
    MIN_MARGIN,
)

T = TypeVar('T')

RNG_STREAMS = ('deals', 'events', 'simulation', 'market', 'cosmetic')


def clamp_margin(margin: float) -> float:
    """Clamp an EBITDA margin to [MIN_MARGIN, MAX_MARGIN]."""
    return max(MIN_MARGIN, min(MAX_MARGIN, margin))


def cap_growth_rate(rate: float) -> float:
    """Clamp an organic growth rate to [MIN_GROWTH_RATE, MAX_ORGANIC_GROWTH_RATE]."""
    return max(MIN_GROWTH_RATE, min(MAX_ORGANIC_GROWTH_RATE, rate))


def apply_ebitda_floor(ebitda: int, revenue: int, margin: float,
                       acquisition_ebitda: int) -> Tuple[int, float]:
    """
    Enforce the EBITDA floor while keeping ebitda == revenue * margin.

    The floor is EBITDA_FLOOR_PCT of the EBITDA at acquisition. When the
    floor binds, the margin is re-derived from the floored EBITDA.

    Args:
        ebitda: Candidate EBITDA after a mutation
        revenue: Revenue the EBITDA was derived from
        margin: Margin the EBITDA was derived from
        acquisition_ebitda: EBITDA at acquisition

    Returns:
        Tuple of (ebitda, margin)
    """
    floor = round(acquisition_ebitda * EBITDA_FLOOR_PCT)
    if ebitda < floor:
        new_margin = max(MIN_MARGIN, floor / revenue) if revenue > 0 else margin
        return floor, new_margin
    return ebitda, margin


def lerp(x: float, x0: float, x1: float, y0: float, y1: float) -> float:
    return y0 + (x - x0) / (x1 - x0) * (y1 - y0)


def resolve_rng(rng: Optional[random.Random] = None) -> random.Random:
    """Return the injected generator, or a fresh unseeded one."""
    return rng if rng is not None else random.Random()


def random_in_range(rng: random.Random, low: float, high: float) -> float:
    return low + rng.random() * (high - low)


def pick(rng: random.Random, items: Sequence[T]) -> T:
    """Uniform pick that indexes with the rng instead of choice() for replayability."""
    return items[int(rng.random() * len(items))]


def derive_round_seed(seed: int, round_number: int) -> int:
    """Mix a master seed with a round number into a 32-bit stream seed."""
    h = (seed ^ (round_number * 0x9E3779B9)) & 0xFFFFFFFF
    h = ((h ^ (h >> 16)) * 0x45D9F3B) & 0xFFFFFFFF
    h = ((h ^ (h >> 16)) * 0x45D9F3B) & 0xFFFFFFFF
    return (h ^ (h >> 16)) & 0xFFFFFFFF


def create_rng_streams(seed: int, round_number: int) -> Dict[str, random.Random]:
    """
    Create the independent RNG streams used in one round.

    Each stream gets its own seed so that consuming more numbers in one
    concern (for example, deal generation) never shifts another (events).

    Args:
        seed: Master game seed
        round_number: Round the streams are for

    Returns:
        Dictionary of stream name to random.Random
    """
    round_seed = derive_round_seed(seed, round_number)
    return {
        name: random.Random(derive_round_seed(round_seed, index + 1))
        for index, name in enumerate(RNG_STREAMS)
    }


def format_money(amount: float) -> str:
    """Format an amount in thousands as $X.XB, $X.XM or $Xk."""
    sign = '-' if amount < 0 else ''
    value = abs(amount)
    if value >= 1_000_000:
        return f'{sign}${value / 1_000_000:.1f}B'
    if value >= 1000:
        return f'{sign}${value / 1000:.1f}M'
    return f'{sign}${value:.0f}k'


def format_percent(value: float) -> str:
    return f'{value * 100:.1f}%'


def format_multiple(value: float) -> str:
    return f'{value:.1f}x'
