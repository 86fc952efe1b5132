"""
Organic growth model.

Each round every active business grows revenue at its carried growth
rate plus sector noise and bonuses, and its margin drifts once the game
is past the opening rounds. EBITDA is re-derived from revenue and margin
and passed through the EBITDA floor.
"""

import logging
import math
import random
from typing import Optional

from config import (
    COMPETITIVE_POSITION_GROWTH,
    DEFAULT_SECTOR_ID,
    HIGH_MARGIN_HEADWIND,
    INFLATION_GROWTH_DRAG,
    INTEGRATION_PENALTY_BASE,
    INTEGRATION_PENALTY_SPREAD,
    MARGIN_DRIFT_START_FRACTION,
    MIN_MARGIN_DRIFT_START_ROUND,
    SECTORS,
    SHARED_SERVICES_SECTOR_BONUS,
    SHARED_SERVICES_SECTOR_BONUS_SECTORS,
)
from helpers import apply_ebitda_floor, cap_growth_rate, clamp_margin, random_in_range, resolve_rng
from models import Business

logger = logging.getLogger(__name__)


def get_margin_drift_start(max_rounds: int) -> int:
    return max(MIN_MARGIN_DRIFT_START_ROUND, math.ceil(max_rounds * MARGIN_DRIFT_START_FRACTION))


def get_concentration_multiplier(concentration_count: Optional[int]) -> float:
    """Volatility amplifier for heavy same-sector concentration."""
    if concentration_count is not None and concentration_count >= 4:
        return 1 + (concentration_count - 3) * 0.25
    return 1.0


def apply_organic_growth(
    business: Business,
    shared_services_growth_bonus: float,
    sector_focus_bonus: float,
    inflation_active: bool,
    concentration_count: Optional[int] = None,
    diversification_bonus: float = 0.0,
    current_round: Optional[int] = None,
    shared_services_margin_defense: float = 0.0,
    max_rounds: int = 20,
    rng: Optional[random.Random] = None,
) -> Business:
    """
    Advance one business by a year of organic growth.

    Args:
        business: Business to grow
        shared_services_growth_bonus: Growth bonus from marketing shared services
        sector_focus_bonus: Growth bonus from sector focus
        inflation_active: Whether the inflation drag applies this round
        concentration_count: Number of active businesses in the same sector
        diversification_bonus: Growth bonus for a diversified portfolio
        current_round: Round being played; None applies margin drift unconditionally
        shared_services_margin_defense: Margin support from technology shared services
        max_rounds: Game length, sets when margin drift starts
        rng: Injectable random source

    Returns:
        New Business with updated revenue, margin, EBITDA and peaks
    """
    rng = resolve_rng(rng)
    if business.sector_id not in SECTORS:
        logger.warning(f'Unknown sector {business.sector_id} for {business.id}, using {DEFAULT_SECTOR_ID}')
    sector = SECTORS.get(business.sector_id, SECTORS[DEFAULT_SECTOR_ID])

    growth = cap_growth_rate(business.revenue_growth_rate)
    growth += sector['volatility'] * random_in_range(rng, -1, 1) * get_concentration_multiplier(concentration_count)
    growth += shared_services_growth_bonus
    if shared_services_growth_bonus > 0 and business.sector_id in SHARED_SERVICES_SECTOR_BONUS_SECTORS:
        growth += SHARED_SERVICES_SECTOR_BONUS
    growth += sector_focus_bonus
    growth += diversification_bonus
    growth += COMPETITIVE_POSITION_GROWTH.get(business.due_diligence.competitive_position, 0.0)
    if business.integration_rounds_remaining > 0:
        growth -= INTEGRATION_PENALTY_BASE + random_in_range(rng, 0, INTEGRATION_PENALTY_SPREAD)
    if inflation_active:
        growth -= INFLATION_GROWTH_DRAG

    new_revenue = round(business.revenue * (1 + growth))

    new_margin = business.ebitda_margin
    if current_round is None or current_round >= get_margin_drift_start(max_rounds):
        low, high = sector['margin_range']
        sector_mid_margin = (low + high) / 2
        drift = (
            business.margin_drift_rate
            + sector['margin_volatility'] * random_in_range(rng, -1, 1)
            + shared_services_margin_defense
        )
        if business.ebitda_margin > sector_mid_margin + 0.10:
            drift -= HIGH_MARGIN_HEADWIND
        new_margin = clamp_margin(business.ebitda_margin + drift)

    new_ebitda = round(new_revenue * new_margin)
    new_ebitda, new_margin = apply_ebitda_floor(new_ebitda, new_revenue, new_margin, business.acquisition_ebitda)

    return business.model_copy(update={
        'revenue': new_revenue,
        'ebitda_margin': new_margin,
        'ebitda': new_ebitda,
        'peak_revenue': max(business.peak_revenue, new_revenue),
        'peak_ebitda': max(business.peak_ebitda, new_ebitda),
        'integration_rounds_remaining': max(0, business.integration_rounds_remaining - 1),
        'revenue_growth_rate': cap_growth_rate(business.revenue_growth_rate),
    })
