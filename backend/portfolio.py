"""
Portfolio-wide lookups consumed by the engines.

This module contains:
- Active and deduplicated business listings
- Shared services benefit aggregation
- Sector focus bonus
- Integrated platform bonus lookups
- Distress level and its restrictions
"""

import logging
from collections import Counter
from typing import List, Optional

from config import (
    DISTRESS_THRESHOLDS,
    MIN_OPCOS_FOR_SHARED_SERVICES,
    SECTOR_FOCUS_EBITDA_BONUS,
    SECTOR_FOCUS_MULTIPLE_DISCOUNT,
    SECTORS,
)
from models import (
    Business,
    DistressRestrictions,
    GameState,
    IntegratedPlatform,
    PlatformBonuses,
    SectorFocusBonus,
    SharedServicesBenefits,
)

logger = logging.getLogger(__name__)


def get_active_businesses(businesses: List[Business]) -> List[Business]:
    return [b for b in businesses if b.status == 'active']


def get_all_deduped_businesses(businesses: List[Business],
                               exited: List[Business]) -> List[Business]:
    """
    List every top-level business once, preferring the exited record.

    Bolt-ons, integrated and merged businesses are folded into their
    parents and skipped.
    """
    exited_ids = {b.id for b in exited}
    listed = [
        b for b in businesses
        if b.id not in exited_ids
        and b.status not in ('integrated', 'merged')
        and not b.parent_platform_id
    ]
    listed.extend(
        b for b in exited
        if b.status not in ('integrated', 'merged') and not b.parent_platform_id
    )
    return listed


def get_shared_services_scale_multiplier(opco_count: int) -> float:
    if opco_count >= 6:
        return 1.2
    if opco_count >= 3:
        return 1 + (opco_count - 2) * 0.05
    return 1.0


def calculate_shared_services_benefits(state: GameState) -> SharedServicesBenefits:
    """
    Aggregate bonuses from active shared services.

    Benefits scale up with the number of active opcos and switch off when
    the portfolio drops below MIN_OPCOS_FOR_SHARED_SERVICES.
    """
    opco_count = len(get_active_businesses(state.businesses))
    benefits = SharedServicesBenefits()
    if opco_count < MIN_OPCOS_FOR_SHARED_SERVICES:
        return benefits

    m = get_shared_services_scale_multiplier(opco_count)
    updates = {}
    for service in state.shared_services:
        if not service.active:
            continue
        if service.type == 'finance_reporting':
            updates['cash_conversion_bonus'] = updates.get('cash_conversion_bonus', 0.0) + 0.05 * m
        elif service.type == 'recruiting_hr':
            updates['talent_retention_bonus'] = updates.get('talent_retention_bonus', 0.0) + 0.5 * m
            updates['talent_gain_bonus'] = updates.get('talent_gain_bonus', 0.0) + 0.3 * m
        elif service.type == 'procurement':
            updates['capex_reduction'] = updates.get('capex_reduction', 0.0) + 0.15 * m
        elif service.type == 'marketing_brand':
            updates['growth_bonus'] = updates.get('growth_bonus', 0.0) + 0.015 * m
        elif service.type == 'technology_systems':
            updates['reinvestment_bonus'] = updates.get('reinvestment_bonus', 0.0) + 0.2 * m
            updates['margin_defense'] = updates.get('margin_defense', 0.0) + 0.0025 * m
        else:
            logger.warning(f'Unknown shared service type: {service.type}')
    return benefits.model_copy(update=updates)


def get_shared_services_annual_cost(state: GameState) -> int:
    return sum(s.annual_cost for s in state.shared_services if s.active)


def calculate_sector_focus_bonus(businesses: List[Business]) -> Optional[SectorFocusBonus]:
    """
    Bonus for owning several businesses in the same sector focus group.

    Returns:
        SectorFocusBonus for the largest group, or None below two opcos
    """
    active = get_active_businesses(businesses)
    if len(active) < 2:
        return None

    counts = Counter(
        SECTORS[b.sector_id]['sector_focus_group']
        for b in active if b.sector_id in SECTORS
    )
    if not counts:
        return None
    focus_group, count = counts.most_common(1)[0]
    if count < 2:
        return None

    if count >= 4:
        tier = 3
    elif count == 3:
        tier = 2
    else:
        tier = 1

    return SectorFocusBonus(
        focus_group=focus_group,
        tier=tier,
        opco_count=count,
        ebitda_bonus=SECTOR_FOCUS_EBITDA_BONUS[tier],
        multiple_discount=SECTOR_FOCUS_MULTIPLE_DISCOUNT[tier],
    )


def get_platform_bonuses(business: Business,
                         platforms: List[IntegratedPlatform]) -> Optional[PlatformBonuses]:
    if not business.integrated_platform_id:
        return None
    for platform in platforms:
        if platform.id == business.integrated_platform_id:
            return platform.bonuses
    return None


def get_platform_multiple_expansion(business: Business,
                                    platforms: Optional[List[IntegratedPlatform]]) -> float:
    bonuses = get_platform_bonuses(business, platforms or [])
    return bonuses.multiple_expansion if bonuses else 0.0


def get_platform_recession_modifier(business: Business,
                                    platforms: Optional[List[IntegratedPlatform]]) -> float:
    bonuses = get_platform_bonuses(business, platforms or [])
    return bonuses.recession_resistance_reduction if bonuses else 1.0


def calculate_distress_level(net_debt_to_ebitda: float, total_debt: int, total_ebitda: int) -> str:
    """
    Classify covenant status from leverage.

    Args:
        net_debt_to_ebitda: Net debt / EBITDA
        total_debt: Total debt across holdco and opcos
        total_ebitda: Active portfolio EBITDA

    Returns:
        One of comfortable, elevated, stressed, breach
    """
    if total_debt <= 0 and net_debt_to_ebitda <= 0:
        return 'comfortable'
    if total_ebitda <= 0 and total_debt > 0:
        return 'breach'
    if net_debt_to_ebitda >= DISTRESS_THRESHOLDS['breach']:
        return 'breach'
    if net_debt_to_ebitda >= DISTRESS_THRESHOLDS['stressed']:
        return 'stressed'
    if net_debt_to_ebitda >= DISTRESS_THRESHOLDS['elevated']:
        return 'elevated'
    return 'comfortable'


def get_distress_restrictions(level: str) -> DistressRestrictions:
    if level == 'stressed':
        return DistressRestrictions(can_take_debt=False, interest_penalty=0.01)
    if level == 'breach':
        return DistressRestrictions(
            can_acquire=False,
            can_take_debt=False,
            can_distribute=False,
            interest_penalty=0.02,
        )
    return DistressRestrictions()
