"""
Buyer pool model used at exit.

This module contains:
- calculate_size_tier_premium: EBITDA to buyer tier and size premium
- calculate_de_risking_premium: Premium for diligence-clean businesses
- generate_buyer_profile: Sampled buyer with name, thesis and strategic premium
- generate_valuation_commentary: Human-readable summary of a valuation
"""

import logging
import random
from typing import Dict, List, Optional

from config import DEFAULT_SECTOR_ID, SECTORS
from helpers import format_money, format_multiple, lerp, pick, random_in_range, resolve_rng
from models import Business, BuyerProfile, SizeTierResult, ValuationCommentary

logger = logging.getLogger(__name__)

# (upper EBITDA bound, tier, premium at lower bound, premium at upper bound)
SIZE_TIERS = [
    (2000, 'individual', 0.0, 0.0),
    (5000, 'small_pe', 0.5, 0.8),
    (10000, 'lower_middle_pe', 0.8, 1.5),
    (20000, 'institutional_pe', 1.5, 2.5),
]
LARGE_PE_CAP_EBITDA = 30000

STRATEGIC_PROBABILITY: Dict[str, float] = {
    'individual': 0.0,
    'small_pe': 0.05,
    'lower_middle_pe': 0.15,
    'institutional_pe': 0.25,
    'large_pe': 0.35,
}

TIER_BUYER_TYPES: Dict[str, List[str]] = {
    'individual': ['individual', 'individual', 'family_office'],
    'small_pe': ['small_pe', 'family_office', 'small_pe'],
    'lower_middle_pe': ['lower_middle_pe', 'lower_middle_pe', 'family_office'],
    'institutional_pe': ['institutional_pe', 'institutional_pe', 'large_pe'],
    'large_pe': ['large_pe', 'large_pe', 'institutional_pe'],
}

PE_FUND_NAMES = [
    'Summit Ridge Partners', 'Clearview Capital', 'Ironpoint Capital',
    'Meridian Growth Partners', 'Cascadia Equity Group', 'Blackthorn Capital',
    'Northstar Capital Partners', 'Granite Point Partners', 'Pinecrest Capital',
    'Crestline Partners', 'Ridgeline Capital', 'Timberstone Equity',
    'Stonebridge Partners', 'Bluewater Capital', 'Highland Capital Group',
]

FAMILY_OFFICE_NAMES = [
    'Thornton Family Office', 'Mercer Capital Partners', 'Whitfield Holdings',
    'Ashford Capital Group', 'Sterling Family Partners', 'Kensington Capital',
    'Hartwick Investments', 'Bancroft Partners', 'Davenport Capital', 'Winslow Holdings',
]

STRATEGIC_ACQUIRERS: Dict[str, List[str]] = {
    'agency': ['WPP', 'Omnicom', 'Publicis Groupe', 'IPG', 'Dentsu', 'Accenture Song'],
    'saas': ['Vista Equity', 'Thoma Bravo', 'Silver Lake', 'Insight Partners', 'Salesforce'],
    'home_services': ['FirstService Corp', 'Neighborly', 'Cintas', 'Rollins', 'ServiceMaster'],
    'consumer': ['Procter & Gamble', 'Unilever', 'Church & Dwight', 'Spectrum Brands', 'Henkel'],
    'industrial': ['Danaher', 'Roper Technologies', 'ITW', 'Parker Hannifin', 'Honeywell'],
    'b2b_services': ['Constellation Software', 'Accenture', 'Gartner', 'IHS Markit', 'Verisk'],
    'healthcare': ['UnitedHealth', 'McKesson', 'Cardinal Health', 'Amedisys', 'Envision'],
    'restaurant': ['Inspire Brands', 'Restaurant Brands Intl', 'Yum! Brands', 'Dine Brands', 'Jack in the Box'],
    'real_estate': ['Brookfield', 'CBRE', 'JLL', 'Cushman & Wakefield', 'Colliers'],
    'education': ['Pearson', 'Scholastic', 'Grand Canyon Education', 'Bright Horizons', 'Chegg'],
    'insurance': ['Acrisure', 'Hub International', 'Gallagher', 'AssuredPartners', 'NFP'],
    'auto_services': ['Driven Brands', 'Mavis Discount Tire', 'Caliber Collision', 'Sun Auto Tire', 'Crash Champions'],
    'distribution': ['Watsco', 'Pool Corp', 'Fastenal', 'Grainger', 'HD Supply'],
    'wealth_management': ['Focus Financial', 'Hightower', 'CI Financial', 'Mercer Advisors', 'Carson Group', 'Cetera Financial'],
    'environmental': ['Waste Management', 'Republic Services', 'GFL Environmental', 'Casella Waste', 'Clean Harbors', 'US Ecology'],
}

FUND_SIZES: Dict[str, Optional[str]] = {
    'individual': None,
    'family_office': '$50-200M AUM',
    'small_pe': '$100-500M fund',
    'lower_middle_pe': '$500M-2B fund',
    'institutional_pe': '$2-10B fund',
    'large_pe': '$10B+ fund',
    'strategic': None,
}

TIER_LABELS: Dict[str, str] = {
    'individual': 'individual buyer',
    'small_pe': 'small PE',
    'lower_middle_pe': 'lower middle PE',
    'institutional_pe': 'institutional PE',
    'large_pe': 'large PE',
}

TIER_DESCRIPTIONS: Dict[str, str] = {
    'individual': 'Individual buyers and search funds. Limited financing, thin competition.',
    'small_pe': 'Small PE funds and family offices. Some competition for quality assets.',
    'lower_middle_pe': 'Lower middle market PE. Professional processes and real competition.',
    'institutional_pe': 'Institutional PE and strategics. Competitive auctions are common.',
    'large_pe': 'Large-cap PE and global strategics. Scarcity value drives premium multiples.',
}


def calculate_size_tier_premium(ebitda: float) -> SizeTierResult:
    """
    Map EBITDA (in thousands) onto a buyer tier and its size premium.

    The premium is piecewise linear and continuous at each tier boundary;
    large_pe tops out at 3.5x once EBITDA reaches LARGE_PE_CAP_EBITDA.
    """
    lower = 0
    for upper, tier, low_premium, high_premium in SIZE_TIERS:
        if ebitda < upper:
            if tier == 'individual':
                return SizeTierResult(tier=tier, premium=0.0)
            return SizeTierResult(tier=tier, premium=lerp(ebitda, lower, upper, low_premium, high_premium))
        lower = upper
    capped = min(ebitda, LARGE_PE_CAP_EBITDA)
    return SizeTierResult(tier='large_pe', premium=lerp(capped, 20000, LARGE_PE_CAP_EBITDA, 2.5, 3.5))


def calculate_de_risking_premium(business: Business) -> float:
    """Sum discrete diligence bonuses, capped at 1.5x."""
    dd = business.due_diligence
    premium = 0.0
    if dd.revenue_concentration == 'low':
        premium += 0.3
    if dd.operator_quality == 'strong':
        premium += 0.3
    if business.is_platform and business.platform_scale > 0:
        premium += min(0.6, business.platform_scale * 0.2)
    if len(business.improvements) >= 2:
        premium += 0.2
    if dd.customer_retention >= 90:
        premium += 0.2
    return min(1.5, premium)


def _investment_thesis(buyer_type: str, business: Business, sector_name: str) -> str:
    margin_delta = business.ebitda_margin - business.acquisition_margin
    if buyer_type == 'strategic':
        thesis = f'Strategic fit with existing {sector_name.lower()} operations; synergies justify a premium.'
    elif buyer_type == 'individual':
        thesis = f'Owner-operator looking for a stable {sector_name.lower()} business to run.'
    elif buyer_type == 'family_office':
        thesis = 'Long-hold capital seeking durable cash flows with limited leverage.'
    elif business.is_platform:
        thesis = f'Buy-and-build: an established {sector_name.lower()} platform to keep adding bolt-ons.'
    elif business.ebitda >= 10000:
        thesis = f'Scaled {sector_name.lower()} asset with room for a secondary buyout.'
    else:
        thesis = f'Add-on candidate for an existing {sector_name.lower()} portfolio company.'

    if margin_delta >= 0.03:
        thesis += ' Margin expansion since acquisition signals operational upside.'
    elif margin_delta <= -0.03:
        thesis += ' Margin erosion since acquisition tempers the bid.'
    return thesis


def generate_buyer_profile(business: Business, tier: str, sector_id: str,
                           rng: Optional[random.Random] = None) -> BuyerProfile:
    """
    Sample a buyer for the business given its size tier.

    Args:
        business: Business being sold
        tier: Buyer pool tier from calculate_size_tier_premium
        sector_id: Sector used for the strategic acquirer list
        rng: Injectable random source

    Returns:
        BuyerProfile with a strategic premium of U(0.5, 1.5) when strategic
    """
    rng = resolve_rng(rng)
    sector = SECTORS.get(sector_id, SECTORS[DEFAULT_SECTOR_ID])

    is_strategic = rng.random() < STRATEGIC_PROBABILITY.get(tier, 0.0)
    if is_strategic:
        buyer_type = 'strategic'
        acquirers = STRATEGIC_ACQUIRERS.get(sector_id, STRATEGIC_ACQUIRERS[DEFAULT_SECTOR_ID])
        name = pick(rng, acquirers)
    else:
        buyer_type = pick(rng, TIER_BUYER_TYPES.get(tier, TIER_BUYER_TYPES['individual']))
        if buyer_type == 'individual':
            name = 'Independent Sponsor'
        elif buyer_type == 'family_office':
            name = pick(rng, FAMILY_OFFICE_NAMES)
        else:
            name = pick(rng, PE_FUND_NAMES)

    strategic_premium = random_in_range(rng, 0.5, 1.5) if is_strategic else 0.0

    return BuyerProfile(
        name=name,
        type=buyer_type,
        fund_size=FUND_SIZES[buyer_type],
        investment_thesis=_investment_thesis(buyer_type, business, sector['name']),
        is_strategic=is_strategic,
        strategic_premium=strategic_premium,
    )


def generate_valuation_commentary(business: Business, tier: str, size_tier_premium: float,
                                  de_risking_premium: float, effective_ebitda: float,
                                  total_multiple: float) -> ValuationCommentary:
    """Build the summary line and factor list shown next to a valuation."""
    factors = []
    if size_tier_premium > 0:
        factors.append(f'Size premium +{size_tier_premium:.1f}x: buyer pool expands at this scale')
    elif size_tier_premium < 0:
        factors.append(f'Size premium {size_tier_premium:.1f}x: already paid for at acquisition')

    dd = business.due_diligence
    if dd.revenue_concentration == 'low':
        factors.append('Diversified customer base reduces buyer risk')
    elif dd.revenue_concentration == 'high':
        factors.append('Customer concentration narrows the buyer pool')
    if dd.operator_quality == 'strong':
        factors.append('Strong operator in place')
    if dd.customer_retention >= 90:
        factors.append(f'{dd.customer_retention}% customer retention')
    if business.is_platform and business.platform_scale > 0:
        factors.append(f'Platform with {business.platform_scale} bolt-on(s)')
    if len(business.improvements) >= 2:
        factors.append(f'{len(business.improvements)} operational improvements applied')
    if de_risking_premium > 0:
        factors.append(f'De-risking premium +{de_risking_premium:.1f}x')

    summary = (
        f'At {format_money(effective_ebitda)} EBITDA ({business.ebitda_margin * 100:.0f}% margins), '
        f'this attracts {TIER_LABELS[tier]} attention at {format_multiple(total_multiple)}'
    )
    return ValuationCommentary(
        summary=summary,
        factors=factors,
        buyer_pool_description=TIER_DESCRIPTIONS[tier],
    )
