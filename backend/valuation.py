"""
Exit valuation engine.

calculate_exit_valuation builds an exit multiple from the acquisition
multiple plus a stack of premiums:
- Growth, quality, platform, hold period and operational improvements
- Market conditions from the last event
- Buyer-pool size tier (net of the tier premium paid at entry) and de-risking
- Rule of 40 (software-like sectors), margin expansion and merger balance
- Integrated platform multiple expansion and turnaround premium

Positive premiums are capped, then phased in by a seasoning ramp over the
first two years of ownership. The multiple never drops below 2.0x.
"""

from typing import List, Optional

from buyers import calculate_de_risking_premium, calculate_size_tier_premium, generate_valuation_commentary
from config import (
    DEFAULT_IMPROVEMENT_PREMIUM,
    IMPROVEMENT_PREMIUMS,
    MIN_EXIT_MULTIPLE,
    MIN_PREMIUM_CAP,
    PREMIUM_CAP_BASE_MULTIPLE,
    RULE_OF_40_SECTORS,
    SEASONING_YEARS,
)
from models import Business, ExitValuation, GameState, IntegratedPlatform, PortfolioContext
from portfolio import get_active_businesses, get_platform_multiple_expansion
from turnarounds import get_turnaround_exit_premium

MARKET_MODIFIERS = {
    'global_bull_market': 0.5,
    'global_recession': -0.5,
    'global_financial_crisis': -1.0,
}


def calculate_growth_premium(ebitda_growth: float) -> float:
    if ebitda_growth > 0:
        return min(2.5, ebitda_growth * 0.8)
    return max(-1.0, ebitda_growth * 0.5)


def calculate_improvements_premium(business: Business) -> float:
    total = sum(
        IMPROVEMENT_PREMIUMS.get(imp.type, DEFAULT_IMPROVEMENT_PREMIUM)
        for imp in business.improvements
    )
    return min(1.0, total)


def calculate_rule_of_40_premium(business: Business) -> float:
    """Premium for software-like sectors on growth % + margin %."""
    if business.sector_id not in RULE_OF_40_SECTORS:
        return 0.0
    rule_of_40 = business.revenue_growth_rate * 100 + business.ebitda_margin * 100
    if rule_of_40 >= 50:
        return 1.5
    if rule_of_40 >= 40:
        return 0.5 + (rule_of_40 - 40) / 10
    if rule_of_40 < 25:
        return -0.3
    return 0.0


def calculate_margin_expansion_premium(business: Business) -> float:
    margin_delta = business.ebitda_margin - business.acquisition_margin
    if margin_delta >= 0.10:
        return 0.3
    if margin_delta >= 0.05:
        return 0.1 + (margin_delta - 0.05) * 4
    if margin_delta <= -0.05:
        return -0.2
    return 0.0


def calculate_merger_premium(business: Business) -> float:
    # Balanced mergers (similar-sized halves) integrate best
    if not business.was_merged or business.merger_balance_ratio is None:
        return 0.0
    if business.merger_balance_ratio <= 2.0:
        return 0.5
    if business.merger_balance_ratio <= 3.0:
        return 0.4
    return 0.3


def calculate_exit_valuation(
    business: Business,
    current_round: int,
    last_event_type: Optional[str] = None,
    portfolio_context: Optional[PortfolioContext] = None,
    integrated_platforms: Optional[List[IntegratedPlatform]] = None,
) -> ExitValuation:
    """
    Compute the exit valuation of a business.

    Args:
        business: Business being valued
        current_round: Round the valuation is taken in
        last_event_type: Type of the most recent event, for the market modifier
        portfolio_context: Optional platform-level EBITDA for the size tier
        integrated_platforms: Forged platforms, for multiple expansion

    Returns:
        ExitValuation with every premium component broken out
    """
    base_multiple = business.acquisition_multiple

    if business.acquisition_ebitda > 0:
        ebitda_growth = (business.ebitda - business.acquisition_ebitda) / business.acquisition_ebitda
    else:
        ebitda_growth = 0.0

    growth_premium = calculate_growth_premium(ebitda_growth)
    quality_premium = (business.quality_rating - 3) * 0.4
    platform_premium = business.platform_scale * 0.2 if business.is_platform else 0.0

    years_held = current_round - business.acquisition_round
    hold_premium = min(0.5, years_held * 0.1)

    improvements_premium = calculate_improvements_premium(business)
    market_modifier = MARKET_MODIFIERS.get(last_event_type, 0.0)

    effective_ebitda = business.ebitda
    if portfolio_context is not None and portfolio_context.total_platform_ebitda is not None:
        effective_ebitda = portfolio_context.total_platform_ebitda
    size_tier_result = calculate_size_tier_premium(effective_ebitda)
    size_tier_premium = size_tier_result.premium - (business.acquisition_size_tier_premium or 0.0)

    de_risking_premium = calculate_de_risking_premium(business)
    rule_of_40_premium = calculate_rule_of_40_premium(business)
    margin_expansion_premium = calculate_margin_expansion_premium(business)
    merger_premium = calculate_merger_premium(business)
    integrated_platform_premium = get_platform_multiple_expansion(business, integrated_platforms)
    turnaround_premium = get_turnaround_exit_premium(business)

    raw_total_premiums = (
        growth_premium
        + quality_premium
        + platform_premium
        + hold_premium
        + improvements_premium
        + market_modifier
        + size_tier_premium
        + de_risking_premium
        + rule_of_40_premium
        + margin_expansion_premium
        + merger_premium
        + integrated_platform_premium
        + turnaround_premium
    )

    # Only positive runaway is capped; negative premiums pass through
    premium_cap = max(MIN_PREMIUM_CAP, base_multiple * PREMIUM_CAP_BASE_MULTIPLE)
    if raw_total_premiums > 0:
        total_premiums = min(raw_total_premiums, premium_cap)
    else:
        total_premiums = raw_total_premiums

    seasoning_multiplier = max(0.0, min(1.0, years_held / SEASONING_YEARS))
    total_multiple = max(MIN_EXIT_MULTIPLE, base_multiple + total_premiums * seasoning_multiplier)

    exit_price = max(0, round(business.ebitda * total_multiple))
    debt_payoff = business.seller_note_balance + business.bank_debt_balance + business.earnout_remaining
    net_proceeds = max(0, exit_price - debt_payoff)

    commentary = generate_valuation_commentary(
        business,
        size_tier_result.tier,
        size_tier_premium,
        de_risking_premium,
        effective_ebitda,
        total_multiple,
    )

    return ExitValuation(
        base_multiple=base_multiple,
        ebitda_growth=ebitda_growth,
        growth_premium=growth_premium,
        quality_premium=quality_premium,
        platform_premium=platform_premium,
        hold_premium=hold_premium,
        improvements_premium=improvements_premium,
        market_modifier=market_modifier,
        size_tier_premium=size_tier_premium,
        size_tier=size_tier_result.tier,
        de_risking_premium=de_risking_premium,
        rule_of_40_premium=rule_of_40_premium,
        margin_expansion_premium=margin_expansion_premium,
        merger_premium=merger_premium,
        integrated_platform_premium=integrated_platform_premium,
        turnaround_premium=turnaround_premium,
        raw_total_premiums=raw_total_premiums,
        total_premiums=total_premiums,
        premium_cap=premium_cap,
        years_held=years_held,
        seasoning_multiplier=seasoning_multiplier,
        total_multiple=total_multiple,
        exit_price=exit_price,
        debt_payoff=debt_payoff,
        net_proceeds=net_proceeds,
        commentary=commentary,
    )


def get_last_event_type(state: GameState) -> Optional[str]:
    if state.current_event is not None:
        return state.current_event.type
    if state.event_history:
        return state.event_history[-1].type
    return None


def calculate_portfolio_value(state: GameState) -> int:
    """Sum of exit prices across active businesses at the current round."""
    last_event_type = get_last_event_type(state)
    return sum(
        calculate_exit_valuation(
            b,
            state.round,
            last_event_type,
            integrated_platforms=state.integrated_platforms,
        ).exit_price
        for b in get_active_businesses(state.businesses)
    )
