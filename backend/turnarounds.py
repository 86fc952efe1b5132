"""
Turnaround engine.

A turnaround moves a business from one quality rating to a higher one
over several rounds. This module contains:
- Program lookup, eligibility, cost and duration
- Turnaround tier unlocks
- Stochastic resolution with a fatigue penalty for running too many at once
- Starting a turnaround and resolving the ones that are due
- The exit premium earned by businesses that climbed two or more tiers
"""

import logging
import random
from typing import List, Optional, Tuple

from config import (
    BASE_QUALITY_IMPROVEMENT_CHANCE,
    DEFAULT_QUALITY_CEILING,
    FATIGUE_PENALTY,
    FATIGUE_THRESHOLD,
    QUALITY_IMPROVEMENT_TIER_BONUS,
    SECTOR_QUALITY_CEILINGS,
    TURNAROUND_EXIT_PREMIUM,
    TURNAROUND_EXIT_PREMIUM_MIN_TIERS,
    TURNAROUND_PROGRAMS,
    TURNAROUND_TIER_CONFIG,
)
from helpers import apply_ebitda_floor, clamp_margin, resolve_rng
from models import ActiveTurnaround, Business, GameState, TurnaroundOutcome, TurnaroundProgram, business_by_id

logger = logging.getLogger(__name__)

PROGRAMS: List[TurnaroundProgram] = [TurnaroundProgram(**p) for p in TURNAROUND_PROGRAMS]


def get_program_by_id(program_id: str) -> Optional[TurnaroundProgram]:
    for program in PROGRAMS:
        if program.id == program_id:
            return program
    return None


def get_quality_ceiling(sector_id: str) -> int:
    return SECTOR_QUALITY_CEILINGS.get(sector_id, DEFAULT_QUALITY_CEILING)


def get_eligible_programs(business: Business, turnaround_tier: int,
                          active_turnarounds: List[ActiveTurnaround]) -> List[TurnaroundProgram]:
    """
    Programs the business can start right now.

    Empty when no tier is unlocked or the business already has an active
    turnaround, which keeps turnarounds to one per business.
    """
    if turnaround_tier == 0:
        return []
    if any(t.business_id == business.id and t.status == 'active' for t in active_turnarounds):
        return []

    ceiling = get_quality_ceiling(business.sector_id)
    return [
        p for p in PROGRAMS
        if p.tier_id <= turnaround_tier
        and p.source_quality == business.quality_rating
        and p.target_quality <= ceiling
    ]


def calculate_turnaround_cost(program: TurnaroundProgram, business: Business) -> int:
    return round(abs(business.ebitda) * program.upfront_cost_fraction)


def get_turnaround_duration(program: TurnaroundProgram, duration: str) -> int:
    return program.duration_quick if duration == 'quick' else program.duration_standard


def get_turnaround_tier_annual_cost(tier: int) -> int:
    if tier <= 0:
        return 0
    return TURNAROUND_TIER_CONFIG[tier]['annual_cost']


def get_turnaround_program_annual_cost(state: GameState) -> int:
    """Summed annual cost of every program still running."""
    total = 0
    for turnaround in state.active_turnarounds:
        if turnaround.status != 'active':
            continue
        program = get_program_by_id(turnaround.program_id)
        if program is None:
            logger.warning(f'Unknown turnaround program {turnaround.program_id}; no annual cost charged')
            continue
        total += program.annual_cost
    return total


def can_unlock_tier(current_tier: int, cash: int, active_opco_count: int) -> Tuple[bool, Optional[str]]:
    """
    Check whether the next turnaround tier can be unlocked.

    Returns:
        Tuple of (allowed, reason when not allowed)
    """
    next_tier = current_tier + 1
    if next_tier not in TURNAROUND_TIER_CONFIG:
        return False, 'Maximum tier reached'
    tier_config = TURNAROUND_TIER_CONFIG[next_tier]
    if active_opco_count < tier_config['required_opcos']:
        return False, f"Requires {tier_config['required_opcos']} active businesses"
    if cash < tier_config['unlock_cost']:
        return False, f"Requires ${tier_config['unlock_cost']}k cash"
    return True, None


def get_quality_improvement_chance(tier: int) -> float:
    return BASE_QUALITY_IMPROVEMENT_CHANCE + QUALITY_IMPROVEMENT_TIER_BONUS.get(tier, 0.0)


def get_turnaround_exit_premium(business: Business) -> float:
    if business.quality_improved_tiers >= TURNAROUND_EXIT_PREMIUM_MIN_TIERS:
        return TURNAROUND_EXIT_PREMIUM
    return 0.0


def resolve_turnaround(program: TurnaroundProgram, active_count: int,
                       random_value: Optional[float] = None,
                       rng: Optional[random.Random] = None) -> TurnaroundOutcome:
    """
    Roll the outcome of a finished turnaround.

    Args:
        program: Program being resolved
        active_count: Number of turnarounds running across the portfolio
        random_value: Roll in [0, 1); drawn from rng when omitted
        rng: Injectable random source

    Returns:
        TurnaroundOutcome with the quality change and EBITDA multiplier
    """
    if random_value is None:
        random_value = resolve_rng(rng).random()

    success_rate = program.success_rate
    partial_rate = program.partial_rate
    failure_rate = program.failure_rate

    if active_count >= FATIGUE_THRESHOLD:
        success_rate = max(0.0, program.success_rate - FATIGUE_PENALTY)
        partial_rate = min(1 - success_rate - failure_rate, partial_rate + FATIGUE_PENALTY)

    if random_value < success_rate:
        return TurnaroundOutcome(
            result='success',
            quality_change=program.target_quality - program.source_quality,
            ebitda_multiplier=1 + program.ebitda_boost_on_success,
            target_quality=program.target_quality,
            success_rate=success_rate,
            partial_rate=partial_rate,
            failure_rate=failure_rate,
        )
    if random_value < success_rate + partial_rate:
        partial_target = min(program.target_quality, program.source_quality + 1)
        return TurnaroundOutcome(
            result='partial',
            quality_change=partial_target - program.source_quality,
            ebitda_multiplier=1 + program.ebitda_boost_on_partial,
            target_quality=partial_target,
            success_rate=success_rate,
            partial_rate=partial_rate,
            failure_rate=failure_rate,
        )
    return TurnaroundOutcome(
        result='failure',
        quality_change=0,
        ebitda_multiplier=1 - program.ebitda_damage_on_failure,
        target_quality=program.source_quality,
        success_rate=success_rate,
        partial_rate=partial_rate,
        failure_rate=failure_rate,
    )


def start_turnaround(state: GameState, business_id: str, program_id: str) -> GameState:
    """
    Start a turnaround program on a business, paying the upfront cost.

    Raises:
        ValueError: If the business, program or eligibility check fails,
            or the holdco cannot afford the upfront cost
    """
    business = next((b for b in state.businesses if b.id == business_id and b.status == 'active'), None)
    if business is None:
        raise ValueError(f'No active business {business_id}')
    program = get_program_by_id(program_id)
    if program is None:
        raise ValueError(f'Unknown turnaround program {program_id}')

    eligible = get_eligible_programs(business, state.turnaround_tier, state.active_turnarounds)
    if program.id not in {p.id for p in eligible}:
        raise ValueError(f'Program {program_id} is not available for {business.name or business.id}')

    cost = calculate_turnaround_cost(program, business)
    if cost > state.cash:
        raise ValueError(f'Turnaround costs {cost} but only {state.cash} cash is available')

    turnaround = ActiveTurnaround(
        id=f'turnaround_{business.id}_{state.round}',
        business_id=business.id,
        program_id=program.id,
        start_round=state.round,
        end_round=state.round + get_turnaround_duration(program, state.duration),
    )
    logger.debug(f'Started {program.id} on {business.id}, ends round {turnaround.end_round}')
    return state.model_copy(update={
        'cash': state.cash - cost,
        'active_turnarounds': state.active_turnarounds + [turnaround],
    })


def _apply_turnaround_outcome(business: Business, outcome: TurnaroundOutcome) -> Business:
    new_margin = clamp_margin(business.ebitda_margin * outcome.ebitda_multiplier)
    new_ebitda = round(business.revenue * new_margin)
    new_ebitda, new_margin = apply_ebitda_floor(new_ebitda, business.revenue, new_margin, business.acquisition_ebitda)
    new_quality = min(outcome.target_quality, get_quality_ceiling(business.sector_id))
    return business.model_copy(update={
        'ebitda_margin': new_margin,
        'ebitda': new_ebitda,
        'peak_ebitda': max(business.peak_ebitda, new_ebitda),
        'quality_rating': max(business.quality_rating, new_quality),
        'quality_improved_tiers': business.quality_improved_tiers + max(0, outcome.quality_change),
    })


def resolve_due_turnarounds(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """
    Resolve every active turnaround whose end round has arrived.

    Turnarounds on businesses that are no longer active are dropped.
    """
    rng = resolve_rng(rng)
    active_count = sum(1 for t in state.active_turnarounds if t.status == 'active')
    businesses = business_by_id(state.businesses)
    turnarounds = []

    for turnaround in state.active_turnarounds:
        if turnaround.status != 'active' or turnaround.end_round > state.round:
            turnarounds.append(turnaround)
            continue
        business = businesses.get(turnaround.business_id)
        program = get_program_by_id(turnaround.program_id)
        if business is None or business.status != 'active' or program is None:
            logger.warning(f'Dropping turnaround {turnaround.id}: business or program missing')
            continue

        outcome = resolve_turnaround(program, active_count, rng=rng)
        logger.debug(f'Turnaround {turnaround.id} resolved as {outcome.result}')
        businesses[business.id] = _apply_turnaround_outcome(business, outcome)
        status = {'success': 'completed', 'partial': 'partial', 'failure': 'failed'}[outcome.result]
        turnarounds.append(turnaround.model_copy(update={'status': status}))

    return state.model_copy(update={
        'businesses': [businesses[b.id] for b in state.businesses],
        'active_turnarounds': turnarounds,
    })
