"""
Round advance and Monte Carlo analysis of holdco games.

This module contains:
- AutoplayPolicy: How autoplay answers choice events
- advance_round: One year of growth, events, turnarounds, cash and metrics
- Experiment: Runs many seeded games from a starting state and
  summarises the distribution of outcomes
"""

import logging
from collections import Counter, OrderedDict
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field

from config import (
    DEFAULT_MIN_OFFER_MULTIPLE,
    DEFAULT_NUM_SCENARIOS,
    DEFAULT_SECTOR_ID,
    DIVERSIFICATION_BONUS_TIERS,
    SECTORS,
)
from events import apply_event_effects, generate_event, resolve_event_choice
from growth import apply_organic_growth
from helpers import create_rng_streams, format_money, format_percent
from metrics import calculate_total_debt, record_historical_metrics
from models import Business, GameEvent, GameState
from portfolio import (
    calculate_distress_level,
    calculate_sector_focus_bonus,
    calculate_shared_services_benefits,
    get_active_businesses,
    get_distress_restrictions,
    get_shared_services_annual_cost,
)
from tax import calculate_portfolio_fcf
from turnarounds import (
    get_turnaround_program_annual_cost,
    get_turnaround_tier_annual_cost,
    resolve_due_turnarounds,
)

logger = logging.getLogger(__name__)


class AutoplayPolicy(BaseModel):
    """
    Answers to choice events when a game is played automatically.

    Attributes:
        min_offer_multiple: Accept unsolicited offers at or above this multiple
        accept_mbo: Whether to accept management buyouts
        grant_equity_demands: Whether to grant operator equity demands
        accept_note_renegotiations: Whether to retire seller notes early when offered
    """
    min_offer_multiple: float = Field(default=DEFAULT_MIN_OFFER_MULTIPLE)
    accept_mbo: bool = False
    grant_equity_demands: bool = True
    accept_note_renegotiations: bool = True


def choose_action(event: GameEvent, policy: AutoplayPolicy) -> str:
    """Pick the action an autoplay policy takes for a choice event."""
    actions = {c.action for c in event.choices}
    if 'accept_offer' in actions:
        accept = (event.offer_multiple or 0.0) >= policy.min_offer_multiple
        return 'accept_offer' if accept else 'decline_offer'
    if 'accept_mbo' in actions:
        return 'accept_mbo' if policy.accept_mbo else 'decline_mbo'
    if 'grant_equity_demand' in actions:
        return 'grant_equity_demand' if policy.grant_equity_demands else 'decline_equity_demand'
    if 'accept_seller_note_renego' in actions:
        return 'accept_seller_note_renego' if policy.accept_note_renegotiations else 'decline_seller_note_renego'
    return event.choices[0].action


def get_diversification_bonus(unique_sectors: int) -> float:
    for min_sectors, bonus in DIVERSIFICATION_BONUS_TIERS:
        if unique_sectors >= min_sectors:
            return bonus
    return 0.0


def count_focus_groups(businesses: List[Business]) -> Counter:
    """Active opcos per sector focus group, used as concentration exposure."""
    return Counter(
        SECTORS.get(b.sector_id, SECTORS[DEFAULT_SECTOR_ID])['sector_focus_group']
        for b in get_active_businesses(businesses)
    )


def apply_growth_phase(state: GameState, rng) -> GameState:
    """Apply a year of organic growth to every active business."""
    active = get_active_businesses(state.businesses)
    benefits = calculate_shared_services_benefits(state)
    focus = calculate_sector_focus_bonus(state.businesses)
    sector_focus_bonus = focus.ebitda_bonus if focus else 0.0
    focus_counts = count_focus_groups(state.businesses)
    diversification_bonus = get_diversification_bonus(len({b.sector_id for b in active}))
    inflation_active = state.inflation_rounds_remaining > 0

    businesses = [
        apply_organic_growth(
            b,
            benefits.growth_bonus,
            sector_focus_bonus,
            inflation_active,
            concentration_count=focus_counts[
                SECTORS.get(b.sector_id, SECTORS[DEFAULT_SECTOR_ID])['sector_focus_group']
            ],
            diversification_bonus=diversification_bonus,
            current_round=state.round,
            shared_services_margin_defense=benefits.margin_defense,
            max_rounds=state.max_rounds,
            rng=rng,
        ) if b.status == 'active' else b
        for b in state.businesses
    ]
    return state.model_copy(update={'businesses': businesses})


def _service_debt(balance: int, rate: float, rounds_remaining: int,
                  available: int) -> Tuple[int, int, int]:
    """
    Pay one year of interest and amortization on an opco instrument.

    Payments never exceed available cash. The rounds counter only moves
    when the full installment was paid; once it reaches zero the remaining
    balance falls due.

    Returns:
        Tuple of (amount paid, new balance, new rounds remaining)
    """
    paid = 0
    if balance > 0 and rounds_remaining > 0:
        interest = round(balance * rate)
        principal = round(balance / rounds_remaining)
        due = interest + principal
        paid = min(due, max(0, available))
        balance = max(0, balance - max(0, paid - interest))
        if paid >= due:
            rounds_remaining -= 1
    if rounds_remaining <= 0 and balance > 0:
        final = min(balance, max(0, available - paid))
        paid += final
        balance -= final
    return paid, balance, rounds_remaining


def collect_round_cash(state: GameState) -> GameState:
    """
    Bank the year's free cash flow and pay the holdco's obligations.

    Cash rises by portfolio FCF after tax, less holdco interest (with the
    distress penalty), shared services, turnaround tier and program costs.
    Seller notes and bank debt are then serviced out of what is left.
    Cash never goes below zero.
    """
    active = get_active_businesses(state.businesses)
    total_ebitda = sum(b.ebitda for b in active)
    total_debt = calculate_total_debt(state)
    leverage = (total_debt - state.cash) / total_ebitda if total_ebitda > 0 else 0.0
    restrictions = get_distress_restrictions(calculate_distress_level(leverage, total_debt, total_ebitda))
    holdco_rate = state.interest_rate + restrictions.interest_penalty

    benefits = calculate_shared_services_benefits(state)
    shared_services_cost = get_shared_services_annual_cost(state)
    annual_fcf = calculate_portfolio_fcf(
        state.businesses,
        benefits.capex_reduction,
        benefits.cash_conversion_bonus,
        state.total_debt,
        holdco_rate,
        shared_services_cost,
    )
    cash = (
        state.cash
        + annual_fcf
        - round(state.total_debt * holdco_rate)
        - shared_services_cost
        - get_turnaround_tier_annual_cost(state.turnaround_tier)
        - get_turnaround_program_annual_cost(state)
    )

    businesses = []
    for b in state.businesses:
        if b.status not in ('active', 'integrated'):
            businesses.append(b)
            continue
        note_paid, note_balance, note_rounds = _service_debt(
            b.seller_note_balance, b.seller_note_rate, b.seller_note_rounds_remaining, cash,
        )
        cash -= note_paid
        bank_paid, bank_balance, bank_rounds = _service_debt(
            b.bank_debt_balance, b.bank_debt_rate or state.interest_rate, b.bank_debt_rounds_remaining, cash,
        )
        cash -= bank_paid
        if note_paid or bank_paid:
            logger.debug(f'{b.name}: debt service ${note_paid + bank_paid}k')
        businesses.append(b.model_copy(update={
            'seller_note_balance': note_balance,
            'seller_note_rounds_remaining': note_rounds,
            'bank_debt_balance': bank_balance,
            'bank_debt_rounds_remaining': bank_rounds,
        }))

    return state.model_copy(update={'cash': max(0, cash), 'businesses': businesses})


def advance_round(state: GameState, policy: Optional[AutoplayPolicy] = None,
                  seed: Optional[int] = None) -> GameState:
    """
    Play one round: growth, event, turnarounds, cash collection, then record metrics.

    Args:
        state: State at the start of the round
        policy: Autoplay answers for choice events
        seed: Master seed; defaults to state.seed, then 0

    Returns:
        State for the next round
    """
    policy = policy or AutoplayPolicy()
    master_seed = seed if seed is not None else (state.seed or 0)
    streams = create_rng_streams(master_seed, state.round)

    state = state.model_copy(update={
        'current_event': None,
        'inflation_rounds_remaining': max(0, state.inflation_rounds_remaining - 1),
        'credit_tightening_rounds_remaining': max(0, state.credit_tightening_rounds_remaining - 1),
    })

    state = apply_growth_phase(state, streams['simulation'])

    event = generate_event(state, streams['events'])
    state = apply_event_effects(state, event, streams['market'])
    if event.choices:
        state = resolve_event_choice(state, event, choose_action(event, policy), streams['market'])

    state = resolve_due_turnarounds(state, streams['simulation'])
    state = collect_round_cash(state)

    history = record_historical_metrics(state)
    return state.model_copy(update={
        'metrics_history': state.metrics_history + [history],
        'round': state.round + 1,
    })


class Experiment:
    """
    Experiment class for running many autoplayed games from one starting state.

    This class handles:
    - Playing a game to its last round with a fixed policy and seed
    - Running many seeds and collecting terminal metrics
    - Summarising MOIC percentiles and event frequencies
    - Formatting output data
    """

    def __init__(self):
        moic = '{:.2f}x'.format
        count = '{:,.0f}'.format
        self.summary_rows = OrderedDict([
            ('num_scenarios', ('Run', 'Games Played', count)),
            ('rounds_played', ('Run', 'Rounds per Game', count)),
            ('avg_final_ebitda', ('Final Round', 'Avg Portfolio EBITDA', format_money)),
            ('avg_portfolio_value', ('Final Round', 'Avg Portfolio Value', format_money)),
            ('avg_exits', ('Final Round', 'Avg Businesses Sold', '{:.2f}'.format)),
            ('avg_exit_proceeds', ('Final Round', 'Avg Exit Proceeds', format_money)),
            ('breach_rate', ('Final Round', 'Covenant Breach Rate', format_percent)),
            ('p25_moic', ('MOIC', 'P25', moic)),
            ('p50_moic', ('MOIC', 'Median', moic)),
            ('p75_moic', ('MOIC', 'P75', moic)),
            ('p90_moic', ('MOIC', 'P90', moic)),
            ('mean_moic', ('MOIC', 'Mean', moic)),
        ])

    def run_game(self, state: GameState, policy: Optional[AutoplayPolicy] = None,
                 seed: int = 0) -> GameState:
        """
        Autoplay a game from state until max_rounds is reached.

        Args:
            state: Starting state
            policy: Autoplay answers for choice events
            seed: Master seed for every round's RNG streams

        Returns:
            Final GameState
        """
        while state.round <= state.max_rounds:
            state = advance_round(state, policy, seed)
        return state

    def run_montecarlo(self, state: GameState, policy: Optional[AutoplayPolicy] = None,
                       num_scenarios: int = DEFAULT_NUM_SCENARIOS,
                       base_seed: int = 0) -> Optional[Dict[str, Any]]:
        """
        Run many seeded games and summarise their outcomes.

        Args:
            state: Starting state shared by every scenario
            policy: Autoplay answers for choice events
            num_scenarios: Number of games to play
            base_seed: Seed of the first scenario; scenario i uses base_seed + i

        Returns:
            Dictionary of simulation outcomes or None if nothing was simulated
        """
        if num_scenarios <= 0 or not get_active_businesses(state.businesses):
            logger.warning('Nothing to simulate: no scenarios or no active businesses')
            return None

        outcomes = []
        final_ebitda = []
        portfolio_values = []
        exits = []
        exit_proceeds = []
        breaches = 0
        event_counts: Counter = Counter()

        for i in range(num_scenarios):
            final = self.run_game(state, policy, base_seed + i)
            last = final.metrics_history[-1].metrics if final.metrics_history else None
            if last is None:
                continue
            outcomes.append(last.moic)
            final_ebitda.append(last.total_ebitda)
            portfolio_values.append(last.portfolio_value)
            exits.append(len(final.exited_businesses) - len(state.exited_businesses))
            exit_proceeds.append(final.total_exit_proceeds - state.total_exit_proceeds)
            if last.distress_level == 'breach':
                breaches += 1
            event_counts.update(e.type for e in final.event_history[len(state.event_history):])
            logger.debug(f'Scenario {i + 1}/{num_scenarios}: MOIC {last.moic:.2f}x')

        if not outcomes:
            return None

        outcomes = np.array(outcomes)
        return {
            'num_scenarios': len(outcomes),
            'rounds_played': state.max_rounds - state.round + 1,
            'avg_final_ebitda': float(np.mean(final_ebitda)),
            'avg_portfolio_value': float(np.mean(portfolio_values)),
            'avg_exits': float(np.mean(exits)),
            'avg_exit_proceeds': float(np.mean(exit_proceeds)),
            'breach_rate': breaches / len(outcomes),
            'p25_moic': float(np.percentile(outcomes, 25)),
            'p50_moic': float(np.percentile(outcomes, 50)),
            'p75_moic': float(np.percentile(outcomes, 75)),
            'p90_moic': float(np.percentile(outcomes, 90)),
            'mean_moic': float(np.mean(outcomes)),
            'std_moic': float(np.std(outcomes)),
            'event_counts': dict(event_counts),
            'moic_outcomes': outcomes.tolist(),
        }

    def format_results_for_output(self, results: List[Dict]) -> Dict[str, List]:
        """
        Lay Monte Carlo summaries out as a table, one column per run.

        Args:
            results: Summaries from run_montecarlo, optionally carrying a 'label'

        Returns:
            Dictionary of columns: 'Section', 'Metric', then one per run
        """
        table_data = {
            'Section': [section for section, _, _ in self.summary_rows.values()],
            'Metric': [label for _, label, _ in self.summary_rows.values()],
        }

        for index, result in enumerate(results, start=1):
            column = []
            for key, (_, _, render) in self.summary_rows.items():
                value = result.get(key)
                column.append('-' if value is None else render(value))
            table_data[result.get('label') or f'Run {index}'] = column

        return table_data
