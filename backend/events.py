"""
Event engine.

Each round generate_event runs up to four lotteries in order and the
first one that fires wins:
- Global events (macro conditions)
- Portfolio events, filtered by eligibility and scaled by shared services
- Sector events, only for sectors the holdco owns
- An unsolicited offer for one business

apply_event_effects is a pure reducer that applies an event to a state and
records before/after impacts. Events that carry choices are not applied;
they wait for resolve_event_choice with the player's action.
"""

import logging
import random
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from buyers import generate_buyer_profile
from config import (
    CLIENT_CONCENTRATION_CHURN_MULTIPLIER,
    COMPLIANCE_COST,
    DECLINE_EQUITY_DEMAND_DISRUPTION_CHANCE,
    DECLINE_MBO_QUALITY_LOSS_CHANCE,
    DEFAULT_SECTOR_ID,
    DURATION_CONFIG,
    EQUITY_DEMAND_DILUTION_RANGE,
    EQUITY_DEMAND_MIN_QUALITY,
    FINANCIAL_CRISIS_CREDIT_ROUNDS,
    GLOBAL_EVENTS,
    INFLATION_DURATION_ROUNDS,
    MAX_INTEREST_RATE,
    MBO_DISCOUNT_RANGE,
    MBO_MIN_QUALITY,
    MBO_MIN_YEARS_HELD,
    MIN_EXIT_MULTIPLE,
    MIN_INTEREST_RATE,
    MIN_OPCOS_FOR_SHARED_SERVICES,
    OFFER_VARIANCE_RANGE,
    PORTFOLIO_EVENTS,
    REFERRAL_MIN_ACTIVE_BUSINESSES,
    SECTOR_EVENTS,
    SECTORS,
    SELLER_NOTE_DISCOUNT_RANGE,
    SELLER_NOTE_RENEGO_MIN_ROUNDS,
    TALENT_EVENT_TYPES,
    UNSOLICITED_OFFER_MISS_RATE,
)
from helpers import (
    apply_ebitda_floor,
    cap_growth_rate,
    clamp_margin,
    format_money,
    pick,
    random_in_range,
    resolve_rng,
)
from models import Business, EventChoice, EventImpact, GameEvent, GameState
from portfolio import (
    calculate_shared_services_benefits,
    get_active_businesses,
    get_platform_recession_modifier,
)
from valuation import calculate_exit_valuation, get_last_event_type

logger = logging.getLogger(__name__)

SECTOR_EVENTS_BY_ID: Dict[str, Dict] = {e['id']: e for e in SECTOR_EVENTS}

BUYER_TYPE_LABELS: Dict[str, str] = {
    'individual': 'An independent sponsor',
    'family_office': 'A family office',
    'small_pe': 'A small private equity fund',
    'lower_middle_pe': 'A lower middle market PE firm',
    'institutional_pe': 'An institutional PE firm',
    'large_pe': 'A large-cap PE firm',
    'strategic': 'A strategic acquirer',
}


def select_by_cumulative_probability(roll: float, probabilities: Sequence[float]) -> Optional[int]:
    """
    Return the index of the first bucket containing roll, or None.

    Probabilities are summed in order and the running bound is clamped to
    1.0 before each comparison, so at most one index can ever match.
    Zero-probability entries still take part in the sum but never match.
    """
    cumulative = 0.0
    for index, probability in enumerate(probabilities):
        cumulative = min(1.0, cumulative + probability)
        if roll < cumulative:
            return index
    return None


# ---------------------------------------------------------------------------
# Event generation
# ---------------------------------------------------------------------------

def _roll_global_event(state: GameState, rng: random.Random) -> Optional[GameEvent]:
    index = select_by_cumulative_probability(rng.random(), [e['probability'] for e in GLOBAL_EVENTS])
    if index is None:
        return None
    definition = GLOBAL_EVENTS[index]
    effect = definition['effect']
    if definition['type'] == 'global_credit_tightening':
        rounds = DURATION_CONFIG[state.duration]['credit_tightening_rounds']
        effect = effect.format(rounds=rounds, plural='' if rounds == 1 else 's')
    return GameEvent(
        id=f"event_{state.round}_{definition['type']}",
        type=definition['type'],
        title=definition['title'],
        description=definition['description'],
        effect=effect,
        tip=definition.get('tip'),
    )


def _portfolio_event_candidates(state: GameState, active: List[Business]) -> Dict[str, List[Business]]:
    """Eligible target businesses for portfolio events that restrict their target."""
    return {
        'portfolio_equity_demand': [
            b for b in active
            if b.due_diligence.operator_quality == 'strong' and b.quality_rating >= EQUITY_DEMAND_MIN_QUALITY
        ],
        'portfolio_seller_note_renego': [
            b for b in active
            if b.seller_note_balance > 0 and b.seller_note_rounds_remaining >= SELLER_NOTE_RENEGO_MIN_ROUNDS
        ],
        'mbo_proposal': [
            b for b in active
            if b.quality_rating >= MBO_MIN_QUALITY and state.round - b.acquisition_round >= MBO_MIN_YEARS_HELD
        ],
    }


def get_portfolio_event_probabilities(state: GameState) -> List[float]:
    """
    Per-event probabilities for the portfolio lottery, in declaration order.

    Ineligible events get 0. Talent events are scaled by recruiting
    shared services.
    """
    active = get_active_businesses(state.businesses)
    candidates = _portfolio_event_candidates(state, active)
    benefits = calculate_shared_services_benefits(state)

    probabilities = []
    for definition in PORTFOLIO_EVENTS:
        event_type = definition['type']
        probability = definition['probability']
        if event_type == 'portfolio_referral_deal' and len(active) < REFERRAL_MIN_ACTIVE_BUSINESSES:
            probability = 0.0
        elif event_type in candidates and not candidates[event_type]:
            probability = 0.0
        elif event_type in TALENT_EVENT_TYPES:
            if event_type == 'portfolio_star_joins':
                probability *= 1 + benefits.talent_gain_bonus
            else:
                probability *= max(0.0, 1 - benefits.talent_retention_bonus)
        probabilities.append(probability)
    return probabilities


def _build_choice_event(state: GameState, event_type: str, business: Business,
                        base: Dict, rng: random.Random) -> Dict:
    """Add choices and terms to a choice-carrying portfolio event."""
    if event_type == 'portfolio_equity_demand':
        dilution = rng.randint(*EQUITY_DEMAND_DILUTION_RANGE)
        base['dilution_shares'] = dilution
        base['choices'] = [
            EventChoice(
                label=f'Grant {dilution} shares',
                description='Operator stays motivated: margin +1%, growth +2%',
                action='grant_equity_demand',
                variant='positive',
            ),
            EventChoice(
                label='Decline',
                description='60% chance of disruption: revenue -6%, margin -2%, growth -1.5%',
                action='decline_equity_demand',
                variant='negative',
            ),
        ]
    elif event_type == 'portfolio_seller_note_renego':
        discount = round(random_in_range(rng, *SELLER_NOTE_DISCOUNT_RANGE), 2)
        payoff = round(business.seller_note_balance * discount)
        base['discount_rate'] = discount
        base['offer_amount'] = payoff
        base['description'] += f' They will accept {format_money(payoff)} for a {format_money(business.seller_note_balance)} note.'
        base['choices'] = [
            EventChoice(
                label=f'Pay {format_money(payoff)}',
                description='Retire the seller note early at a discount',
                action='accept_seller_note_renego',
                variant='positive',
            ),
            EventChoice(
                label='Keep schedule',
                description='Continue paying the note as agreed',
                action='decline_seller_note_renego',
            ),
        ]
    elif event_type == 'mbo_proposal':
        valuation = calculate_exit_valuation(
            business, state.round, get_last_event_type(state),
            integrated_platforms=state.integrated_platforms,
        )
        offer = round(valuation.exit_price * random_in_range(rng, *MBO_DISCOUNT_RANGE))
        base['offer_amount'] = offer
        base['offer_multiple'] = offer / business.ebitda if business.ebitda > 0 else 0.0
        base['description'] += f' They offer {format_money(offer)}.'
        base['choices'] = [
            EventChoice(
                label=f'Accept {format_money(offer)}',
                description='Sell the business to its management team',
                action='accept_mbo',
                variant='positive',
            ),
            EventChoice(
                label='Decline',
                description='40% chance the team loses heart: quality -1, margin -1.5%',
                action='decline_mbo',
                variant='negative',
            ),
        ]
    return base


def _roll_portfolio_event(state: GameState, active: List[Business],
                          rng: random.Random) -> Optional[GameEvent]:
    probabilities = get_portfolio_event_probabilities(state)
    index = select_by_cumulative_probability(rng.random(), probabilities)
    if index is None:
        return None

    definition = PORTFOLIO_EVENTS[index]
    event_type = definition['type']
    candidates = _portfolio_event_candidates(state, active)

    business = None
    if event_type != 'portfolio_referral_deal':
        pool = candidates.get(event_type) or active
        business = pick(rng, pool)

    base = dict(
        id=f'event_{state.round}_{event_type}',
        type=event_type,
        title=definition['title'],
        description=definition['description'].format(name=business.name if business else ''),
        effect=definition['effect'],
        affected_business_id=business.id if business else None,
    )
    if business is not None:
        base = _build_choice_event(state, event_type, business, base, rng)
    return GameEvent(**base)


def _roll_sector_event(state: GameState, active: List[Business],
                       rng: random.Random) -> Optional[GameEvent]:
    owned_sectors = {b.sector_id for b in active}
    applicable = [e for e in SECTOR_EVENTS if e['sector_id'] in owned_sectors]
    if not applicable:
        return None

    index = select_by_cumulative_probability(rng.random(), [e['probability'] for e in applicable])
    if index is None:
        return None

    definition = applicable[index]
    sector_businesses = [b for b in active if b.sector_id == definition['sector_id']]
    if not sector_businesses:
        return None

    affected_id = None
    if not definition['affects_all']:
        affected_id = pick(rng, sector_businesses).id

    title_key = definition['title'].lower().replace(' ', '_')
    return GameEvent(
        id=f"event_{state.round}_{definition['sector_id']}_{title_key}",
        type='sector_event',
        title=definition['title'],
        description=definition['description'],
        effect=definition['effect'],
        affected_business_id=affected_id,
        sector_event_id=definition['id'],
    )


def _roll_unsolicited_offer(state: GameState, active: List[Business],
                            rng: random.Random) -> Optional[GameEvent]:
    offer_chance = 1 - UNSOLICITED_OFFER_MISS_RATE ** len(active)
    if rng.random() >= offer_chance:
        return None

    business = pick(rng, active)
    valuation = calculate_exit_valuation(
        business, state.round, get_last_event_type(state),
        integrated_platforms=state.integrated_platforms,
    )
    buyer = generate_buyer_profile(business, valuation.size_tier, business.sector_id, rng)

    multiple = valuation.total_multiple
    if buyer.is_strategic:
        multiple += buyer.strategic_premium
    multiple *= random_in_range(rng, *OFFER_VARIANCE_RANGE)
    multiple = max(MIN_EXIT_MULTIPLE, multiple)
    offer = max(0, round(business.ebitda * multiple))

    buyer_label = BUYER_TYPE_LABELS[buyer.type]
    return GameEvent(
        id=f'event_{state.round}_unsolicited_offer',
        type='unsolicited_offer',
        title='Unsolicited Offer',
        description=(
            f'{buyer_label} has approached you with an offer to acquire {business.name} '
            f'for {format_money(offer)} ({multiple:.1f}x EBITDA).'
        ),
        effect='Accept to sell immediately, or decline to keep the business',
        affected_business_id=business.id,
        offer_amount=offer,
        offer_multiple=multiple,
        buyer_profile=buyer,
        choices=[
            EventChoice(
                label=f'Accept {format_money(offer)}',
                description=f'Sell {business.name} to {buyer.name}',
                action='accept_offer',
                variant='positive',
            ),
            EventChoice(
                label='Decline',
                description='Keep the business',
                action='decline_offer',
            ),
        ],
    )


def quiet_event(round_number: int) -> GameEvent:
    return GameEvent(
        id=f'event_{round_number}_global_quiet',
        type='global_quiet',
        title='Quiet Year',
        description='Markets are stable. Business as usual.',
        effect='No special effects this year',
    )


def generate_event(state: GameState, rng: Optional[random.Random] = None) -> GameEvent:
    """
    Roll this round's event.

    Args:
        state: Current game state
        rng: Injectable random source

    Returns:
        GameEvent; a quiet year when no lottery fires
    """
    rng = resolve_rng(rng)
    active = get_active_businesses(state.businesses)

    event = _roll_global_event(state, rng)
    if event is None and active:
        event = _roll_portfolio_event(state, active, rng)
    if event is None and active:
        event = _roll_sector_event(state, active, rng)
    if event is None and active:
        event = _roll_unsolicited_offer(state, active, rng)
    if event is None:
        event = quiet_event(state.round)

    logger.debug(f'Round {state.round} event: {event.type}')
    return event


# ---------------------------------------------------------------------------
# Event effects
# ---------------------------------------------------------------------------

def rebuild_financials(business: Business, revenue: int, margin: float, **updates) -> Business:
    """Re-derive EBITDA from revenue and margin, enforce the floor and bump peaks."""
    ebitda = round(revenue * margin)
    ebitda, margin = apply_ebitda_floor(ebitda, revenue, margin, business.acquisition_ebitda)
    updates.update({
        'revenue': revenue,
        'ebitda_margin': margin,
        'ebitda': ebitda,
        'peak_revenue': max(business.peak_revenue, revenue),
        'peak_ebitda': max(business.peak_ebitda, ebitda),
    })
    return business.model_copy(update=updates)


def shock_revenue(business: Business, pct: float, growth_delta: float = 0.0) -> Business:
    updates = {}
    if growth_delta:
        updates['revenue_growth_rate'] = cap_growth_rate(business.revenue_growth_rate + growth_delta)
    return rebuild_financials(business, round(business.revenue * (1 + pct)), business.ebitda_margin, **updates)


def _impact(metric: str, before: float, after: float, business: Optional[Business] = None) -> EventImpact:
    return EventImpact(
        business_id=business.id if business else None,
        business_name=business.name if business else None,
        metric=metric,
        before=before,
        after=after,
        delta=after - before,
        delta_percent=(after - before) / before if before else None,
    )


def _with_businesses(state: GameState, updated: Dict[str, Business], **updates) -> GameState:
    updates['businesses'] = [updated.get(b.id, b) for b in state.businesses]
    return state.model_copy(update=updates)


def _shock_each(targets: List[Business], shocks: Dict[str, float],
                growth_delta: float = 0.0) -> Tuple[Dict[str, Business], List[EventImpact]]:
    updated = {}
    impacts = []
    for business in targets:
        new_business = shock_revenue(business, shocks[business.id], growth_delta)
        updated[business.id] = new_business
        impacts.append(_impact('ebitda', business.ebitda, new_business.ebitda, business))
    return updated, impacts


def _affected_business(state: GameState, event: GameEvent) -> Optional[Business]:
    if not event.affected_business_id:
        return None
    for business in state.businesses:
        if business.id == event.affected_business_id and business.status == 'active':
            return business
    return None


EventResult = Tuple[GameState, List[EventImpact]]


def _apply_no_effect(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    return state, []


def _apply_bull_market(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    active = get_active_businesses(state.businesses)
    boost = random_in_range(rng, 0.05, 0.15)
    updated, impacts = _shock_each(active, {b.id: boost for b in active})
    return _with_businesses(state, updated), impacts


def _apply_recession(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    active = get_active_businesses(state.businesses)
    shocks = {}
    for business in active:
        sector = SECTORS.get(business.sector_id, SECTORS[DEFAULT_SECTOR_ID])
        modifier = get_platform_recession_modifier(business, state.integrated_platforms)
        shocks[business.id] = -sector['recession_sensitivity'] * 0.15 * modifier
    updated, impacts = _shock_each(active, shocks)
    return _with_businesses(state, updated), impacts


def _apply_interest_hike(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    new_rate = min(MAX_INTEREST_RATE, state.interest_rate + random_in_range(rng, 0.01, 0.02))
    impacts = [_impact('interest_rate', state.interest_rate, new_rate)]
    return state.model_copy(update={'interest_rate': new_rate}), impacts


def _apply_interest_cut(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    new_rate = max(MIN_INTEREST_RATE, state.interest_rate - random_in_range(rng, 0.01, 0.02))
    impacts = [_impact('interest_rate', state.interest_rate, new_rate)]
    return state.model_copy(update={'interest_rate': new_rate}), impacts


def _apply_inflation(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    impacts = [_impact('inflation_rounds_remaining', state.inflation_rounds_remaining, INFLATION_DURATION_ROUNDS)]
    return state.model_copy(update={'inflation_rounds_remaining': INFLATION_DURATION_ROUNDS}), impacts


def _apply_credit_tightening(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    rounds = DURATION_CONFIG[state.duration]['credit_tightening_rounds']
    impacts = [_impact('credit_tightening_rounds_remaining', state.credit_tightening_rounds_remaining, rounds)]
    return state.model_copy(update={'credit_tightening_rounds_remaining': rounds}), impacts


def _apply_financial_crisis(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    new_rate = min(MAX_INTEREST_RATE, state.interest_rate + 0.02)
    impacts = [_impact('interest_rate', state.interest_rate, new_rate)]
    updated = {}
    for business in get_active_businesses(state.businesses):
        if business.bank_debt_balance > 0:
            new_bank_rate = business.bank_debt_rate + 0.015
            updated[business.id] = business.model_copy(update={'bank_debt_rate': new_bank_rate})
            impacts.append(_impact('bank_debt_rate', business.bank_debt_rate, new_bank_rate, business))
    impacts.append(_impact(
        'credit_tightening_rounds_remaining',
        state.credit_tightening_rounds_remaining,
        FINANCIAL_CRISIS_CREDIT_ROUNDS,
    ))
    return _with_businesses(
        state, updated,
        interest_rate=new_rate,
        credit_tightening_rounds_remaining=FINANCIAL_CRISIS_CREDIT_ROUNDS,
    ), impacts


def _single_business_shock(pct_fn: Callable[[Business, random.Random], float],
                           growth_delta: float = 0.0) -> Callable[[GameState, GameEvent, random.Random], EventResult]:
    """Handler that shocks the event's affected business by pct_fn(business, rng)."""
    def handler(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
        business = _affected_business(state, event)
        if business is None:
            return state, []
        updated, impacts = _shock_each([business], {business.id: pct_fn(business, rng)}, growth_delta)
        return _with_businesses(state, updated), impacts
    return handler


def _client_churn_pct(business: Business, rng: random.Random) -> float:
    sector = SECTORS.get(business.sector_id, SECTORS[DEFAULT_SECTOR_ID])
    multiplier = CLIENT_CONCENTRATION_CHURN_MULTIPLIER.get(sector['client_concentration'], 1.0)
    return -random_in_range(rng, 0.12, 0.18) * multiplier


def _apply_compliance(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    business = _affected_business(state, event)
    if business is None:
        return state, []
    updated, impacts = _shock_each([business], {business.id: -0.08})
    cost = min(COMPLIANCE_COST, state.cash)
    impacts.append(_impact('cash', state.cash, state.cash - cost))
    return _with_businesses(state, updated, cash=state.cash - cost), impacts


def _apply_sector_event(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    definition = SECTOR_EVENTS_BY_ID.get(event.sector_event_id or '')
    if definition is None:
        logger.warning(f'Unknown sector event {event.sector_event_id}')
        return state, []

    active = get_active_businesses(state.businesses)
    if definition['affects_all']:
        targets = [b for b in active if b.sector_id == definition['sector_id']]
    else:
        business = _affected_business(state, event)
        targets = [business] if business is not None else []
    if not targets:
        return state, []

    ebitda_effect = definition['ebitda_effect']
    if isinstance(ebitda_effect, (tuple, list)):
        ebitda_effect = random_in_range(rng, ebitda_effect[0], ebitda_effect[1])
    updated, impacts = _shock_each(
        targets, {b.id: ebitda_effect for b in targets}, definition.get('growth_effect', 0.0),
    )

    cash = state.cash
    if definition.get('cost_amount'):
        cost = min(definition['cost_amount'], cash)
        impacts.append(_impact('cash', cash, cash - cost))
        cash -= cost
    return _with_businesses(state, updated, cash=cash), impacts


EVENT_HANDLERS: Dict[str, Callable[[GameState, GameEvent, random.Random], EventResult]] = {
    'global_bull_market': _apply_bull_market,
    'global_recession': _apply_recession,
    'global_interest_hike': _apply_interest_hike,
    'global_interest_cut': _apply_interest_cut,
    'global_inflation': _apply_inflation,
    'global_credit_tightening': _apply_credit_tightening,
    'global_financial_crisis': _apply_financial_crisis,
    'global_quiet': _apply_no_effect,
    'portfolio_star_joins': _single_business_shock(lambda b, rng: 0.12, growth_delta=0.02),
    'portfolio_talent_leaves': _single_business_shock(lambda b, rng: -0.10, growth_delta=-0.015),
    'portfolio_client_signs': _single_business_shock(lambda b, rng: random_in_range(rng, 0.08, 0.12)),
    'portfolio_client_churns': _single_business_shock(_client_churn_pct),
    'portfolio_breakthrough': _single_business_shock(lambda b, rng: 0.06),
    'portfolio_compliance': _apply_compliance,
    'portfolio_referral_deal': _apply_no_effect,
    # Choice events resolve through resolve_event_choice
    'portfolio_equity_demand': _apply_no_effect,
    'portfolio_seller_note_renego': _apply_no_effect,
    'mbo_proposal': _apply_no_effect,
    'sector_event': _apply_sector_event,
    'unsolicited_offer': _apply_no_effect,
}


def apply_event_effects(state: GameState, event: GameEvent,
                        rng: Optional[random.Random] = None) -> GameState:
    """
    Apply an event to the state and record its impacts.

    Events with choices are recorded as the current event but their
    effects wait for resolve_event_choice.

    Args:
        state: Current game state
        event: Event from generate_event
        rng: Injectable random source for effect magnitudes

    Returns:
        New GameState with current_event set to the event and its impacts
    """
    if event.choices:
        return state.model_copy(update={
            'current_event': event,
            'event_history': state.event_history + [event],
        })

    rng = resolve_rng(rng)
    new_state, impacts = EVENT_HANDLERS[event.type](state, event, rng)
    recorded = event.model_copy(update={'impacts': impacts})
    return new_state.model_copy(update={
        'current_event': recorded,
        'event_history': state.event_history + [recorded],
    })


# ---------------------------------------------------------------------------
# Choice resolution
# ---------------------------------------------------------------------------

def sell_business(state: GameState, business_id: str, sale_price: int) -> EventResult:
    """
    Sell a business and its bolt-ons, paying off their debt from the proceeds.

    Returns:
        Tuple of (new state, impacts)
    """
    business = next((b for b in state.businesses if b.id == business_id and b.status == 'active'), None)
    if business is None:
        raise ValueError(f'No active business {business_id}')

    sold_ids = {business.id} | set(business.bolt_on_ids) | {
        b.id for b in state.businesses if b.parent_platform_id == business.id
    }
    sold = [b for b in state.businesses if b.id in sold_ids]
    debt_payoff = sum(b.seller_note_balance + b.bank_debt_balance + b.earnout_remaining for b in sold)
    net_proceeds = max(0, sale_price - debt_payoff)

    exited = [
        b.model_copy(update={
            'status': 'sold',
            'exit_price': sale_price if b.id == business.id else 0,
            'exit_round': state.round,
        })
        for b in sold
    ]
    remaining = [b for b in state.businesses if b.id not in sold_ids]

    shared_services = state.shared_services
    if len(get_active_businesses(remaining)) < MIN_OPCOS_FOR_SHARED_SERVICES:
        shared_services = [s.model_copy(update={'active': False}) for s in state.shared_services]

    impacts = [_impact('cash', state.cash, state.cash + net_proceeds)]
    logger.debug(f'Sold {business.id} for {sale_price}, net proceeds {net_proceeds}')
    return state.model_copy(update={
        'businesses': remaining,
        'exited_businesses': state.exited_businesses + exited,
        'cash': state.cash + net_proceeds,
        'total_exit_proceeds': state.total_exit_proceeds + net_proceeds,
        'active_turnarounds': [t for t in state.active_turnarounds if t.business_id not in sold_ids],
        'shared_services': shared_services,
    }), impacts


def _accept_sale(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    business = _affected_business(state, event)
    if business is None or event.offer_amount is None:
        return state, []
    return sell_business(state, business.id, event.offer_amount)


def _decline_mbo(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    business = _affected_business(state, event)
    if business is None:
        return state, []
    if rng.random() < DECLINE_MBO_QUALITY_LOSS_CHANCE:
        new_business = rebuild_financials(
            business,
            business.revenue,
            clamp_margin(business.ebitda_margin - 0.015),
            quality_rating=max(1, business.quality_rating - 1),
        )
        impacts = [
            _impact('quality_rating', business.quality_rating, new_business.quality_rating, business),
            _impact('ebitda', business.ebitda, new_business.ebitda, business),
        ]
    else:
        new_business = business.model_copy(update={
            'revenue_growth_rate': cap_growth_rate(business.revenue_growth_rate - 0.02),
        })
        impacts = [_impact('revenue_growth_rate', business.revenue_growth_rate,
                           new_business.revenue_growth_rate, business)]
    return _with_businesses(state, {business.id: new_business}), impacts


def _grant_equity_demand(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    business = _affected_business(state, event)
    if business is None:
        return state, []
    dilution = event.dilution_shares or 25
    new_business = rebuild_financials(
        business,
        business.revenue,
        clamp_margin(business.ebitda_margin + 0.01),
        revenue_growth_rate=cap_growth_rate(business.revenue_growth_rate + 0.02),
    )
    impacts = [
        _impact('shares_outstanding', state.shares_outstanding, state.shares_outstanding + dilution),
        _impact('ebitda', business.ebitda, new_business.ebitda, business),
    ]
    return _with_businesses(
        state, {business.id: new_business},
        shares_outstanding=state.shares_outstanding + dilution,
    ), impacts


def _decline_equity_demand(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    business = _affected_business(state, event)
    if business is None or rng.random() >= DECLINE_EQUITY_DEMAND_DISRUPTION_CHANCE:
        return state, []
    new_business = rebuild_financials(
        business,
        round(business.revenue * 0.94),
        clamp_margin(business.ebitda_margin - 0.02),
        revenue_growth_rate=cap_growth_rate(business.revenue_growth_rate - 0.015),
    )
    impacts = [_impact('ebitda', business.ebitda, new_business.ebitda, business)]
    return _with_businesses(state, {business.id: new_business}), impacts


def _accept_seller_note_renego(state: GameState, event: GameEvent, rng: random.Random) -> EventResult:
    business = _affected_business(state, event)
    if business is None:
        return state, []
    payoff = event.offer_amount
    if payoff is None:
        payoff = round(business.seller_note_balance * (event.discount_rate or 0.75))
    if payoff > state.cash:
        logger.info(f'Cannot afford seller note payoff of {payoff} for {business.id}')
        return state, []
    new_business = business.model_copy(update={
        'seller_note_balance': 0,
        'seller_note_rounds_remaining': 0,
    })
    impacts = [
        _impact('seller_note_balance', business.seller_note_balance, 0, business),
        _impact('cash', state.cash, state.cash - payoff),
    ]
    return _with_businesses(state, {business.id: new_business}, cash=state.cash - payoff), impacts


CHOICE_HANDLERS: Dict[str, Callable[[GameState, GameEvent, random.Random], EventResult]] = {
    'accept_offer': _accept_sale,
    'decline_offer': _apply_no_effect,
    'accept_mbo': _accept_sale,
    'decline_mbo': _decline_mbo,
    'grant_equity_demand': _grant_equity_demand,
    'decline_equity_demand': _decline_equity_demand,
    'accept_seller_note_renego': _accept_seller_note_renego,
    'decline_seller_note_renego': _apply_no_effect,
}


def resolve_event_choice(state: GameState, event: GameEvent, action: str,
                         rng: Optional[random.Random] = None) -> GameState:
    """
    Apply the player's choice for a choice-carrying event.

    Args:
        state: Current game state
        event: Event whose choices[] contains the action
        action: Action tag of the chosen EventChoice
        rng: Injectable random source for risky branches

    Returns:
        New GameState with the resolved event as current_event

    Raises:
        ValueError: If the action is not one of the event's choices
    """
    if action not in {c.action for c in event.choices}:
        raise ValueError(f'Action {action} is not a choice of event {event.id}')

    rng = resolve_rng(rng)
    new_state, impacts = CHOICE_HANDLERS[action](state, event, rng)
    resolved = event.model_copy(update={'impacts': impacts})
    history = new_state.event_history
    if history and history[-1].id == event.id:
        history = history[:-1] + [resolved]
    return new_state.model_copy(update={'current_event': resolved, 'event_history': history})
