"""
Data models for the holdco simulation engine.

This module contains the pydantic models shared by every engine:
- Business: A single owned operating company with its financials and debt
- GameState: The holdco snapshot handed to and returned by the engines
- GameEvent: An immutable record of one stochastic occurrence
- ActiveTurnaround / TurnaroundProgram: Turnaround bookkeeping
- ExitValuation, PortfolioTaxBreakdown, Metrics: Computed value objects

Engines never mutate these in place; updates go through model_copy(update=...).
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

BusinessStatus = Literal['active', 'sold', 'integrated', 'merged', 'wound_down']
TurnaroundStatus = Literal['active', 'completed', 'partial', 'failed']
BuyerPoolTier = Literal['individual', 'small_pe', 'lower_middle_pe', 'institutional_pe', 'large_pe']
BuyerType = Literal[
    'individual', 'family_office', 'small_pe', 'lower_middle_pe',
    'institutional_pe', 'large_pe', 'strategic',
]
DistressLevel = Literal['comfortable', 'elevated', 'stressed', 'breach']
EventType = Literal[
    'global_bull_market',
    'global_recession',
    'global_interest_hike',
    'global_interest_cut',
    'global_inflation',
    'global_credit_tightening',
    'global_financial_crisis',
    'global_quiet',
    'portfolio_star_joins',
    'portfolio_talent_leaves',
    'portfolio_client_signs',
    'portfolio_client_churns',
    'portfolio_breakthrough',
    'portfolio_compliance',
    'portfolio_referral_deal',
    'portfolio_equity_demand',
    'portfolio_seller_note_renego',
    'mbo_proposal',
    'sector_event',
    'unsolicited_offer',
]


class DueDiligenceSignals(BaseModel):
    """
    Categorical diligence findings fixed when a deal is created.

    Attributes:
        revenue_concentration: Customer concentration risk
        operator_quality: Strength of the incumbent operator
        trend: Trailing revenue trend
        customer_retention: Annual retention percentage (0-100)
        competitive_position: Market position of the business
    """
    model_config = ConfigDict(frozen=True)

    revenue_concentration: Literal['low', 'medium', 'high'] = 'medium'
    operator_quality: Literal['strong', 'moderate', 'weak'] = 'moderate'
    trend: Literal['growing', 'flat', 'declining'] = 'flat'
    customer_retention: int = Field(default=85, ge=0, le=100)
    competitive_position: Literal['leader', 'competitive', 'commoditized'] = 'competitive'


class OperationalImprovement(BaseModel):
    type: str
    applied_round: int
    effect: float = 0.0


class Business(BaseModel):
    """
    A single operating company owned by the holdco.

    Financial amounts are in thousands. ebitda is derived and always equals
    round(revenue * ebitda_margin), subject to the EBITDA floor.

    Attributes:
        id: Unique identifier
        name: Display name
        sector_id: Key into config.SECTORS
        sub_type: Sector subtype label
        revenue: Current annual revenue
        ebitda_margin: Current EBITDA margin
        ebitda: Current annual EBITDA
        acquisition_*: Baseline captured when the deal closed
        peak_revenue / peak_ebitda: Running maxima, never decrease
        revenue_growth_rate: Organic growth rate carried between rounds
        margin_drift_rate: Structural annual margin drift
        quality_rating: Ordinal quality 1-5
        due_diligence: Read-only diligence signals
        seller_note_* / bank_debt_* / earnout_*: Opco-level debt instruments
        is_platform / platform_scale / bolt_on_ids / parent_platform_id: Roll-up linkage
        integrated_platform_id: Forged platform this business belongs to
        improvements: Applied operational improvements in order
        quality_improved_tiers: Quality tiers gained through turnarounds
        status: Lifecycle status
    """

    id: str
    name: str = ''
    sector_id: str
    sub_type: str = ''

    revenue: int
    ebitda_margin: float
    ebitda: int

    acquisition_revenue: int = 0
    acquisition_margin: float = 0.0
    acquisition_ebitda: int = 0
    acquisition_price: int = 0
    acquisition_multiple: float = 4.0
    acquisition_round: int = 0
    acquisition_size_tier_premium: float = 0.0

    peak_revenue: int = 0
    peak_ebitda: int = 0

    revenue_growth_rate: float = 0.0
    margin_drift_rate: float = 0.0

    quality_rating: int = Field(default=3, ge=1, le=5)
    due_diligence: DueDiligenceSignals = Field(default_factory=DueDiligenceSignals)
    integration_rounds_remaining: int = 0
    improvements: List[OperationalImprovement] = Field(default_factory=list)

    seller_note_balance: int = 0
    seller_note_rate: float = 0.0
    seller_note_rounds_remaining: int = 0
    bank_debt_balance: int = 0
    bank_debt_rate: float = 0.0
    bank_debt_rounds_remaining: int = 0
    earnout_remaining: int = 0
    earnout_target: float = 0.0

    is_platform: bool = False
    platform_scale: int = 0
    bolt_on_ids: List[str] = Field(default_factory=list)
    parent_platform_id: Optional[str] = None
    integrated_platform_id: Optional[str] = None

    was_merged: bool = False
    merger_balance_ratio: Optional[float] = None
    quality_improved_tiers: int = 0

    status: BusinessStatus = 'active'
    exit_price: Optional[int] = None
    exit_round: Optional[int] = None


class PlatformBonuses(BaseModel):
    margin_boost: float = 0.0
    growth_boost: float = 0.0
    multiple_expansion: float = 0.0
    recession_resistance_reduction: float = 1.0


class IntegratedPlatform(BaseModel):
    """A forged cross-business platform and the bonuses it grants its members."""

    id: str
    recipe_id: str
    name: str
    sector_ids: List[str] = Field(default_factory=list)
    constituent_business_ids: List[str] = Field(default_factory=list)
    forged_in_round: int = 0
    bonuses: PlatformBonuses = Field(default_factory=PlatformBonuses)


class SharedService(BaseModel):
    type: str
    name: str
    unlock_cost: int
    annual_cost: int
    active: bool = False
    unlocked_round: Optional[int] = None


class TurnaroundProgram(BaseModel):
    """
    A static turnaround program definition.

    Attributes:
        tier_id: Turnaround tier required to run the program
        source_quality / target_quality: Quality rating the program moves between
        duration_standard / duration_quick: Length in rounds per game mode
        success_rate / partial_rate / failure_rate: Outcome probabilities
        ebitda_boost_on_success / ebitda_boost_on_partial: Margin uplift by outcome
        ebitda_damage_on_failure: Margin loss on failure
        upfront_cost_fraction: Upfront cost as a fraction of |EBITDA|
        annual_cost: Ongoing holdco cost while active
    """

    id: str
    name: str
    tier_id: int
    source_quality: int
    target_quality: int
    duration_standard: int
    duration_quick: int
    success_rate: float
    partial_rate: float
    failure_rate: float
    ebitda_boost_on_success: float
    ebitda_boost_on_partial: float
    ebitda_damage_on_failure: float
    upfront_cost_fraction: float
    annual_cost: int


class ActiveTurnaround(BaseModel):
    id: str
    business_id: str
    program_id: str
    start_round: int
    end_round: int
    status: TurnaroundStatus = 'active'


class TurnaroundOutcome(BaseModel):
    result: Literal['success', 'partial', 'failure']
    quality_change: int
    ebitda_multiplier: float
    target_quality: int
    success_rate: float
    partial_rate: float
    failure_rate: float


class EventImpact(BaseModel):
    business_id: Optional[str] = None
    business_name: Optional[str] = None
    metric: str
    before: float
    after: float
    delta: float
    delta_percent: Optional[float] = None


class EventChoice(BaseModel):
    label: str
    description: str
    action: str
    variant: Literal['positive', 'negative', 'neutral'] = 'neutral'


class BuyerProfile(BaseModel):
    name: str
    type: BuyerType
    fund_size: Optional[str] = None
    investment_thesis: str
    is_strategic: bool
    strategic_premium: float = 0.0


class GameEvent(BaseModel):
    """
    An immutable record of one resolved stochastic occurrence.

    Attributes:
        type: Event kind (see config.EVENT_TYPES)
        affected_business_id: Target business for portfolio, sector and offer events
        sector_event_id: Key into config.SECTOR_EVENTS for sector events
        impacts: Before/after records filled in when effects are applied
        choices: Player branch points; events with choices are never auto-applied
        offer_amount / offer_multiple / buyer_profile: Offer terms (offers and MBOs)
        dilution_shares: Shares requested by an equity demand
        discount_rate: Fraction of the seller note payable under a renegotiation
    """
    model_config = ConfigDict(frozen=True)

    id: str
    type: EventType
    title: str
    description: str
    effect: str = ''
    tip: Optional[str] = None
    affected_business_id: Optional[str] = None
    sector_event_id: Optional[str] = None
    impacts: List[EventImpact] = Field(default_factory=list)
    choices: List[EventChoice] = Field(default_factory=list)
    offer_amount: Optional[int] = None
    offer_multiple: Optional[float] = None
    buyer_profile: Optional[BuyerProfile] = None
    dilution_shares: Optional[int] = None
    discount_rate: Optional[float] = None


class HistoricalMetrics(BaseModel):
    round: int
    metrics: 'Metrics'
    fcf: int
    nopat: int
    invested_capital: int


class GameState(BaseModel):
    """
    Snapshot of the holdco handed to the engines.

    Attributes:
        round: Current round (1-based in play)
        max_rounds: Game length
        duration: 'standard' or 'quick'
        cash: Holdco cash
        total_debt: Holdco-level debt (opco debt lives on each Business)
        interest_rate: Holdco debt interest rate
        shares_outstanding / founder_shares: Share register
        total_*: Lifetime capital flow totals
        businesses / exited_businesses: Owned and exited companies
        integrated_platforms / shared_services: Portfolio-wide capabilities
        active_turnarounds / turnaround_tier: Turnaround bookkeeping
        inflation_rounds_remaining / credit_tightening_rounds_remaining: Macro countdowns
        current_event / event_history: Event log
        metrics_history: Per-round metric snapshots
        seed: Master seed for replayable RNG streams
    """

    holdco_name: str = 'Holdco'
    round: int = 1
    max_rounds: int = 20
    duration: Literal['standard', 'quick'] = 'standard'
    difficulty: Literal['easy', 'normal'] = 'easy'

    cash: int = 0
    total_debt: int = 0
    interest_rate: float = 0.07
    shares_outstanding: int = 1000
    founder_shares: int = 1000

    total_invested_capital: int = 0
    total_distributions: int = 0
    total_buybacks: int = 0
    total_exit_proceeds: int = 0

    businesses: List[Business] = Field(default_factory=list)
    exited_businesses: List[Business] = Field(default_factory=list)
    integrated_platforms: List[IntegratedPlatform] = Field(default_factory=list)
    shared_services: List[SharedService] = Field(default_factory=list)
    active_turnarounds: List[ActiveTurnaround] = Field(default_factory=list)
    turnaround_tier: int = 0

    inflation_rounds_remaining: int = 0
    credit_tightening_rounds_remaining: int = 0

    current_event: Optional[GameEvent] = None
    event_history: List[GameEvent] = Field(default_factory=list)
    metrics_history: List[HistoricalMetrics] = Field(default_factory=list)
    seed: Optional[int] = None


class SizeTierResult(BaseModel):
    tier: BuyerPoolTier
    premium: float


class ValuationCommentary(BaseModel):
    summary: str
    factors: List[str]
    buyer_pool_description: str


class PortfolioContext(BaseModel):
    total_platform_ebitda: Optional[int] = None


class ExitValuation(BaseModel):
    """
    Computed exit valuation for one business. Never stored on Business.

    Every premium component is reported individually alongside the
    aggregate multiple, price and net proceeds.
    """

    base_multiple: float
    ebitda_growth: float
    growth_premium: float
    quality_premium: float
    platform_premium: float
    hold_premium: float
    improvements_premium: float
    market_modifier: float
    size_tier_premium: float
    size_tier: BuyerPoolTier
    de_risking_premium: float
    rule_of_40_premium: float
    margin_expansion_premium: float
    merger_premium: float
    integrated_platform_premium: float
    turnaround_premium: float
    raw_total_premiums: float
    total_premiums: float
    premium_cap: float
    years_held: int
    seasoning_multiplier: float
    total_multiple: float
    exit_price: int
    debt_payoff: int
    net_proceeds: int
    commentary: ValuationCommentary


class PortfolioTaxBreakdown(BaseModel):
    gross_ebitda: int
    loss_offset: int
    net_ebitda: int
    holdco_interest: int
    opco_interest: int
    total_interest: int
    shared_services_cost: int
    taxable_income: int
    tax_amount: int
    naive_tax: int
    effective_tax_rate: float
    loss_offset_tax_shield: int
    interest_tax_shield: int
    shared_services_tax_shield: int
    total_tax_savings: int


class SharedServicesBenefits(BaseModel):
    capex_reduction: float = 0.0
    cash_conversion_bonus: float = 0.0
    growth_bonus: float = 0.0
    margin_defense: float = 0.0
    talent_retention_bonus: float = 0.0
    talent_gain_bonus: float = 0.0
    reinvestment_bonus: float = 0.0


class SectorFocusBonus(BaseModel):
    focus_group: str
    tier: int
    opco_count: int
    ebitda_bonus: float
    multiple_discount: float


class DistressRestrictions(BaseModel):
    can_acquire: bool = True
    can_take_debt: bool = True
    can_distribute: bool = True
    interest_penalty: float = 0.0


class Metrics(BaseModel):
    """
    Observable per-round portfolio metrics.

    Attributes:
        total_revenue / total_ebitda / avg_ebitda_margin: Active portfolio operating totals
        total_fcf: Portfolio FCF after tax
        net_fcf: FCF after interest, shared services and turnaround overhead
        portfolio_value: Sum of exit prices of active businesses
        intrinsic_value_per_share: Equity value per share
        roic / roiic / moic: Return metrics
        net_debt_to_ebitda: Leverage
        distress_level: Covenant status derived from leverage
        cash_conversion: total_fcf / total_ebitda
    """

    total_revenue: int
    total_ebitda: int
    avg_ebitda_margin: float
    total_fcf: int
    net_fcf: int
    total_debt: int
    tax_amount: int
    total_interest: int
    portfolio_value: int
    intrinsic_value_per_share: float
    fcf_per_share: float
    nopat: int
    roic: float
    roiic: float
    moic: float
    net_debt_to_ebitda: float
    distress_level: DistressLevel
    cash_conversion: float
    active_business_count: int


HistoricalMetrics.model_rebuild()


def business_by_id(businesses: List[Business]) -> Dict[str, Business]:
    return {b.id: b for b in businesses}
