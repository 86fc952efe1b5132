"""
Configuration constants for the holdco simulation engine.

This module contains default values for:
- Engine constants (margin bounds, EBITDA floor, growth caps, tax rate)
- Sector definitions (capex, volatility, recession sensitivity, margin ranges)
- Operational improvement premiums
- Event tables (global, portfolio and sector events)
- Turnaround tiers, programs and sector quality ceilings
- Shared services catalogue
- Game difficulty and duration presets
- Monte Carlo defaults
"""

from typing import Any, Dict, List, Tuple

# Engine constants
EBITDA_FLOOR_PCT: float = 0.30
MIN_MARGIN: float = 0.03
MAX_MARGIN: float = 0.80
MIN_GROWTH_RATE: float = -0.10
MAX_ORGANIC_GROWTH_RATE: float = 0.20
TAX_RATE: float = 0.30

# Margin drift is held off for the first part of a game
MARGIN_DRIFT_START_FRACTION: float = 0.20
MIN_MARGIN_DRIFT_START_ROUND: int = 2

# Valuation bounds
MIN_EXIT_MULTIPLE: float = 2.0
MIN_PREMIUM_CAP: float = 10.0
PREMIUM_CAP_BASE_MULTIPLE: float = 1.5
SEASONING_YEARS: float = 2.0

# Interest rate bounds for macro events
MAX_INTEREST_RATE: float = 0.15
MIN_INTEREST_RATE: float = 0.03

# Unsolicited offers: chance per business of NOT receiving an offer
UNSOLICITED_OFFER_MISS_RATE: float = 0.95

# Growth model
INTEGRATION_PENALTY_BASE: float = 0.03
INTEGRATION_PENALTY_SPREAD: float = 0.05
INFLATION_GROWTH_DRAG: float = 0.03
COMPETITIVE_POSITION_GROWTH: Dict[str, float] = {
    'leader': 0.015,
    'competitive': 0.0,
    'commoditized': -0.015,
}
# Sectors that get an extra lift from an active marketing shared service
SHARED_SERVICES_SECTOR_BONUS_SECTORS: List[str] = ['agency', 'consumer']
SHARED_SERVICES_SECTOR_BONUS: float = 0.01
HIGH_MARGIN_HEADWIND: float = 0.005
# (min unique sectors, growth bonus), highest tier first
DIVERSIFICATION_BONUS_TIERS: List[Tuple[int, float]] = [(6, 0.06), (4, 0.04)]

# Sector definitions.
# margin_range and acquisition_multiple are (low, high) tuples.
SECTORS: Dict[str, Dict[str, Any]] = {
    'agency': {
        'name': 'Marketing Agency',
        'capex_rate': 0.03,
        'volatility': 0.08,
        'recession_sensitivity': 1.2,
        'margin_range': (0.10, 0.20),
        'margin_volatility': 0.010,
        'client_concentration': 'high',
        'sector_focus_group': 'marketing_services',
        'acquisition_multiple': (2.5, 5.0),
    },
    'saas': {
        'name': 'Software (SaaS)',
        'capex_rate': 0.10,
        'volatility': 0.06,
        'recession_sensitivity': 0.5,
        'margin_range': (0.20, 0.40),
        'margin_volatility': 0.008,
        'client_concentration': 'medium',
        'sector_focus_group': 'technology',
        'acquisition_multiple': (5.0, 10.0),
    },
    'home_services': {
        'name': 'Home Services',
        'capex_rate': 0.12,
        'volatility': 0.04,
        'recession_sensitivity': 0.3,
        'margin_range': (0.12, 0.22),
        'margin_volatility': 0.006,
        'client_concentration': 'low',
        'sector_focus_group': 'residential_services',
        'acquisition_multiple': (3.0, 6.0),
    },
    'consumer': {
        'name': 'Consumer Brands',
        'capex_rate': 0.13,
        'volatility': 0.06,
        'recession_sensitivity': 1.0,
        'margin_range': (0.10, 0.20),
        'margin_volatility': 0.008,
        'client_concentration': 'low',
        'sector_focus_group': 'consumer',
        'acquisition_multiple': (3.5, 7.0),
    },
    'industrial': {
        'name': 'Industrial Manufacturing',
        'capex_rate': 0.15,
        'volatility': 0.05,
        'recession_sensitivity': 0.7,
        'margin_range': (0.12, 0.22),
        'margin_volatility': 0.006,
        'client_concentration': 'medium',
        'sector_focus_group': 'industrial',
        'acquisition_multiple': (4.0, 7.0),
    },
    'b2b_services': {
        'name': 'B2B Services',
        'capex_rate': 0.06,
        'volatility': 0.05,
        'recession_sensitivity': 0.8,
        'margin_range': (0.15, 0.28),
        'margin_volatility': 0.007,
        'client_concentration': 'medium',
        'sector_focus_group': 'business_services',
        'acquisition_multiple': (4.0, 8.0),
    },
    'healthcare': {
        'name': 'Healthcare Services',
        'capex_rate': 0.10,
        'volatility': 0.03,
        'recession_sensitivity': 0.2,
        'margin_range': (0.12, 0.22),
        'margin_volatility': 0.005,
        'client_concentration': 'medium',
        'sector_focus_group': 'healthcare',
        'acquisition_multiple': (5.0, 9.0),
    },
    'restaurant': {
        'name': 'Restaurants',
        'capex_rate': 0.12,
        'volatility': 0.07,
        'recession_sensitivity': 0.8,
        'margin_range': (0.08, 0.15),
        'margin_volatility': 0.008,
        'client_concentration': 'low',
        'sector_focus_group': 'consumer',
        'acquisition_multiple': (2.5, 5.0),
    },
    'real_estate': {
        'name': 'Real Estate Services',
        'capex_rate': 0.18,
        'volatility': 0.04,
        'recession_sensitivity': 0.6,
        'margin_range': (0.30, 0.50),
        'margin_volatility': 0.006,
        'client_concentration': 'medium',
        'sector_focus_group': 'real_assets',
        'acquisition_multiple': (5.0, 9.0),
    },
    'education': {
        'name': 'Education & Training',
        'capex_rate': 0.07,
        'volatility': 0.04,
        'recession_sensitivity': -0.2,
        'margin_range': (0.15, 0.28),
        'margin_volatility': 0.006,
        'client_concentration': 'low',
        'sector_focus_group': 'technology',
        'acquisition_multiple': (4.0, 7.0),
    },
    'insurance': {
        'name': 'Insurance Brokerage',
        'capex_rate': 0.04,
        'volatility': 0.03,
        'recession_sensitivity': 0.35,
        'margin_range': (0.18, 0.32),
        'margin_volatility': 0.005,
        'client_concentration': 'low',
        'sector_focus_group': 'financial_services',
        'acquisition_multiple': (6.0, 10.0),
    },
    'auto_services': {
        'name': 'Auto Services',
        'capex_rate': 0.10,
        'volatility': 0.04,
        'recession_sensitivity': 0.25,
        'margin_range': (0.12, 0.22),
        'margin_volatility': 0.006,
        'client_concentration': 'low',
        'sector_focus_group': 'residential_services',
        'acquisition_multiple': (3.5, 6.0),
    },
    'distribution': {
        'name': 'Distribution',
        'capex_rate': 0.12,
        'volatility': 0.05,
        'recession_sensitivity': 0.65,
        'margin_range': (0.06, 0.12),
        'margin_volatility': 0.005,
        'client_concentration': 'medium',
        'sector_focus_group': 'industrial',
        'acquisition_multiple': (4.0, 7.0),
    },
    'wealth_management': {
        'name': 'Wealth Management',
        'capex_rate': 0.03,
        'volatility': 0.05,
        'recession_sensitivity': 0.4,
        'margin_range': (0.25, 0.40),
        'margin_volatility': 0.006,
        'client_concentration': 'low',
        'sector_focus_group': 'financial_services',
        'acquisition_multiple': (8.0, 14.0),
    },
    'environmental': {
        'name': 'Environmental Services',
        'capex_rate': 0.16,
        'volatility': 0.03,
        'recession_sensitivity': 0.3,
        'margin_range': (0.18, 0.30),
        'margin_volatility': 0.005,
        'client_concentration': 'medium',
        'sector_focus_group': 'real_assets',
        'acquisition_multiple': (6.0, 10.0),
    },
}

DEFAULT_SECTOR_ID: str = 'b2b_services'

# Sectors scored on the rule of 40 at exit
RULE_OF_40_SECTORS: List[str] = ['saas', 'education']

# Exit premium per applied operational improvement
IMPROVEMENT_PREMIUMS: Dict[str, float] = {
    'operating_playbook': 0.15,
    'pricing_model': 0.15,
    'service_expansion': 0.15,
    'fix_underperformance': 0.15,
    'recurring_revenue_conversion': 0.50,
    'management_professionalization': 0.30,
    'digital_transformation': 0.15,
}
DEFAULT_IMPROVEMENT_PREMIUM: float = 0.15

# Multiplier on churn severity by client concentration
CLIENT_CONCENTRATION_CHURN_MULTIPLIER: Dict[str, float] = {
    'high': 1.3,
    'medium': 1.0,
    'low': 0.7,
}

# Event type registry (tagged union of every event the engine can emit)
EVENT_TYPES: List[str] = [
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

# Global events, rolled in declaration order against a cumulative table
GLOBAL_EVENTS: List[Dict[str, Any]] = [
    {
        'type': 'global_bull_market',
        'title': 'Bull Market',
        'description': 'Strong economic tailwinds lift demand across the portfolio.',
        'effect': 'Revenue +5% to +15% across the portfolio, exit multiples +0.5x',
        'tip': 'A good year to consider selling businesses at a premium.',
        'probability': 0.10,
    },
    {
        'type': 'global_recession',
        'title': 'Recession',
        'description': 'An economic downturn hits customer spending.',
        'effect': 'Revenue falls by sector sensitivity, exit multiples -0.5x',
        'tip': 'Recession-resistant sectors and integrated platforms hold up better.',
        'probability': 0.08,
    },
    {
        'type': 'global_interest_hike',
        'title': 'Interest Rate Hike',
        'description': 'The central bank raises rates to cool the economy.',
        'effect': 'Holdco interest rate +1% to +2%',
        'tip': 'Paying down variable-rate debt reduces exposure.',
        'probability': 0.08,
    },
    {
        'type': 'global_interest_cut',
        'title': 'Interest Rate Cut',
        'description': 'The central bank cuts rates to stimulate growth.',
        'effect': 'Holdco interest rate -1% to -2%',
        'tip': 'Cheaper debt makes leveraged acquisitions more attractive.',
        'probability': 0.08,
    },
    {
        'type': 'global_inflation',
        'title': 'Inflation Spike',
        'description': 'Rising input costs squeeze operators everywhere.',
        'effect': 'Organic growth -3% for 2 rounds',
        'tip': 'Pricing power matters more than ever.',
        'probability': 0.06,
    },
    {
        'type': 'global_credit_tightening',
        'title': 'Credit Tightening',
        'description': 'Lenders pull back and bank financing dries up.',
        'effect': 'Bank debt unavailable for {rounds} round{plural}',
        'tip': 'Keep a cash buffer for deals that must close without bank debt.',
        'probability': 0.05,
    },
    {
        'type': 'global_financial_crisis',
        'title': 'Financial Crisis',
        'description': 'A systemic shock freezes credit markets and crushes valuations.',
        'effect': 'Interest rate +2%, bank debt rates +1.5%, credit frozen for 2 rounds, exit multiples -1.0x',
        'tip': 'Distressed sellers appear in a crisis. Cash is king.',
        'probability': 0.02,
    },
]

# Portfolio events, rolled in declaration order; probabilities of ineligible
# events are zeroed before the roll.
PORTFOLIO_EVENTS: List[Dict[str, Any]] = [
    {
        'type': 'portfolio_star_joins',
        'title': 'Star Hire',
        'description': 'A top performer joins {name} from a competitor.',
        'effect': 'EBITDA +12%, growth +2%',
        'probability': 0.06,
    },
    {
        'type': 'portfolio_talent_leaves',
        'title': 'Key Talent Departs',
        'description': 'A senior leader at {name} leaves for a rival.',
        'effect': 'EBITDA -10%, growth -1.5%',
        'probability': 0.06,
    },
    {
        'type': 'portfolio_client_signs',
        'title': 'Major Client Win',
        'description': '{name} signs a significant new customer contract.',
        'effect': 'EBITDA +8% to +12%',
        'probability': 0.07,
    },
    {
        'type': 'portfolio_client_churns',
        'title': 'Major Client Loss',
        'description': 'A large customer of {name} takes its business elsewhere.',
        'effect': 'EBITDA -12% to -18%, worse with high client concentration',
        'probability': 0.06,
    },
    {
        'type': 'portfolio_breakthrough',
        'title': 'Operational Breakthrough',
        'description': '{name} finds a step change in how it delivers.',
        'effect': 'EBITDA +6%',
        'probability': 0.04,
    },
    {
        'type': 'portfolio_compliance',
        'title': 'Compliance Issue',
        'description': 'Regulators flag a compliance gap at {name}.',
        'effect': 'EBITDA -8% and up to $500k remediation cost',
        'probability': 0.04,
    },
    {
        'type': 'portfolio_referral_deal',
        'title': 'Referral Deal',
        'description': 'Your operators refer a proprietary acquisition opportunity.',
        'effect': 'An off-market deal appears in the pipeline',
        'probability': 0.04,
    },
    {
        'type': 'portfolio_equity_demand',
        'title': 'Equity Demand',
        'description': 'The operator of {name} wants an equity stake to stay.',
        'effect': 'Grant equity to keep them engaged, or decline and risk disruption',
        'probability': 0.04,
    },
    {
        'type': 'portfolio_seller_note_renego',
        'title': 'Seller Note Renegotiation',
        'description': 'The former owner of {name} offers to settle the seller note early at a discount.',
        'effect': 'Pay off the note at a discount, or keep the original schedule',
        'probability': 0.03,
    },
    {
        'type': 'mbo_proposal',
        'title': 'Management Buyout Proposal',
        'description': 'The management team of {name} proposes to buy the business.',
        'effect': 'Sell to management at a modest discount, or decline and risk morale',
        'probability': 0.03,
    },
]

# Talent events scaled by recruiting shared-service benefits
TALENT_EVENT_TYPES: List[str] = ['portfolio_star_joins', 'portfolio_talent_leaves']

# Eligibility thresholds
REFERRAL_MIN_ACTIVE_BUSINESSES: int = 4
EQUITY_DEMAND_MIN_QUALITY: int = 4
MBO_MIN_QUALITY: int = 4
MBO_MIN_YEARS_HELD: int = 3
SELLER_NOTE_RENEGO_MIN_ROUNDS: int = 2

# Choice event parameters
EQUITY_DEMAND_DILUTION_RANGE: tuple = (20, 30)
SELLER_NOTE_DISCOUNT_RANGE: tuple = (0.70, 0.80)
MBO_DISCOUNT_RANGE: tuple = (0.85, 0.90)
OFFER_VARIANCE_RANGE: tuple = (0.9, 1.2)
COMPLIANCE_COST: int = 500
DECLINE_MBO_QUALITY_LOSS_CHANCE: float = 0.40
DECLINE_EQUITY_DEMAND_DISRUPTION_CHANCE: float = 0.60

# Sector events.
# ebitda_effect is either a fixed fraction or a (low, high) range.
SECTOR_EVENTS: List[Dict[str, Any]] = [
    {
        'id': 'agency_ai_disruption',
        'sector_id': 'agency',
        'title': 'AI Creative Tools',
        'description': 'Generative tools compress agency pricing.',
        'effect': 'EBITDA -5% to -12%, growth -1%',
        'probability': 0.06,
        'ebitda_effect': (-0.12, -0.05),
        'growth_effect': -0.01,
        'affects_all': True,
    },
    {
        'id': 'saas_platform_shift',
        'sector_id': 'saas',
        'title': 'Platform Shift',
        'description': 'A major platform shift opens an upsell cycle.',
        'effect': 'EBITDA +5% to +10%',
        'probability': 0.05,
        'ebitda_effect': (0.05, 0.10),
        'affects_all': True,
    },
    {
        'id': 'saas_security_breach',
        'sector_id': 'saas',
        'title': 'Security Breach',
        'description': 'A data breach forces an expensive response.',
        'effect': 'EBITDA -8%, $300k response cost',
        'probability': 0.04,
        'ebitda_effect': -0.08,
        'cost_amount': 300,
        'affects_all': False,
    },
    {
        'id': 'home_services_storm_season',
        'sector_id': 'home_services',
        'title': 'Storm Season',
        'description': 'Severe weather drives a surge of repair work.',
        'effect': 'EBITDA +6% to +12%',
        'probability': 0.06,
        'ebitda_effect': (0.06, 0.12),
        'affects_all': True,
    },
    {
        'id': 'consumer_retail_consolidation',
        'sector_id': 'consumer',
        'title': 'Retailer Consolidation',
        'description': 'Big-box retailers squeeze supplier terms.',
        'effect': 'EBITDA -6%',
        'probability': 0.05,
        'ebitda_effect': -0.06,
        'affects_all': True,
    },
    {
        'id': 'industrial_reshoring',
        'sector_id': 'industrial',
        'title': 'Reshoring Wave',
        'description': 'Manufacturers bring production home.',
        'effect': 'EBITDA +8%, growth +1%',
        'probability': 0.05,
        'ebitda_effect': 0.08,
        'growth_effect': 0.01,
        'affects_all': True,
    },
    {
        'id': 'healthcare_reimbursement_cut',
        'sector_id': 'healthcare',
        'title': 'Reimbursement Cut',
        'description': 'Payers cut reimbursement rates.',
        'effect': 'EBITDA -4% to -8%',
        'probability': 0.05,
        'ebitda_effect': (-0.08, -0.04),
        'affects_all': True,
    },
    {
        'id': 'restaurant_food_costs',
        'sector_id': 'restaurant',
        'title': 'Food Cost Spike',
        'description': 'Commodity prices jump and menus lag behind.',
        'effect': 'EBITDA -10%',
        'probability': 0.06,
        'ebitda_effect': -0.10,
        'affects_all': True,
    },
    {
        'id': 'real_estate_rate_sensitivity',
        'sector_id': 'real_estate',
        'title': 'Transaction Slowdown',
        'description': 'Property transactions stall across the market.',
        'effect': 'EBITDA -5% to -10%',
        'probability': 0.05,
        'ebitda_effect': (-0.10, -0.05),
        'affects_all': True,
    },
    {
        'id': 'education_enrollment_boom',
        'sector_id': 'education',
        'title': 'Enrollment Boom',
        'description': 'Demand for reskilling programs surges.',
        'effect': 'EBITDA +7%, growth +1%',
        'probability': 0.05,
        'ebitda_effect': 0.07,
        'growth_effect': 0.01,
        'affects_all': True,
    },
    {
        'id': 'insurance_hard_market',
        'sector_id': 'insurance',
        'title': 'Hard Market',
        'description': 'Premiums rise and commissions follow.',
        'effect': 'EBITDA +5% to +9%',
        'probability': 0.05,
        'ebitda_effect': (0.05, 0.09),
        'affects_all': True,
    },
    {
        'id': 'auto_services_ev_transition',
        'sector_id': 'auto_services',
        'title': 'EV Transition',
        'description': 'Electric vehicles need less routine maintenance.',
        'effect': 'EBITDA -4%, growth -1%',
        'probability': 0.04,
        'ebitda_effect': -0.04,
        'growth_effect': -0.01,
        'affects_all': True,
    },
    {
        'id': 'distribution_supply_shock',
        'sector_id': 'distribution',
        'title': 'Supply Chain Shock',
        'description': 'Port delays disrupt inventory flow.',
        'effect': 'EBITDA -6% to -10%',
        'probability': 0.05,
        'ebitda_effect': (-0.10, -0.06),
        'affects_all': True,
    },
    {
        'id': 'wealth_management_market_rally',
        'sector_id': 'wealth_management',
        'title': 'Market Rally',
        'description': 'Asset values rise and fee income follows.',
        'effect': 'EBITDA +6% to +10%',
        'probability': 0.05,
        'ebitda_effect': (0.06, 0.10),
        'affects_all': True,
    },
    {
        'id': 'environmental_new_regulation',
        'sector_id': 'environmental',
        'title': 'New Environmental Rules',
        'description': 'Tighter disposal rules require equipment upgrades.',
        'effect': 'EBITDA +5%, $250k upgrade cost',
        'probability': 0.04,
        'ebitda_effect': 0.05,
        'cost_amount': 250,
        'affects_all': False,
    },
    {
        'id': 'b2b_services_outsourcing_wave',
        'sector_id': 'b2b_services',
        'title': 'Outsourcing Wave',
        'description': 'Corporates outsource more back-office work.',
        'effect': 'EBITDA +4% to +8%',
        'probability': 0.05,
        'ebitda_effect': (0.04, 0.08),
        'affects_all': True,
    },
]

# Turnaround engine
FATIGUE_THRESHOLD: int = 4
FATIGUE_PENALTY: float = 0.10
TURNAROUND_EXIT_PREMIUM: float = 0.25
TURNAROUND_EXIT_PREMIUM_MIN_TIERS: int = 2
BASE_QUALITY_IMPROVEMENT_CHANCE: float = 0.30
QUALITY_IMPROVEMENT_TIER_BONUS: Dict[int, float] = {1: 0.15, 2: 0.20, 3: 0.25}

TURNAROUND_TIER_CONFIG: Dict[int, Dict[str, Any]] = {
    1: {'name': 'Portfolio Operations', 'unlock_cost': 600, 'annual_cost': 250, 'required_opcos': 2},
    2: {'name': 'Transformation Office', 'unlock_cost': 1000, 'annual_cost': 450, 'required_opcos': 3},
    3: {'name': 'Interim Management', 'unlock_cost': 1400, 'annual_cost': 700, 'required_opcos': 4},
}

TURNAROUND_PROGRAMS: List[Dict[str, Any]] = [
    {
        'id': 't1_plan_a', 'name': 'Operational Cleanup', 'tier_id': 1,
        'source_quality': 1, 'target_quality': 2,
        'duration_standard': 4, 'duration_quick': 2,
        'success_rate': 0.65, 'partial_rate': 0.30, 'failure_rate': 0.05,
        'ebitda_boost_on_success': 0.07, 'ebitda_boost_on_partial': 0.03,
        'ebitda_damage_on_failure': 0.04,
        'upfront_cost_fraction': 0.10, 'annual_cost': 50,
    },
    {
        'id': 't1_plan_b', 'name': 'Performance Reset', 'tier_id': 1,
        'source_quality': 2, 'target_quality': 3,
        'duration_standard': 4, 'duration_quick': 2,
        'success_rate': 0.60, 'partial_rate': 0.35, 'failure_rate': 0.05,
        'ebitda_boost_on_success': 0.05, 'ebitda_boost_on_partial': 0.02,
        'ebitda_damage_on_failure': 0.03,
        'upfront_cost_fraction': 0.12, 'annual_cost': 75,
    },
    {
        'id': 't2_plan_a', 'name': 'Business Model Rebuild', 'tier_id': 2,
        'source_quality': 1, 'target_quality': 3,
        'duration_standard': 5, 'duration_quick': 3,
        'success_rate': 0.68, 'partial_rate': 0.27, 'failure_rate': 0.05,
        'ebitda_boost_on_success': 0.11, 'ebitda_boost_on_partial': 0.05,
        'ebitda_damage_on_failure': 0.05,
        'upfront_cost_fraction': 0.14, 'annual_cost': 100,
    },
    {
        'id': 't2_plan_b', 'name': 'Commercial Transformation', 'tier_id': 2,
        'source_quality': 2, 'target_quality': 4,
        'duration_standard': 5, 'duration_quick': 3,
        'success_rate': 0.65, 'partial_rate': 0.30, 'failure_rate': 0.05,
        'ebitda_boost_on_success': 0.09, 'ebitda_boost_on_partial': 0.04,
        'ebitda_damage_on_failure': 0.04,
        'upfront_cost_fraction': 0.16, 'annual_cost': 125,
    },
    {
        'id': 't3_plan_a', 'name': 'Full Restructuring', 'tier_id': 3,
        'source_quality': 1, 'target_quality': 4,
        'duration_standard': 6, 'duration_quick': 3,
        'success_rate': 0.73, 'partial_rate': 0.22, 'failure_rate': 0.05,
        'ebitda_boost_on_success': 0.15, 'ebitda_boost_on_partial': 0.07,
        'ebitda_damage_on_failure': 0.06,
        'upfront_cost_fraction': 0.18, 'annual_cost': 150,
    },
    {
        'id': 't3_plan_b', 'name': 'Enterprise Transformation', 'tier_id': 3,
        'source_quality': 2, 'target_quality': 5,
        'duration_standard': 6, 'duration_quick': 3,
        'success_rate': 0.70, 'partial_rate': 0.25, 'failure_rate': 0.05,
        'ebitda_boost_on_success': 0.13, 'ebitda_boost_on_partial': 0.06,
        'ebitda_damage_on_failure': 0.06,
        'upfront_cost_fraction': 0.20, 'annual_cost': 200,
    },
    {
        'id': 't3_quick', 'name': 'Interim CEO Sprint', 'tier_id': 3,
        'source_quality': 1, 'target_quality': 4,
        'duration_standard': 3, 'duration_quick': 2,
        'success_rate': 0.63, 'partial_rate': 0.32, 'failure_rate': 0.05,
        'ebitda_boost_on_success': 0.15, 'ebitda_boost_on_partial': 0.07,
        'ebitda_damage_on_failure': 0.06,
        'upfront_cost_fraction': 0.27, 'annual_cost': 150,
    },
]

SECTOR_QUALITY_CEILINGS: Dict[str, int] = {
    'saas': 4,
    'agency': 3,
    'restaurant': 3,
    'industrial': 4,
}
DEFAULT_QUALITY_CEILING: int = 5

# Shared services
MIN_OPCOS_FOR_SHARED_SERVICES: int = 3
MAX_ACTIVE_SHARED_SERVICES: int = 3

SHARED_SERVICES_CONFIG: Dict[str, Dict[str, Any]] = {
    'finance_reporting': {'name': 'Finance & Reporting', 'unlock_cost': 660, 'annual_cost': 295},
    'recruiting_hr': {'name': 'Recruiting & HR', 'unlock_cost': 885, 'annual_cost': 378},
    'procurement': {'name': 'Procurement', 'unlock_cost': 710, 'annual_cost': 224},
    'marketing_brand': {'name': 'Marketing & Brand', 'unlock_cost': 800, 'annual_cost': 295},
    'technology_systems': {'name': 'Technology & Systems', 'unlock_cost': 1060, 'annual_cost': 450},
}

# Sector focus bonus by tier
SECTOR_FOCUS_EBITDA_BONUS: Dict[int, float] = {1: 0.02, 2: 0.04, 3: 0.07}
SECTOR_FOCUS_MULTIPLE_DISCOUNT: Dict[int, float] = {1: 0.0, 2: 0.3, 3: 0.5}

# Distress thresholds on net debt / EBITDA
DISTRESS_THRESHOLDS: Dict[str, float] = {
    'elevated': 2.5,
    'stressed': 3.5,
    'breach': 4.5,
}

# Game presets
DIFFICULTY_CONFIG: Dict[str, Dict[str, Any]] = {
    'easy': {
        'initial_cash': 20000,
        'initial_debt': 0,
        'founder_shares': 800,
        'shares_outstanding': 1000,
    },
    'normal': {
        'initial_cash': 5000,
        'initial_debt': 3000,
        'founder_shares': 1000,
        'shares_outstanding': 1000,
    },
}

DURATION_CONFIG: Dict[str, Dict[str, Any]] = {
    'standard': {'max_rounds': 20, 'credit_tightening_rounds': 2},
    'quick': {'max_rounds': 10, 'credit_tightening_rounds': 1},
}

DEFAULT_INTEREST_RATE: float = 0.07
INFLATION_DURATION_ROUNDS: int = 2
FINANCIAL_CRISIS_CREDIT_ROUNDS: int = 2

# Monte Carlo defaults
DEFAULT_NUM_SCENARIOS: int = 200
DEFAULT_MIN_OFFER_MULTIPLE: float = 6.0
