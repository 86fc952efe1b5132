"""
Per-round portfolio metrics.

calculate_metrics folds the valuation and tax engines into the snapshot
the player sees each round: operating totals, cash flow, returns,
leverage and distress. record_historical_metrics captures the slice kept
in metrics_history for ROIIC and charts.
"""

import logging

from models import GameState, HistoricalMetrics, Metrics
from portfolio import (
    calculate_distress_level,
    calculate_shared_services_benefits,
    get_active_businesses,
    get_shared_services_annual_cost,
)
from tax import calculate_portfolio_fcf, calculate_portfolio_tax
from turnarounds import get_turnaround_program_annual_cost, get_turnaround_tier_annual_cost
from valuation import calculate_portfolio_value

logger = logging.getLogger(__name__)


def calculate_total_debt(state: GameState) -> int:
    active = get_active_businesses(state.businesses)
    opco_debt = sum(b.seller_note_balance + b.bank_debt_balance for b in active)
    return state.total_debt + opco_debt


def calculate_metrics(state: GameState) -> Metrics:
    """
    Compute the observable metrics for the current state.

    Args:
        state: Game state to measure

    Returns:
        Metrics snapshot
    """
    active = get_active_businesses(state.businesses)

    total_revenue = sum(b.revenue for b in active)
    total_ebitda = sum(b.ebitda for b in active)
    avg_ebitda_margin = total_ebitda / total_revenue if total_revenue > 0 else 0.0

    shared_services_cost = get_shared_services_annual_cost(state)
    benefits = calculate_shared_services_benefits(state)
    tax = calculate_portfolio_tax(state.businesses, state.total_debt, state.interest_rate, shared_services_cost)
    total_fcf = calculate_portfolio_fcf(
        state.businesses,
        benefits.capex_reduction,
        benefits.cash_conversion_bonus,
        state.total_debt,
        state.interest_rate,
        shared_services_cost,
    )
    turnaround_cost = (
        get_turnaround_tier_annual_cost(state.turnaround_tier)
        + get_turnaround_program_annual_cost(state)
    )
    net_fcf = total_fcf - tax.total_interest - shared_services_cost - turnaround_cost

    total_debt = calculate_total_debt(state)
    portfolio_value = calculate_portfolio_value(state)

    shares = state.shares_outstanding
    if shares > 0:
        intrinsic_value_per_share = (portfolio_value + state.cash - total_debt) / shares
        fcf_per_share = net_fcf / shares
    else:
        intrinsic_value_per_share = 0.0
        fcf_per_share = 0.0

    nopat = total_ebitda - tax.tax_amount
    invested = state.total_invested_capital
    roic = nopat / invested if invested > 0 else 0.0

    roiic = 0.0
    if state.metrics_history:
        previous = state.metrics_history[-1]
        delta_invested = invested - previous.invested_capital
        if delta_invested > 0:
            roiic = (nopat - previous.nopat) / delta_invested

    if invested > 0:
        moic = (
            state.total_distributions
            + state.total_exit_proceeds
            + portfolio_value
            + state.cash
        ) / invested
    else:
        moic = 1.0

    net_debt_to_ebitda = (total_debt - state.cash) / total_ebitda if total_ebitda > 0 else 0.0
    distress_level = calculate_distress_level(net_debt_to_ebitda, total_debt, total_ebitda)
    cash_conversion = total_fcf / total_ebitda if total_ebitda > 0 else 0.0

    return Metrics(
        total_revenue=total_revenue,
        total_ebitda=total_ebitda,
        avg_ebitda_margin=avg_ebitda_margin,
        total_fcf=total_fcf,
        net_fcf=net_fcf,
        total_debt=total_debt,
        tax_amount=tax.tax_amount,
        total_interest=tax.total_interest,
        portfolio_value=portfolio_value,
        intrinsic_value_per_share=intrinsic_value_per_share,
        fcf_per_share=fcf_per_share,
        nopat=nopat,
        roic=roic,
        roiic=roiic,
        moic=moic,
        net_debt_to_ebitda=net_debt_to_ebitda,
        distress_level=distress_level,
        cash_conversion=cash_conversion,
        active_business_count=len(active),
    )


def record_historical_metrics(state: GameState) -> HistoricalMetrics:
    metrics = calculate_metrics(state)
    return HistoricalMetrics(
        round=state.round,
        metrics=metrics,
        fcf=metrics.total_fcf,
        nopat=metrics.nopat,
        invested_capital=state.total_invested_capital,
    )
