"""
Portfolio tax and free cash flow.

Tax is assessed once across all active businesses:
- Losses at one opco offset profits at another
- Holdco and opco interest are deductible
- Shared services costs are deductible

Shield attribution walks the deductions in a fixed order
(losses, then interest, then shared services) so each shield is reported
against what was actually left to deduct.
"""

from typing import List

from config import SECTORS, DEFAULT_SECTOR_ID, TAX_RATE
from models import Business, PortfolioTaxBreakdown
from portfolio import get_active_businesses


def calculate_portfolio_tax(businesses: List[Business], holdco_debt: int, holdco_rate: float,
                            shared_services_cost: int) -> PortfolioTaxBreakdown:
    """
    Compute the portfolio tax bill and the shields that reduced it.

    Args:
        businesses: All businesses; only active ones are taxed
        holdco_debt: Holdco-level debt balance
        holdco_rate: Holdco interest rate
        shared_services_cost: Annual cost of active shared services

    Returns:
        PortfolioTaxBreakdown
    """
    active = get_active_businesses(businesses)

    gross_ebitda = sum(b.ebitda for b in active if b.ebitda >= 0)
    loss_offset = sum(abs(b.ebitda) for b in active if b.ebitda < 0)
    net_ebitda = gross_ebitda - loss_offset

    holdco_interest = round(holdco_debt * holdco_rate)
    opco_interest = sum(
        round(b.seller_note_balance * (b.seller_note_rate or 0.0))
        + round(b.bank_debt_balance * (b.bank_debt_rate or 0.0))
        for b in active
    )
    total_interest = holdco_interest + opco_interest

    taxable_income = max(0, net_ebitda - total_interest - shared_services_cost)
    tax_amount = round(taxable_income * TAX_RATE)
    naive_tax = round(max(0, gross_ebitda) * TAX_RATE)

    remaining = max(0, gross_ebitda)
    shields = []
    for bucket in (loss_offset, total_interest, shared_services_cost):
        deduction = min(remaining, max(0, bucket))
        shields.append(round(deduction * TAX_RATE))
        remaining -= deduction
    loss_offset_shield, interest_shield, shared_services_shield = shields

    return PortfolioTaxBreakdown(
        gross_ebitda=gross_ebitda,
        loss_offset=loss_offset,
        net_ebitda=net_ebitda,
        holdco_interest=holdco_interest,
        opco_interest=opco_interest,
        total_interest=total_interest,
        shared_services_cost=shared_services_cost,
        taxable_income=taxable_income,
        tax_amount=tax_amount,
        naive_tax=naive_tax,
        effective_tax_rate=tax_amount / gross_ebitda if gross_ebitda > 0 else 0.0,
        loss_offset_tax_shield=loss_offset_shield,
        interest_tax_shield=interest_shield,
        shared_services_tax_shield=shared_services_shield,
        total_tax_savings=naive_tax - tax_amount,
    )


def calculate_annual_fcf(business: Business, capex_reduction: float = 0.0,
                         cash_conversion_bonus: float = 0.0) -> int:
    """Pre-tax FCF of one business: EBITDA less capex, lifted by cash conversion."""
    sector = SECTORS.get(business.sector_id, SECTORS[DEFAULT_SECTOR_ID])
    capex = business.ebitda * sector['capex_rate'] * (1 - capex_reduction)
    return round((business.ebitda - capex) * (1 + cash_conversion_bonus))


def calculate_portfolio_fcf(businesses: List[Business], capex_reduction: float = 0.0,
                            cash_conversion_bonus: float = 0.0, holdco_debt: int = 0,
                            holdco_rate: float = 0.0, shared_services_cost: int = 0) -> int:
    """Sum of per-business FCF less the portfolio tax bill."""
    active = get_active_businesses(businesses)
    pre_tax = sum(calculate_annual_fcf(b, capex_reduction, cash_conversion_bonus) for b in active)
    tax = calculate_portfolio_tax(businesses, holdco_debt, holdco_rate, shared_services_cost)
    return pre_tax - tax.tax_amount
