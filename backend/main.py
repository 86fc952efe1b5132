"""
FastAPI application for the holdco simulation engine.

This module provides REST API endpoints for:
- Exit valuations, portfolio tax and round metrics
- Generating, applying and resolving events
- Turnaround eligibility and starts
- Game presets and the sector table
- Monte Carlo analysis of autoplayed games
"""

import logging
import random
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import uvicorn

from config import (
    DEFAULT_INTEREST_RATE,
    DEFAULT_NUM_SCENARIOS,
    DIFFICULTY_CONFIG,
    DURATION_CONFIG,
    MAX_ACTIVE_SHARED_SERVICES,
    SECTORS,
    SHARED_SERVICES_CONFIG,
)
from events import apply_event_effects, generate_event, resolve_event_choice
from metrics import calculate_metrics
from models import Business, GameEvent, GameState, IntegratedPlatform, PortfolioContext, business_by_id
from portfolio import get_distress_restrictions
from simulation import AutoplayPolicy, Experiment
from tax import calculate_portfolio_fcf, calculate_portfolio_tax
from turnarounds import calculate_turnaround_cost, get_eligible_programs, start_turnaround
from valuation import calculate_exit_valuation

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Holdco Simulation Engine API",
    description="API for valuing, taxing and simulating a holding company portfolio",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models for request/response validation
class ValuationRequest(BaseModel):
    """Request for an exit valuation."""
    business: Business
    current_round: int = Field(description="Round the valuation is taken in")
    last_event_type: Optional[str] = Field(default=None, description="Most recent event type")
    portfolio_context: Optional[PortfolioContext] = None
    integrated_platforms: List[IntegratedPlatform] = Field(default_factory=list)


class TaxRequest(BaseModel):
    """Request for portfolio tax and FCF."""
    businesses: List[Business]
    holdco_debt: int = 0
    holdco_rate: float = 0.0
    shared_services_cost: int = 0
    capex_reduction: float = 0.0
    cash_conversion_bonus: float = 0.0


class EventRequest(BaseModel):
    """Request carrying a state and an optional seed."""
    state: GameState
    seed: Optional[int] = Field(default=None, description="Seed for a reproducible roll")


class ApplyEventRequest(EventRequest):
    event: GameEvent


class ResolveChoiceRequest(ApplyEventRequest):
    action: str = Field(description="Action tag of the chosen event choice")


class TurnaroundRequest(BaseModel):
    state: GameState
    business_id: str


class StartTurnaroundRequest(TurnaroundRequest):
    program_id: str = Field(description="Program to start")


class SimulationRequest(BaseModel):
    """Request for a Monte Carlo run from a starting state."""
    label: str = Field(default="Autoplay", description="Column label for this run")
    state: GameState = Field(description="Starting game state")
    policy: AutoplayPolicy = Field(default_factory=AutoplayPolicy)
    num_scenarios: int = Field(default=DEFAULT_NUM_SCENARIOS, ge=1, le=5000)
    base_seed: int = Field(default=0, description="Seed of the first scenario")


def _rng(seed: Optional[int]) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Holdco Simulation Engine API",
        "version": "1.0.0",
        "description": "API for valuing, taxing and simulating a holding company portfolio"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/sectors")
async def get_sectors():
    """Static sector table."""
    return {"sectors": SECTORS}


@app.get("/api/presets")
async def get_presets():
    """Get game presets and the shared services catalog."""
    presets = [
        {
            "name": f"{difficulty.title()} / {duration.title()}",
            "difficulty": difficulty,
            "duration": duration,
            "config": {
                **difficulty_config,
                "max_rounds": duration_config["max_rounds"],
                "interest_rate": DEFAULT_INTEREST_RATE,
            },
        }
        for difficulty, difficulty_config in DIFFICULTY_CONFIG.items()
        for duration, duration_config in DURATION_CONFIG.items()
    ]
    return {
        "presets": presets,
        "shared_services": SHARED_SERVICES_CONFIG,
        "max_active_shared_services": MAX_ACTIVE_SHARED_SERVICES,
    }


@app.post("/api/valuation")
async def run_valuation(request: ValuationRequest) -> Dict[str, Any]:
    try:
        valuation = calculate_exit_valuation(
            request.business,
            request.current_round,
            request.last_event_type,
            request.portfolio_context,
            request.integrated_platforms,
        )
        return valuation.model_dump()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Valuation error: {str(e)}")


@app.post("/api/tax")
async def run_tax(request: TaxRequest) -> Dict[str, Any]:
    try:
        breakdown = calculate_portfolio_tax(
            request.businesses, request.holdco_debt, request.holdco_rate, request.shared_services_cost,
        )
        fcf = calculate_portfolio_fcf(
            request.businesses,
            request.capex_reduction,
            request.cash_conversion_bonus,
            request.holdco_debt,
            request.holdco_rate,
            request.shared_services_cost,
        )
        return {"tax": breakdown.model_dump(), "portfolio_fcf": fcf}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Tax error: {str(e)}")


@app.post("/api/metrics")
async def run_metrics(state: GameState) -> Dict[str, Any]:
    try:
        metrics = calculate_metrics(state)
        return {
            **metrics.model_dump(),
            "restrictions": get_distress_restrictions(metrics.distress_level).model_dump(),
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Metrics error: {str(e)}")


@app.post("/api/events/generate")
async def run_generate_event(request: EventRequest) -> Dict[str, Any]:
    try:
        return generate_event(request.state, _rng(request.seed)).model_dump()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Event error: {str(e)}")


@app.post("/api/events/apply")
async def run_apply_event(request: ApplyEventRequest) -> Dict[str, Any]:
    try:
        return apply_event_effects(request.state, request.event, _rng(request.seed)).model_dump()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Event error: {str(e)}")


@app.post("/api/events/resolve")
async def run_resolve_choice(request: ResolveChoiceRequest) -> Dict[str, Any]:
    try:
        new_state = resolve_event_choice(request.state, request.event, request.action, _rng(request.seed))
        return new_state.model_dump()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Event error: {str(e)}")


@app.post("/api/turnarounds/eligible")
async def run_eligible_turnarounds(request: TurnaroundRequest) -> Dict[str, Any]:
    business = business_by_id(request.state.businesses).get(request.business_id)
    if business is None:
        raise HTTPException(status_code=404, detail=f"Business {request.business_id} not found")
    programs = get_eligible_programs(business, request.state.turnaround_tier, request.state.active_turnarounds)
    return {
        "business_id": business.id,
        "programs": [
            {**p.model_dump(), "upfront_cost": calculate_turnaround_cost(p, business)}
            for p in programs
        ],
    }


@app.post("/api/turnarounds/start")
async def run_start_turnaround(request: StartTurnaroundRequest) -> Dict[str, Any]:
    """Start a turnaround program, paying its upfront cost from holdco cash."""
    if request.business_id not in business_by_id(request.state.businesses):
        raise HTTPException(status_code=404, detail=f"Business {request.business_id} not found")
    try:
        return start_turnaround(request.state, request.business_id, request.program_id).model_dump()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Turnaround error: {str(e)}")


@app.post("/api/simulate")
async def run_simulation(request: SimulationRequest) -> Dict[str, Any]:
    """
    Run a Monte Carlo simulation of autoplayed games.

    Args:
        request: Starting state, policy and scenario count

    Returns:
        MOIC statistics, event frequencies and the MOIC distribution
    """
    try:
        experiment = Experiment()
        result = experiment.run_montecarlo(
            request.state, request.policy, request.num_scenarios, request.base_seed,
        )
    except Exception as e:
        logger.exception("Simulation failed")
        raise HTTPException(status_code=500, detail=f"Simulation error: {str(e)}")

    if not result:
        raise HTTPException(status_code=400, detail="Simulation failed: starting state has no active businesses")

    return {
        "label": request.label,
        "policy": request.policy.model_dump(),
        "results": {
            "mean_moic": result["mean_moic"],
            "median_moic": result["p50_moic"],
            "p25_moic": result["p25_moic"],
            "p75_moic": result["p75_moic"],
            "p90_moic": result["p90_moic"],
            "std_moic": result["std_moic"],
            "num_simulations": result["num_scenarios"],
            "avg_final_ebitda": result["avg_final_ebitda"],
            "avg_portfolio_value": result["avg_portfolio_value"],
            "avg_exits": result["avg_exits"],
            "breach_rate": result["breach_rate"],
        },
        "event_counts": result["event_counts"],
        "table": experiment.format_results_for_output([dict(result, label=request.label)]),
        "moic_distribution": result["moic_outcomes"],
    }


@app.get("/api/tests/run")
async def run_tests():
    """Execute the engine test suite and return results."""
    try:
        from test_runner import run_all_tests
        results = run_all_tests()
        passed = sum(1 for r in results if r['passed'])
        return {
            "passed": passed,
            "total": len(results),
            "all_passed": passed == len(results),
            "tests": results,
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Test execution error: {str(e)}")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
