"""
FastAPI router for the ARIX hub.

Tables for the PLAN, HOLD and SELL logs with display-ready values, the
statistics derived from each log and lookups by symbol.
"""

from fastapi import APIRouter, Depends, Query

from iqx.application.queries.arix import ArixQueries
from iqx.domain.arix import calculators
from iqx.domain.arix.entities import (
    ArixHoldPosition,
    ArixPlanPosition,
    ArixSellTrade,
    HoldStatistics,
    PlanPositionReturns,
    PlanStatistics,
    RiskRewardRow,
    SellStatistics,
)
from iqx.interfaces.dependencies import get_arix_queries
from iqx.interfaces.schemas import ErrorResponse, HoldTable, PlanTable, SellTable
from iqx.interfaces import views

router = APIRouter(prefix="/arix", tags=["arix"])

UPSTREAM_ERRORS = {502: {"model": ErrorResponse}}


# ── PLAN ──────────────────────────────────────────────────────────


@router.get("/plan", response_model=PlanTable, responses=UPSTREAM_ERRORS, summary="PLAN table")
def plan_table(queries: ArixQueries = Depends(get_arix_queries)) -> PlanTable:
    return views.plan_table(queries.plan())


@router.get("/plan/statistics", response_model=PlanStatistics, summary="PLAN statistics")
def plan_statistics(queries: ArixQueries = Depends(get_arix_queries)) -> PlanStatistics:
    return queries.plan_statistics()


@router.get(
    "/plan/by-return",
    response_model=list[PlanPositionReturns],
    summary="PLAN positions by potential return",
)
def plan_by_return(queries: ArixQueries = Depends(get_arix_queries)) -> list[PlanPositionReturns]:
    return calculators.positions_by_potential_return(queries.plan().positions)


@router.get(
    "/plan/risk-reward",
    response_model=list[RiskRewardRow],
    summary="PLAN risk/reward analysis",
)
def plan_risk_reward(queries: ArixQueries = Depends(get_arix_queries)) -> list[RiskRewardRow]:
    return calculators.risk_reward_analysis(queries.plan().positions)


@router.get(
    "/plan/{symbol}",
    response_model=list[ArixPlanPosition],
    summary="PLAN positions for a symbol",
)
def plan_for_symbol(
    symbol: str, queries: ArixQueries = Depends(get_arix_queries)
) -> list[ArixPlanPosition]:
    return queries.plan_for_symbol(symbol)


# ── HOLD ──────────────────────────────────────────────────────────


@router.get("/hold", response_model=HoldTable, responses=UPSTREAM_ERRORS, summary="HOLD table")
def hold_table(queries: ArixQueries = Depends(get_arix_queries)) -> HoldTable:
    return views.hold_table(queries.hold())


@router.get("/hold/statistics", response_model=HoldStatistics, summary="HOLD statistics")
def hold_statistics(queries: ArixQueries = Depends(get_arix_queries)) -> HoldStatistics:
    return queries.hold_statistics()


@router.get(
    "/hold/by-value",
    response_model=list[ArixHoldPosition],
    summary="HOLD positions by investment",
)
def hold_by_value(queries: ArixQueries = Depends(get_arix_queries)) -> list[ArixHoldPosition]:
    return calculators.positions_by_value(queries.hold().positions)


@router.get(
    "/hold/{symbol}",
    response_model=list[ArixHoldPosition],
    summary="HOLD positions for a symbol",
)
def hold_for_symbol(
    symbol: str, queries: ArixQueries = Depends(get_arix_queries)
) -> list[ArixHoldPosition]:
    return queries.hold_for_symbol(symbol)


# ── SELL ──────────────────────────────────────────────────────────


@router.get("/sell", response_model=SellTable, responses=UPSTREAM_ERRORS, summary="SELL table")
def sell_table(queries: ArixQueries = Depends(get_arix_queries)) -> SellTable:
    return views.sell_table(queries.sell())


@router.get("/sell/statistics", response_model=SellStatistics, summary="SELL statistics")
def sell_statistics(queries: ArixQueries = Depends(get_arix_queries)) -> SellStatistics:
    return queries.sell_statistics()


@router.get("/sell/recent", response_model=list[ArixSellTrade], summary="Recent closed trades")
def recent_trades(
    limit: int = Query(default=calculators.DEFAULT_RECENT_TRADES, ge=1, le=100),
    queries: ArixQueries = Depends(get_arix_queries),
) -> list[ArixSellTrade]:
    return calculators.recent_trades(queries.sell().trades, limit)


@router.get(
    "/sell/{symbol}",
    response_model=list[ArixSellTrade],
    summary="Closed trades for a symbol",
)
def sell_for_symbol(
    symbol: str, queries: ArixQueries = Depends(get_arix_queries)
) -> list[ArixSellTrade]:
    return queries.sell_for_symbol(symbol)


@router.post("/refresh", status_code=204, summary="Reload the ARIX sheets")
def refresh(queries: ArixQueries = Depends(get_arix_queries)) -> None:
    queries.refresh()
