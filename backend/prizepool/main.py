"""FastAPI application — REST endpoints for prize settlement."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from prizepool import calculator, reward_config
from prizepool.allocation import split_top_three, split_top_two, validate_top_three_split
from prizepool.models import (
    CalculatePrizeRequest,
    ErrorResponse,
    PlaceSplit,
    PlaceSplitRequest,
    PrizeCalculationResult,
    RewardStructure,
    SplitValidation,
    TournamentSummary,
    TournamentSummaryRequest,
    ValidateSplitRequest,
)

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Prize settlement API starting")
    yield


app = FastAPI(title="Prize Settlement API", lifespan=lifespan)

# ---------- Rate Limiting ----------

_rate_limit_enabled = os.getenv("RATE_LIMIT_ENABLED", "1") != "0"

limiter = Limiter(
    key_func=get_remote_address,
    enabled=_rate_limit_enabled,
)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please slow down."},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # tighten in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Helpers ----------


def _require_unique_members(member_ids: list[str]) -> None:
    if len(set(member_ids)) != len(member_ids):
        raise HTTPException(status_code=400, detail="Duplicate member_id in players")


# ---------- REST endpoints ----------


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post(
    "/api/prizes/calculate",
    response_model=PrizeCalculationResult,
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit("60/minute")
async def calculate_prizes(request: Request, req: CalculatePrizeRequest):
    """Prize breakdown for a chip snapshot under explicit economics."""
    _require_unique_members([p.member_id for p in req.players])
    return calculator.calculate(req.params, req.players)


@app.post("/api/prizes/validate-split", response_model=SplitValidation)
@limiter.limit("60/minute")
async def validate_split(request: Request, req: ValidateSplitRequest):
    return validate_top_three_split(req.top_three_split)


@app.post("/api/prizes/place-split", response_model=PlaceSplit)
@limiter.limit("60/minute")
async def place_split(request: Request, req: PlaceSplitRequest):
    """Fixed 60/40 or 50/30/20 split of a pool."""
    if req.places == 2:
        return split_top_two(req.pool)
    return split_top_three(req.pool)


@app.get("/api/reward-structures", response_model=dict[int, RewardStructure])
@limiter.limit("30/minute")
async def list_reward_structures(request: Request):
    return reward_config.REWARD_STRUCTURES


@app.get(
    "/api/reward-structures/{entry_fee}",
    response_model=RewardStructure,
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit("30/minute")
async def get_reward_structure(request: Request, entry_fee: int):
    structure = reward_config.get_reward_structure(entry_fee)
    if structure is None:
        raise HTTPException(status_code=404, detail="Reward structure not found")
    return structure


@app.post(
    "/api/tournaments/summary",
    response_model=TournamentSummary,
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit("30/minute")
async def tournament_summary(request: Request, req: TournamentSummaryRequest):
    """Chip balance, payments and prizes for a tournament's player list."""
    _require_unique_members([p.member_id for p in req.players])
    try:
        return calculator.summarize_tournament(req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
