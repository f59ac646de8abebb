"""Pydantic models for prize settlement."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Prize amounts are floored/rounded to this many currency units.
ROUNDING_UNIT = 100


class AllocationMode(str, Enum):
    FIXED_AMOUNT_OF_NET = "fixed-amount-of-net"
    PERCENTAGE_OF_GROSS = "percentage-of-gross"


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    UNPAID = "unpaid"


# --- Engine inputs ---


class PlayerChips(BaseModel):
    """One row of the chip snapshot handed to the allocation engine."""

    model_config = ConfigDict(frozen=True)

    member_id: str = Field(..., min_length=1)
    current_chips: int = Field(..., ge=0)


class ICMCalculationParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry_fee: int
    administrative_fee: int = 0
    total_groups: int
    total_deduction: int = 0  # fixed for the whole event, not per group
    top_three_split: tuple[float, float, float] = (50, 30, 20)
    activity_bonus: int = 0  # removed from the pool, never paid out
    mode: AllocationMode = AllocationMode.FIXED_AMOUNT_OF_NET
    rounding_unit: int = Field(default=ROUNDING_UNIT, ge=1)


# --- Engine outputs ---


class TopThreePrize(BaseModel):
    rank: int
    percentage: float
    amount: int


class PlayerPrize(BaseModel):
    member_id: str
    rank: int
    chips: int
    chip_percentage: float = 0.0
    chip_based_prize: int = 0
    top_three_bonus: int = 0
    prize_amount: int = 0


class PrizeCalculationResult(BaseModel):
    """Full breakdown returned for every calculation, degenerate or not."""

    mode: AllocationMode = AllocationMode.FIXED_AMOUNT_OF_NET
    total_prize_pool: int = 0
    activity_bonus: int = 0
    net_pool: int = 0
    remaining_prize_pool: int = 0
    top_three_total: int = 0
    chip_based_total: int = 0
    total_distributed: int = 0
    adjustment_amount: int = 0  # remainder moved onto rank 1
    unallocated_amount: int = 0  # net_pool - total_distributed
    top_three_prizes: list[TopThreePrize] = Field(default_factory=list)
    player_prizes: list[PlayerPrize] = Field(default_factory=list)


class SplitValidation(BaseModel):
    is_valid: bool
    total: float
    message: str


class PlaceSplit(BaseModel):
    """Fixed-percentage split of a pool among the first places."""

    pool: int
    amounts: list[int]


# --- Configuration ---


class RewardStructure(BaseModel):
    model_config = ConfigDict(frozen=True)

    administrative_fee: int
    prize_per_group: int
    total_deduction: int
    top_three_split: tuple[float, float, float] = (50, 30, 20)


class TournamentType(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    starting_stack: int


# --- Ledger ---


class TournamentPlayer(BaseModel):
    member_id: str = Field(..., min_length=1)
    buy_in_count: int = Field(default=1, ge=0)
    current_chips: int = Field(default=0, ge=0)
    payment_method: PaymentMethod = PaymentMethod.UNPAID


class ChipBalance(BaseModel):
    expected_total_chips: int
    actual_total_chips: int
    difference: int  # actual - expected
    is_balanced: bool


class PaymentSummary(BaseModel):
    cash_total: int = 0
    transfer_total: int = 0
    unpaid_total: int = 0
    total_expected: int = 0
    total_received: int = 0
    unpaid_member_ids: list[str] = Field(default_factory=list)


# --- Request models ---


class CalculatePrizeRequest(BaseModel):
    params: ICMCalculationParams
    players: list[PlayerChips]


class ValidateSplitRequest(BaseModel):
    top_three_split: tuple[float, float, float]


class PlaceSplitRequest(BaseModel):
    pool: int = Field(..., ge=0)
    places: int = Field(default=3, ge=2, le=3)


class TournamentSummaryRequest(BaseModel):
    entry_fee: int = Field(..., gt=0)
    players: list[TournamentPlayer]
    starting_stack: Optional[int] = Field(default=None, gt=0)
    total_groups: Optional[int] = Field(default=None, ge=0)  # defaults to sum of buy-ins
    activity_bonus: int = Field(default=0, ge=0)
    administrative_fee: Optional[int] = Field(default=None, ge=0)
    total_deduction: Optional[int] = Field(default=None, ge=0)
    top_three_split: Optional[tuple[float, float, float]] = None
    mode: AllocationMode = AllocationMode.FIXED_AMOUNT_OF_NET


# --- Response models ---


class TournamentSummary(BaseModel):
    entry_fee: int
    total_groups: int
    chip_balance: Optional[ChipBalance] = None
    payments: PaymentSummary
    prizes: PrizeCalculationResult


class ErrorResponse(BaseModel):
    detail: str
