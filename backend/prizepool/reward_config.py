"""House reward structures and administrative fees, keyed by entry fee.

The administrative fee for an entry fee can be overridden without a code
change through the ``ADMIN_FEE_OVERRIDES`` environment variable, a JSON
object such as ``{"6600": 500, "1200": 150}``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Optional

from prizepool.models import (
    AllocationMode,
    ICMCalculationParams,
    RewardStructure,
    TournamentType,
)

logger = logging.getLogger(__name__)

# Per-group administrative fee for each entry fee
DEFAULT_ADMINISTRATIVE_FEES: dict[int, int] = {
    600: 100,
    1200: 200,
    2300: 300,
    3400: 400,
    6600: 600,
    11000: 1000,
    22000: 2000,
}

# total_deduction is taken once per event, not per group
REWARD_STRUCTURES: dict[int, RewardStructure] = {
    600: RewardStructure(administrative_fee=100, prize_per_group=500, total_deduction=100),
    1200: RewardStructure(administrative_fee=100, prize_per_group=1100, total_deduction=100),
    2300: RewardStructure(administrative_fee=300, prize_per_group=2000, total_deduction=200),
    3400: RewardStructure(administrative_fee=400, prize_per_group=3000, total_deduction=300),
    6600: RewardStructure(administrative_fee=600, prize_per_group=6000, total_deduction=500),
    11000: RewardStructure(administrative_fee=1000, prize_per_group=10000, total_deduction=1000),
    22000: RewardStructure(administrative_fee=2000, prize_per_group=20000, total_deduction=2000),
}

TOURNAMENT_TYPES: dict[str, TournamentType] = {
    "600": TournamentType(name="600 Turbo", starting_stack=25000),
    "1200": TournamentType(name="1200 Turbo", starting_stack=25000),
    "2300": TournamentType(name="2300 Turbo", starting_stack=35000),
    "3400": TournamentType(name="3400 Turbo", starting_stack=50000),
    "6600": TournamentType(name="6600 Turbo", starting_stack=100000),
    "11000": TournamentType(name="11000 Turbo", starting_stack=150000),
}


def _parse_fee_overrides(raw: str) -> dict[int, int]:
    """Parse the ADMIN_FEE_OVERRIDES JSON object.  Bad input is logged and ignored."""
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        return {int(fee): int(admin) for fee, admin in data.items()}
    except (ValueError, TypeError):
        logger.warning("Ignoring malformed ADMIN_FEE_OVERRIDES: %r", raw, exc_info=True)
        return {}


ADMIN_FEE_OVERRIDES: dict[int, int] = _parse_fee_overrides(
    os.getenv("ADMIN_FEE_OVERRIDES", "")
)


def get_reward_structure(entry_fee: int) -> Optional[RewardStructure]:
    return REWARD_STRUCTURES.get(entry_fee)


def get_administrative_fee(entry_fee: int) -> int:
    """Administrative fee per group: overrides first, then the defaults, else 0."""
    if entry_fee in ADMIN_FEE_OVERRIDES:
        return ADMIN_FEE_OVERRIDES[entry_fee]
    return DEFAULT_ADMINISTRATIVE_FEES.get(entry_fee, 0)


def get_tournament_type(entry_fee: int) -> Optional[TournamentType]:
    return TOURNAMENT_TYPES.get(str(entry_fee))


def build_params(
    entry_fee: int,
    total_groups: int,
    activity_bonus: int = 0,
    *,
    administrative_fee: Optional[int] = None,
    total_deduction: Optional[int] = None,
    top_three_split: Optional[tuple[float, float, float]] = None,
    mode: AllocationMode = AllocationMode.FIXED_AMOUNT_OF_NET,
) -> ICMCalculationParams:
    """Build engine parameters from the reward table.

    Explicit arguments win over the table.  An entry fee with no reward
    structure is only accepted when both the deduction and the split are
    given explicitly.
    """
    structure = get_reward_structure(entry_fee)
    if structure is None and (total_deduction is None or top_three_split is None):
        raise ValueError(f"No reward structure configured for entry fee {entry_fee}")

    if administrative_fee is None:
        administrative_fee = get_administrative_fee(entry_fee)
    if total_deduction is None:
        total_deduction = structure.total_deduction
    if top_three_split is None:
        top_three_split = structure.top_three_split

    return ICMCalculationParams(
        entry_fee=entry_fee,
        administrative_fee=administrative_fee,
        total_groups=total_groups,
        total_deduction=total_deduction,
        top_three_split=top_three_split,
        activity_bonus=activity_bonus,
        mode=mode,
    )
