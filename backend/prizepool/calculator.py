"""Calculator service — runs the allocation engine and reports on it.

The engine in ``prizepool.allocation`` is pure; this module is where its
inputs and outcomes are logged, and where tournament records are turned
into engine inputs.
"""

from __future__ import annotations

import logging
from typing import Sequence

from prizepool import ledger, reward_config
from prizepool.allocation import calculate_icm_prize
from prizepool.models import (
    ICMCalculationParams,
    PlayerChips,
    PrizeCalculationResult,
    TournamentSummary,
    TournamentSummaryRequest,
)

logger = logging.getLogger(__name__)


def calculate(
    params: ICMCalculationParams, players: Sequence[PlayerChips]
) -> PrizeCalculationResult:
    """Run the allocation engine for one snapshot and log the outcome."""
    logger.debug(
        "Calculating prizes (mode=%s, entry_fee=%d, groups=%d, deduction=%d, "
        "split=%s, activity_bonus=%d, players=%d)",
        params.mode.value,
        params.entry_fee,
        params.total_groups,
        params.total_deduction,
        params.top_three_split,
        params.activity_bonus,
        len(players),
    )

    result = calculate_icm_prize(params, players)

    logger.debug(
        "Prize pool %d, net %d, carve-out %d, chip-based %d, distributed %d",
        result.total_prize_pool,
        result.net_pool,
        result.top_three_total,
        result.chip_based_total,
        result.total_distributed,
    )
    if result.adjustment_amount:
        logger.info(
            "Moved %d onto rank 1 to settle the net pool of %d",
            result.adjustment_amount,
            result.net_pool,
        )
    if result.unallocated_amount:
        logger.warning(
            "Net pool %d not fully distributed: %d unallocated "
            "(distributed %d across %d players)",
            result.net_pool,
            result.unallocated_amount,
            result.total_distributed,
            len(result.player_prizes),
        )
    return result


def summarize_tournament(req: TournamentSummaryRequest) -> TournamentSummary:
    """Chip balance, payment totals and prize breakdown for one tournament.

    Raises ValueError when the entry fee has no reward structure and the
    request does not supply the deduction and split itself.
    """
    players = req.players
    total_groups = (
        req.total_groups
        if req.total_groups is not None
        else ledger.total_buy_in_groups(players)
    )

    params = reward_config.build_params(
        req.entry_fee,
        total_groups,
        req.activity_bonus,
        administrative_fee=req.administrative_fee,
        total_deduction=req.total_deduction,
        top_three_split=req.top_three_split,
        mode=req.mode,
    )

    starting_stack = req.starting_stack
    if starting_stack is None:
        tournament_type = reward_config.get_tournament_type(req.entry_fee)
        if tournament_type is not None:
            starting_stack = tournament_type.starting_stack

    balance = None
    if starting_stack is not None:
        balance = ledger.chip_balance(players, starting_stack)
        if not balance.is_balanced:
            logger.warning(
                "Chip count off by %d (expected %d, counted %d)",
                balance.difference,
                balance.expected_total_chips,
                balance.actual_total_chips,
            )

    prizes = calculate(params, ledger.chip_snapshot(players))

    return TournamentSummary(
        entry_fee=req.entry_fee,
        total_groups=total_groups,
        chip_balance=balance,
        payments=ledger.payment_summary(players, req.entry_fee),
        prizes=prizes,
    )
