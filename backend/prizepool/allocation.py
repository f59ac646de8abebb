"""Prize allocation engine.

Splits a tournament prize pool across players by final chip count, after
reserving a carve-out that is paid only to the top three finishers.

Every amount is an ``int`` in whole currency units.  Floors use integer
floor division and percentages are rounded half-up through ``Decimal``,
so no float ever reaches an amount.  Nothing in this module logs, keeps
state or mutates its inputs; wrap it (see ``prizepool.calculator``) to
observe it.

Pipeline for ``calculate_icm_prize``::

    total_prize_pool = (entry_fee - administrative_fee) * total_groups
    net_pool         = total_prize_pool - activity_bonus
    carve-out        = split of total_deduction among eligible top three
    remaining pool   = net_pool - carve-out
    chip share       = floor(remaining * chips / total_chips, unit)
    prize            = floor(chip share + carve-out bonus, unit)
    rank 1          += net_pool - sum(prizes)
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple, Sequence, Union

from prizepool.models import (
    ROUNDING_UNIT,
    AllocationMode,
    ICMCalculationParams,
    PlaceSplit,
    PlayerChips,
    PlayerPrize,
    PrizeCalculationResult,
    SplitValidation,
    TopThreePrize,
)

Number = Union[int, float, Decimal]

TOP_PLACES = 3
TOP_TWO_SPLIT: tuple[float, ...] = (60, 40)
TOP_THREE_SPLIT: tuple[float, ...] = (50, 30, 20)


class CarveOut(NamedTuple):
    prizes: list[TopThreePrize]
    total: int
    adjustment: int  # shortfall moved off earlier ranks when the last slot went negative


class Reconciliation(NamedTuple):
    player_prizes: list[PlayerPrize]
    adjustment_amount: int
    unallocated_amount: int


# ------------------------------------------------------------------
# Arithmetic helpers
# ------------------------------------------------------------------


def _decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 33.3 as 33.3 instead of its binary expansion
    return Decimal(str(value))


def percent_of(amount: Number, percentage: Number) -> Decimal:
    """Exact ``amount * percentage / 100``."""
    return _decimal(amount) * _decimal(percentage) / Decimal(100)


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def floor_to_unit(amount: int, unit: int = ROUNDING_UNIT) -> int:
    """Floor an integer amount to a multiple of ``unit``."""
    return amount // unit * unit


# ------------------------------------------------------------------
# Ranking
# ------------------------------------------------------------------


def rank_by_chips(players: Sequence[PlayerChips]) -> list[PlayerChips]:
    """Sort by descending chips.  The sort is stable, so ties keep input order."""
    return sorted(players, key=lambda p: p.current_chips, reverse=True)


def eligible_top_three(ranked: Sequence[PlayerChips]) -> list[PlayerChips]:
    """The first three players (in rank order) that still hold chips."""
    return [p for p in ranked if p.current_chips > 0][:TOP_PLACES]


# ------------------------------------------------------------------
# Carve-out
# ------------------------------------------------------------------


def calculate_top_three_carve_out(
    total_deduction: int,
    top_three_split: Sequence[float],
    eligible_players: Sequence[PlayerChips],
) -> CarveOut:
    """Split a fixed carve-out among the eligible top three.

    Every rank but the last gets ``round_half_up(total * pct / 100)``; the
    last eligible rank takes whatever is left, so the amounts always sum
    to ``total_deduction``.  Percentages are applied independently and do
    not have to total 100.

    If the last slot's residual comes out negative it is clamped to 0 and
    the shortfall is taken back from the earlier ranks, rank 1 first.
    """
    count = min(TOP_PLACES, len(eligible_players))
    if count == 0 or total_deduction <= 0:
        return CarveOut([], 0, 0)

    amounts: list[int] = []
    remaining = total_deduction
    for i in range(count):
        if i == count - 1:
            amounts.append(remaining)
        else:
            amount = round_half_up(percent_of(total_deduction, top_three_split[i]))
            amounts.append(amount)
            remaining -= amount

    adjustment = 0
    if amounts[-1] < 0:
        shortfall = -amounts[-1]
        adjustment = shortfall
        amounts[-1] = 0
        for i in range(count - 1):
            taken = min(shortfall, max(amounts[i], 0))
            amounts[i] -= taken
            shortfall -= taken
            if shortfall == 0:
                break

    prizes = [
        TopThreePrize(rank=i + 1, percentage=top_three_split[i], amount=amount)
        for i, amount in enumerate(amounts)
    ]
    return CarveOut(prizes, sum(amounts), adjustment)


def calculate_gross_percentage_carve_out(
    total_prize_pool: int,
    top_three_split: Sequence[float],
    eligible_players: Sequence[PlayerChips],
    rounding_unit: int = ROUNDING_UNIT,
) -> CarveOut:
    """Older house rule: each top-three rank takes a percentage of the gross pool.

    Each amount is rounded half-up to ``rounding_unit`` on its own; the
    carve-out total is simply their sum.
    """
    count = min(TOP_PLACES, len(eligible_players))
    if count == 0 or total_prize_pool <= 0:
        return CarveOut([], 0, 0)

    prizes = []
    for i in range(count):
        pct = top_three_split[i]
        units = round_half_up(percent_of(total_prize_pool, pct) / rounding_unit)
        prizes.append(TopThreePrize(rank=i + 1, percentage=pct, amount=units * rounding_unit))
    return CarveOut(prizes, sum(p.amount for p in prizes), 0)


# ------------------------------------------------------------------
# Chip-based distribution
# ------------------------------------------------------------------


def calculate_player_distribution(
    remaining_prize_pool: int,
    players: Sequence[PlayerChips],
    rounding_unit: int = ROUNDING_UNIT,
) -> list[PlayerPrize]:
    """Share ``remaining_prize_pool`` in proportion to chips.

    Returns one record per player in rank order.  Shares are floored to
    ``rounding_unit``; the shortfall is settled by ``combine_and_reconcile``.
    Players without chips get nothing and do not count toward the total.
    """
    ranked = rank_by_chips(players)
    total_chips = sum(p.current_chips for p in ranked if p.current_chips > 0)

    prizes: list[PlayerPrize] = []
    for rank, player in enumerate(ranked, start=1):
        chips = player.current_chips
        if chips <= 0 or total_chips <= 0:
            prizes.append(PlayerPrize(member_id=player.member_id, rank=rank, chips=0))
            continue

        share = remaining_prize_pool * chips // total_chips
        chip_based = floor_to_unit(share, rounding_unit)
        prizes.append(
            PlayerPrize(
                member_id=player.member_id,
                rank=rank,
                chips=chips,
                chip_percentage=chips / total_chips * 100,
                chip_based_prize=chip_based,
                prize_amount=chip_based,
            )
        )
    return prizes


def combine_and_reconcile(
    player_prizes: Sequence[PlayerPrize],
    top_three_prizes: Sequence[TopThreePrize],
    net_pool: int,
    rounding_unit: int = ROUNDING_UNIT,
) -> Reconciliation:
    """Add carve-out bonuses, floor each prize, and give the remainder to rank 1.

    ``player_prizes`` must be in rank order (as returned by
    ``calculate_player_distribution``).  Bonuses go to the players holding
    chips, in that order.  Whatever ``net_pool`` has left after flooring is
    added to the rank 1 prize and reported as the adjustment.  Rank 1 is
    never driven below zero; money that cannot be placed is reported as
    ``unallocated_amount`` instead.
    """
    combined: list[PlayerPrize] = []
    eligible_idx = 0
    for prize in player_prizes:
        if prize.chips <= 0:
            combined.append(
                prize.model_copy(
                    update={
                        "chip_percentage": 0.0,
                        "chip_based_prize": 0,
                        "top_three_bonus": 0,
                        "prize_amount": 0,
                    }
                )
            )
            continue

        bonus = 0
        if eligible_idx < len(top_three_prizes):
            bonus = top_three_prizes[eligible_idx].amount
        eligible_idx += 1

        amount = floor_to_unit(prize.chip_based_prize + bonus, rounding_unit)
        combined.append(
            prize.model_copy(update={"top_three_bonus": bonus, "prize_amount": amount})
        )

    remainder = net_pool - sum(p.prize_amount for p in combined)
    adjustment = 0
    # All-zero snapshots have nobody to receive the remainder
    if remainder != 0 and combined and combined[0].chips > 0:
        first = combined[0]
        new_amount = first.prize_amount + remainder
        if new_amount < 0:
            adjustment = -first.prize_amount
            new_amount = 0
        else:
            adjustment = remainder
        combined[0] = first.model_copy(update={"prize_amount": new_amount})

    unallocated = net_pool - sum(p.prize_amount for p in combined)
    return Reconciliation(combined, adjustment, unallocated)


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------


def zero_result(mode: AllocationMode = AllocationMode.FIXED_AMOUNT_OF_NET) -> PrizeCalculationResult:
    return PrizeCalculationResult(mode=mode)


def calculate_icm_prize(
    params: ICMCalculationParams,
    players: Sequence[PlayerChips],
) -> PrizeCalculationResult:
    """Compute the full prize breakdown for one chip snapshot.

    Degenerate input (no players, or a pool that is not positive) yields a
    zeroed result rather than an error.  When the activity bonus swallows the
    whole pool the economics are still reported, but nobody is paid and
    the shortfall shows up as ``unallocated_amount``.
    """
    unit = params.rounding_unit
    total_prize_pool = (params.entry_fee - params.administrative_fee) * params.total_groups
    net_pool = total_prize_pool - params.activity_bonus
    if total_prize_pool <= 0 or not players:
        return zero_result(params.mode)

    ranked = rank_by_chips(players)
    if net_pool <= 0:
        unpaid = calculate_player_distribution(0, ranked, unit)
        return PrizeCalculationResult(
            mode=params.mode,
            total_prize_pool=total_prize_pool,
            activity_bonus=params.activity_bonus,
            net_pool=net_pool,
            unallocated_amount=net_pool,
            player_prizes=unpaid,
        )

    eligible = eligible_top_three(ranked)

    if params.mode == AllocationMode.PERCENTAGE_OF_GROSS:
        carve_out = calculate_gross_percentage_carve_out(
            total_prize_pool, params.top_three_split, eligible, unit
        )
    else:
        carve_out = calculate_top_three_carve_out(
            params.total_deduction, params.top_three_split, eligible
        )

    # a carve-out larger than the net pool leaves nothing to share by chips;
    # reconciliation takes the excess back off rank 1
    remaining_prize_pool = max(0, net_pool - carve_out.total)
    distribution = calculate_player_distribution(remaining_prize_pool, ranked, unit)
    reconciled = combine_and_reconcile(distribution, carve_out.prizes, net_pool, unit)

    player_prizes = reconciled.player_prizes
    return PrizeCalculationResult(
        mode=params.mode,
        total_prize_pool=total_prize_pool,
        activity_bonus=params.activity_bonus,
        net_pool=net_pool,
        remaining_prize_pool=remaining_prize_pool,
        top_three_total=carve_out.total,
        chip_based_total=sum(p.chip_based_prize for p in player_prizes),
        total_distributed=sum(p.prize_amount for p in player_prizes),
        adjustment_amount=reconciled.adjustment_amount,
        unallocated_amount=reconciled.unallocated_amount,
        top_three_prizes=carve_out.prizes,
        player_prizes=player_prizes,
    )


# ------------------------------------------------------------------
# Split helpers
# ------------------------------------------------------------------


def validate_top_three_split(split: Sequence[float]) -> SplitValidation:
    """Check that the top-three percentages total between 0 and 100."""
    total = float(sum(split))
    is_valid = 0 <= total <= 100
    if is_valid:
        message = (
            f"Top-three split totals {total:.2f}%, "
            f"{100 - total:.2f}% is left unassigned"
        )
    else:
        message = f"Top-three split must total at most 100%, got {total:.2f}%"
    return SplitValidation(is_valid=is_valid, total=total, message=message)


def _split_places(pool: int, percentages: Sequence[float]) -> PlaceSplit:
    amounts = [round_half_up(percent_of(pool, pct)) for pct in percentages]
    # rounding difference goes to first place
    amounts[0] += pool - sum(amounts)
    return PlaceSplit(pool=pool, amounts=amounts)


def split_top_two(pool: int) -> PlaceSplit:
    """60/40 split of ``pool``."""
    return _split_places(pool, TOP_TWO_SPLIT)


def split_top_three(pool: int) -> PlaceSplit:
    """50/30/20 split of ``pool``."""
    return _split_places(pool, TOP_THREE_SPLIT)
