"""Tournament bookkeeping — buy-ins, chip balance and payment totals."""

from __future__ import annotations

from typing import Sequence

from prizepool.models import (
    ChipBalance,
    PaymentMethod,
    PaymentSummary,
    PlayerChips,
    TournamentPlayer,
)


def total_buy_in_groups(players: Sequence[TournamentPlayer]) -> int:
    return sum(p.buy_in_count for p in players)


def chip_balance(players: Sequence[TournamentPlayer], starting_stack: int) -> ChipBalance:
    """Compare the chips that should be in play with the chips counted."""
    expected = total_buy_in_groups(players) * starting_stack
    actual = sum(p.current_chips for p in players)
    return ChipBalance(
        expected_total_chips=expected,
        actual_total_chips=actual,
        difference=actual - expected,
        is_balanced=expected == actual,
    )


def payment_summary(players: Sequence[TournamentPlayer], entry_fee: int) -> PaymentSummary:
    """Amounts due per payment method.  Each buy-in owes one entry fee."""
    totals = {method: 0 for method in PaymentMethod}
    for p in players:
        totals[p.payment_method] += p.buy_in_count * entry_fee

    received = totals[PaymentMethod.CASH] + totals[PaymentMethod.TRANSFER]
    return PaymentSummary(
        cash_total=totals[PaymentMethod.CASH],
        transfer_total=totals[PaymentMethod.TRANSFER],
        unpaid_total=totals[PaymentMethod.UNPAID],
        total_expected=sum(totals.values()),
        total_received=received,
        unpaid_member_ids=[
            p.member_id for p in players if p.payment_method == PaymentMethod.UNPAID
        ],
    )


def chip_snapshot(players: Sequence[TournamentPlayer]) -> list[PlayerChips]:
    """Copy the current chip counts into the engine's input shape."""
    return [
        PlayerChips(member_id=p.member_id, current_chips=p.current_chips)
        for p in players
    ]
