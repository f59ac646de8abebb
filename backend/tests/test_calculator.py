"""Tests for the calculator service (logging wrapper + tournament summaries)."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from prizepool.calculator import calculate, summarize_tournament
from prizepool.models import (
    AllocationMode,
    ICMCalculationParams,
    PaymentMethod,
    PlayerChips,
    PrizeCalculationResult,
    TournamentPlayer,
    TournamentSummaryRequest,
)

LOGGER = "prizepool.calculator"


def _params(**kwargs) -> ICMCalculationParams:
    defaults = {"entry_fee": 600, "total_groups": 10, "total_deduction": 0}
    defaults.update(kwargs)
    return ICMCalculationParams(**defaults)


def _summary_request(**kwargs) -> TournamentSummaryRequest:
    defaults = {
        "entry_fee": 6600,
        "players": [
            TournamentPlayer(member_id="A", buy_in_count=2, current_chips=250000, payment_method=PaymentMethod.CASH),
            TournamentPlayer(member_id="B", buy_in_count=1, current_chips=150000, payment_method=PaymentMethod.TRANSFER),
            TournamentPlayer(member_id="C", buy_in_count=1, current_chips=100000, payment_method=PaymentMethod.UNPAID),
            TournamentPlayer(member_id="D", buy_in_count=1, current_chips=0, payment_method=PaymentMethod.CASH),
        ],
    }
    defaults.update(kwargs)
    return TournamentSummaryRequest(**defaults)


# ---------------------------------------------------------------------------
# calculate
# ---------------------------------------------------------------------------


class TestCalculate:
    def test_returns_engine_result(self):
        players = [PlayerChips(member_id="m1", current_chips=100)]
        with patch(
            "prizepool.calculator.calculate_icm_prize",
            return_value=PrizeCalculationResult(),
        ) as engine:
            result = calculate(_params(), players)
        engine.assert_called_once_with(_params(), players)
        assert result is engine.return_value

    def test_adjustment_logged_at_info(self, caplog):
        players = [PlayerChips(member_id="m1", current_chips=1)]
        with caplog.at_level(logging.INFO, logger=LOGGER):
            result = calculate(_params(entry_fee=12345, total_groups=1), players)
        assert result.adjustment_amount == 45
        assert "Moved 45 onto rank 1" in caplog.text
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_unallocated_logged_at_warning(self, caplog):
        players = [PlayerChips(member_id="m1", current_chips=0)]
        with caplog.at_level(logging.INFO, logger=LOGGER):
            result = calculate(_params(), players)
        assert result.unallocated_amount == 6000
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "6000 unallocated" in warnings[0].getMessage()

    def test_inputs_logged_at_debug(self, caplog):
        players = [PlayerChips(member_id="m1", current_chips=10)]
        with caplog.at_level(logging.DEBUG, logger=LOGGER):
            calculate(_params(), players)
        assert "mode=fixed-amount-of-net" in caplog.text
        assert "players=1" in caplog.text


# ---------------------------------------------------------------------------
# summarize_tournament
# ---------------------------------------------------------------------------


class TestSummarizeTournament:
    def test_full_summary(self):
        summary = summarize_tournament(_summary_request())

        assert summary.total_groups == 5
        assert summary.chip_balance is not None
        assert summary.chip_balance.is_balanced
        assert summary.payments.total_expected == 33000
        assert summary.payments.unpaid_member_ids == ["C"]

        prizes = summary.prizes
        assert prizes.total_prize_pool == 30000
        assert prizes.remaining_prize_pool == 29500
        # 14700+250, 8800+150, 5900+100 floored, then +200 onto rank 1
        assert [p.prize_amount for p in prizes.player_prizes] == [15100, 8900, 6000, 0]
        assert prizes.total_distributed == 30000

    def test_explicit_groups_override_buy_ins(self):
        summary = summarize_tournament(_summary_request(total_groups=10))
        assert summary.total_groups == 10
        assert summary.prizes.total_prize_pool == 60000

    def test_activity_bonus_and_custom_economics(self):
        summary = summarize_tournament(
            _summary_request(
                activity_bonus=1000,
                administrative_fee=1600,
                total_deduction=1000,
                top_three_split=(60, 30, 10),
            )
        )
        prizes = summary.prizes
        assert prizes.total_prize_pool == 25000
        assert prizes.net_pool == 24000
        assert [p.amount for p in prizes.top_three_prizes] == [600, 300, 100]
        assert prizes.total_distributed == 24000

    def test_percentage_of_gross_mode(self):
        summary = summarize_tournament(_summary_request(mode=AllocationMode.PERCENTAGE_OF_GROSS))
        assert summary.prizes.mode == AllocationMode.PERCENTAGE_OF_GROSS
        assert summary.prizes.top_three_total == 30000

    def test_unbalanced_chips_logged(self, caplog):
        req = _summary_request(starting_stack=120000)
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            summary = summarize_tournament(req)
        assert not summary.chip_balance.is_balanced
        assert summary.chip_balance.difference == -100000
        assert "Chip count off by -100000" in caplog.text

    def test_custom_entry_fee_without_stack_has_no_balance(self):
        req = _summary_request(
            entry_fee=5000,
            total_deduction=300,
            top_three_split=(50, 30, 20),
        )
        summary = summarize_tournament(req)
        assert summary.chip_balance is None
        assert summary.prizes.total_prize_pool == 25000

    def test_unknown_entry_fee_raises(self):
        with pytest.raises(ValueError, match="No reward structure"):
            summarize_tournament(_summary_request(entry_fee=5000))
