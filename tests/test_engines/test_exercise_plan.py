"""Tests for multi-year ISO exercise planning."""

from datetime import date
from decimal import Decimal

import pytest

from equityplan.engines.exercise_plan import MultiYearExerciseOptimizer
from equityplan.exceptions import DataValidationError
from equityplan.models.enums import EquityType, ExerciseStrategy
from equityplan.models.results import GrantStatus


def _status(available: str) -> GrantStatus:
    return GrantStatus(
        total=Decimal("20000"),
        vested_total=Decimal(available),
        unvested=Decimal("20000") - Decimal(available),
        available=Decimal(available),
    )


class TestPlanMultiYearExercise:
    def setup_method(self):
        self.optimizer = MultiYearExerciseOptimizer()

    @pytest.fixture(autouse=True)
    def _spread_of_fifty(self, iso_grant):
        iso_grant.current_price = Decimal("60")

    def test_fills_amt_room_each_year(self, iso_grant, ca_rates):
        plan = self.optimizer.plan_multi_year_exercise(
            iso_grant, _status("5000"), Decimal("85700"), ca_rates, 3, 2025
        )
        assert plan.spread_per_share == Decimal("50")
        assert plan.max_safe_shares_per_year == Decimal("1714")
        assert [yp.planned_shares for yp in plan.year_plans] == [
            Decimal("1714"), Decimal("1714"), Decimal("1572")
        ]
        assert [yp.year for yp in plan.year_plans] == [2025, 2026, 2027]
        assert plan.remaining_shares == Decimal("0")
        assert not plan.needs_longer_horizon

    def test_year_plan_amounts(self, iso_grant, ca_rates):
        plan = self.optimizer.plan_multi_year_exercise(
            iso_grant, _status("5000"), Decimal("85700"), ca_rates, 3, 2025
        )
        last = plan.year_plans[-1]
        assert last.planned_spread == Decimal("78600")
        assert last.amt_used == Decimal("78600")
        assert last.amt_remaining == Decimal("7100")
        assert last.exercise_cost == Decimal("15720")
        # (0.483 - 0.321) savings rate
        assert plan.total_savings == Decimal("40500")
        assert plan.single_year_tax == Decimal("120750")
        assert plan.max_tax_savings == Decimal("40500")

    def test_stops_when_shares_run_out(self, iso_grant, ca_rates):
        plan = self.optimizer.plan_multi_year_exercise(
            iso_grant, _status("1000"), Decimal("85700"), ca_rates, 5, 2025
        )
        assert len(plan.year_plans) == 1
        assert plan.year_plans[0].planned_shares == Decimal("1000")

    def test_leftover_shares_flag_longer_horizon(self, iso_grant, ca_rates):
        plan = self.optimizer.plan_multi_year_exercise(
            iso_grant, _status("20000"), Decimal("85700"), ca_rates, 2, 2025
        )
        assert plan.remaining_shares == Decimal("16572")
        assert plan.needs_longer_horizon

    def test_horizon_is_clamped(self, iso_grant, ca_rates):
        short = self.optimizer.plan_multi_year_exercise(
            iso_grant, _status("20000"), Decimal("85700"), ca_rates, 1, 2025
        )
        assert len(short.year_plans) == 2
        long = self.optimizer.plan_multi_year_exercise(
            iso_grant, _status("20000"), Decimal("85700"), ca_rates, 10, 2025
        )
        assert len(long.year_plans) == 5

    def test_no_spread_no_plan(self, iso_grant, ca_rates):
        iso_grant.current_price = Decimal("8")
        plan = self.optimizer.plan_multi_year_exercise(
            iso_grant, _status("5000"), Decimal("85700"), ca_rates, 3, 2025
        )
        assert plan.max_safe_shares_per_year == Decimal("0")
        assert plan.year_plans == []
        assert plan.remaining_shares == Decimal("5000")


class TestBuildPlannedExercise:
    def setup_method(self):
        self.optimizer = MultiYearExerciseOptimizer()

    def test_buy_and_hold(self, iso_grant):
        planned = self.optimizer.build_planned_exercise(
            iso_grant, Decimal("1000"), _status("2000"), date(2025, 3, 1)
        )
        assert planned.grant_id == "g-iso"
        assert planned.grant_ticker == "ACME"
        assert planned.exercise_price == Decimal("10")
        assert planned.fmv_at_exercise == Decimal("50")
        assert planned.amt_exposure == Decimal("40000")
        assert planned.estimated_cost == Decimal("10000")
        assert planned.id

    def test_cashless_has_no_amt_exposure(self, iso_grant):
        planned = self.optimizer.build_planned_exercise(
            iso_grant, Decimal("1000"), _status("2000"), date(2025, 3, 1), ExerciseStrategy.CASHLESS
        )
        assert planned.amt_exposure == Decimal("0")

    def test_rejects_more_than_available(self, iso_grant):
        with pytest.raises(DataValidationError, match="available"):
            self.optimizer.build_planned_exercise(
                iso_grant, Decimal("2001"), _status("2000"), date(2025, 3, 1)
            )

    def test_rejects_non_positive_shares(self, iso_grant):
        with pytest.raises(DataValidationError):
            self.optimizer.build_planned_exercise(
                iso_grant, Decimal("0"), _status("2000"), date(2025, 3, 1)
            )

    def test_rejects_non_iso(self, iso_grant):
        iso_grant.type = EquityType.NSO
        with pytest.raises(DataValidationError, match="not ISO"):
            self.optimizer.build_planned_exercise(
                iso_grant, Decimal("10"), _status("2000"), date(2025, 3, 1)
            )
