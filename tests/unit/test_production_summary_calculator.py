"""
Unit tests for ProductionSummaryCalculator.

Run: pytest tests/unit/test_production_summary_calculator.py -v
"""

import math

import pytest

from app.core.models.production.production_summary import SalesBreakdownEntry
from app.modules.production_summary.production_summary_calculator import ProductionSummaryCalculator as Calc


# ===================
# ROUNDING
# ===================

class TestRound2:

    @pytest.mark.parametrize("value,expected", [
        (2.675, 2.68),
        (1.005, 1.01),
        (0.125, 0.13),
        (-0.125, -0.13),
        (3.3333333, 3.33),
        (10, 10.0),
    ])
    def test_rounds_half_up(self, value, expected):
        assert Calc.round2(value) == expected


# ===================
# COERCION
# ===================

class TestCoercion:

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "12abc", True, float("nan"), float("inf"), [1]])
    def test_bad_quantity_defaults_to_zero(self, raw):
        assert Calc.coerce_quantity(raw) == 0.0

    @pytest.mark.parametrize("raw,expected", [("12.5", 12.5), (" 7 ", 7.0), (3, 3.0), (0, 0.0)])
    def test_parses_numbers_and_numeric_text(self, raw, expected):
        assert Calc.coerce_quantity(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "x", 0, -4, "0", "-2.5"])
    def test_qty_per_batch_falls_back_to_one(self, raw):
        assert Calc.coerce_qty_per_batch(raw) == 1.0

    def test_qty_per_batch_keeps_positive_values(self):
        assert Calc.coerce_qty_per_batch("8") == 8.0
        assert Calc.coerce_qty_per_batch(0.5) == 0.5


# ===================
# BREAKDOWN TOTALS
# ===================

def test_summarize_breakdown_sums_quantity_and_orders():
    entries = [
        SalesBreakdownEntry(sales_person_name="X", total_quantity=30, order_count=1),
        SalesBreakdownEntry(sales_person_name="Y", total_quantity=20, order_count=2),
    ]
    assert Calc.summarize_breakdown(entries) == (50, 3)


def test_summarize_empty_breakdown():
    assert Calc.summarize_breakdown([]) == (0, 0)


# ===================
# DERIVATION
# ===================

class TestDerive:

    def test_batch_figures(self):
        result = Calc.derive(50, 10, 5, 8)

        assert result["to_be_produced_day"] == 40
        assert result["production_final_batches"] == 40
        assert result["produce_batches"] == 5
        assert result["to_be_produced_batches"] == 5
        assert result["expiry_shortage"] == 0

    def test_stock_above_demand_never_goes_negative(self):
        result = Calc.derive(20, 35, 1, 10)

        assert result["to_be_produced_day"] == 0
        assert result["produce_batches"] == 0
        assert result["expiry_shortage"] == 10

    def test_shortage_is_negative(self):
        result = Calc.derive(100, 0, 2, 10)

        assert result["to_be_produced_day"] == 100
        assert result["production_final_batches"] == 20
        assert result["expiry_shortage"] == -80

    @pytest.mark.parametrize("qty_per_batch", [0, -3, None, "", "abc"])
    def test_division_is_safe(self, qty_per_batch):
        result = Calc.derive(30, 0, 0, qty_per_batch)

        assert result["qty_per_batch"] == 1.0
        assert result["produce_batches"] == 30
        assert all(math.isfinite(v) for v in result.values())

    def test_garbage_inputs_are_coerced(self):
        result = Calc.derive(12, "", "n/a", "4")

        assert result["physical_stock"] == 0
        assert result["batch_adjusted"] == 0
        assert result["produce_batches"] == 3

    def test_fractional_batches_round_half_up(self):
        result = Calc.derive(10, 0, 0, 3)

        assert result["produce_batches"] == 3.33
        assert Calc.derive(5, 0, 0, 8)["produce_batches"] == 0.63
