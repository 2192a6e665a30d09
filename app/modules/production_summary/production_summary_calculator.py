import logging
import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Dict, Iterable, Tuple

from app.core.models.production.production_summary import SalesBreakdownEntry

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


class ProductionSummaryCalculator:
    """
    Calculator for production summary figures.

    Handles:
    - Coercion of grid inputs (blank / garbage -> defaults)
    - Sales breakdown totals
    - Batch derivation (to produce, final batches, expiry / shortage)

    All decimal outputs are rounded half-up to 2 places.
    """

    DEFAULT_QTY_PER_BATCH = 1.0

    @staticmethod
    def round2(value: float) -> float:
        """
        Round half-up to 2 decimal places.

        Goes through Decimal(str(value)) so binary float noise cannot move a
        tie in either direction.

        Examples:
            >>> ProductionSummaryCalculator.round2(2.675)
            2.68
            >>> ProductionSummaryCalculator.round2(-0.125)
            -0.13
        """
        rounded = Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        return float(rounded)

    @staticmethod
    def coerce_quantity(value: Any, default: float = 0.0) -> float:
        """
        Parse a numeric grid input.

        Returns default for None, blank strings, unparseable text, booleans,
        NaN and infinities.

        Examples:
            >>> ProductionSummaryCalculator.coerce_quantity("12.5")
            12.5
            >>> ProductionSummaryCalculator.coerce_quantity("")
            0.0
            >>> ProductionSummaryCalculator.coerce_quantity("abc")
            0.0
        """
        if value is None or isinstance(value, bool):
            return default
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return default
        try:
            number = float(Decimal(str(value)))
        except (InvalidOperation, ValueError, TypeError):
            logger.debug(f"Unparseable production input {value!r}, using {default}")
            return default
        if not math.isfinite(number):
            return default
        return number

    @staticmethod
    def coerce_qty_per_batch(value: Any) -> float:
        """
        Batch size used as a divisor: anything missing or <= 0 becomes 1.

        Examples:
            >>> ProductionSummaryCalculator.coerce_qty_per_batch(0)
            1.0
            >>> ProductionSummaryCalculator.coerce_qty_per_batch("8")
            8.0
        """
        qty = ProductionSummaryCalculator.coerce_quantity(
            value, default=ProductionSummaryCalculator.DEFAULT_QTY_PER_BATCH
        )
        if qty <= 0:
            return ProductionSummaryCalculator.DEFAULT_QTY_PER_BATCH
        return qty

    @staticmethod
    def summarize_breakdown(entries: Iterable[SalesBreakdownEntry]) -> Tuple[int, int]:
        """Return (total_quantity, total_orders) summed over the breakdown."""
        total_quantity = 0
        total_orders = 0
        for entry in entries:
            total_quantity += entry.total_quantity
            total_orders += entry.order_count
        return total_quantity, total_orders

    @staticmethod
    def derive(
        total_quantity: float,
        physical_stock: Any,
        batch_adjusted: Any,
        qty_per_batch: Any,
    ) -> Dict[str, float]:
        """
        Derive production figures from the order total and grid inputs.

        Formulas (in this order, each from fresh inputs):
        - to_be_produced_day = max(0, total_quantity - physical_stock)
        - production_final_batches = batch_adjusted * qty_per_batch
        - produce_batches = to_be_produced_batches = to_be_produced_day / qty_per_batch
        - expiry_shortage = production_final_batches - to_be_produced_day

        Returns:
            Dict with the coerced inputs and the derived fields, ready to $set.

        Example:
            >>> ProductionSummaryCalculator.derive(50, 10, 5, 8)["produce_batches"]
            5.0
        """
        calc = ProductionSummaryCalculator
        stock = calc.coerce_quantity(physical_stock)
        adjusted = calc.coerce_quantity(batch_adjusted)
        per_batch = calc.coerce_qty_per_batch(qty_per_batch)
        total = calc.coerce_quantity(total_quantity)

        to_be_produced_day = calc.round2(max(0.0, total - stock))
        production_final_batches = calc.round2(adjusted * per_batch)
        produce_batches = calc.round2(to_be_produced_day / per_batch)
        expiry_shortage = calc.round2(production_final_batches - to_be_produced_day)

        return {
            "physical_stock": stock,
            "batch_adjusted": adjusted,
            "qty_per_batch": per_batch,
            "to_be_produced_day": to_be_produced_day,
            "production_final_batches": production_final_batches,
            "produce_batches": produce_batches,
            "to_be_produced_batches": produce_batches,
            "expiry_shortage": expiry_shortage,
        }
