"""
Numeric Imputer - Reconstructs one missing numeric field from the other two.

Invariant used: total_spent = quantity * unit_price

| missing       | formula                          |
|---------------|----------------------------------|
| none          | unchanged                        |
| quantity      | total_spent / unit_price         |
| unit_price    | total_spent / quantity           |
| total_spent   | quantity * unit_price            |
| two or three  | record dropped (unrecoverable)   |

A zero divisor makes the record unrecoverable as well. All arithmetic is
exact Decimal arithmetic; rounding happens later in the coercion stage.
"""
import logging
from decimal import Decimal
from typing import List, Dict, Tuple, Any

from .config import Config
from .schema import CafeTransaction, DroppedRecord
from .transform import finding


class MissingValueImputer:

    def __init__(self):
        self.stats: Dict[str, int] = {}
        self.findings: List[Dict[str, Any]] = []

    def apply(self, records: List[CafeTransaction]) -> Tuple[List[CafeTransaction], List[DroppedRecord]]:
        """
        Returns:
            Tuple of (surviving_records, dropped_records)
        """
        self.stats = {"complete": 0, "quantity": 0, "unit_price": 0, "total_spent": 0, "dropped": 0}
        self.findings = []
        kept: List[CafeTransaction] = []
        dropped: List[DroppedRecord] = []

        for record in records:
            reason = self._impute(record)
            if reason is None:
                kept.append(record)
            else:
                self.stats["dropped"] += 1
                dropped.append({"record": record, "reason": reason})
                self.findings.append(finding(record, "UNRECOVERABLE_RECORD", None, reason))

        logging.info(f"Imputer: {self.stats}")
        return kept, dropped

    def _impute(self, record: CafeTransaction):
        """Fill the record in place. Returns a drop reason, or None if it survives."""
        qty = record.get("quantity")
        price = record.get("unit_price")
        total = record.get("total_spent")

        missing = [name for name, val in (("quantity", qty), ("unit_price", price), ("total_spent", total)) if val is None]

        if not missing:
            self.stats["complete"] += 1
            return None
        if len(missing) > 1:
            return f"Missing {' and '.join(missing)}"

        field = missing[0]
        if field == "quantity":
            if price == 0:
                return "Cannot derive quantity: unit_price is zero"
            derived = Decimal(total) / Decimal(price)
            if derived > Config.MAX_QUANTITY:
                return "Derived quantity is out of range"
            record["quantity"] = derived
        elif field == "unit_price":
            if qty == 0:
                return "Cannot derive unit_price: quantity is zero"
            record["unit_price"] = Decimal(total) / Decimal(qty)
        else:
            record["total_spent"] = Decimal(qty) * Decimal(price)

        record["metadata"]["imputed"].append(field)
        self.stats[field] += 1
        return None

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()

    def get_findings(self) -> List[Dict[str, Any]]:
        return self.findings.copy()
