"""
Type Coercion & Feature Enrichment - final typing and derived date features.
"""
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

import pandas as pd

from .schema import CafeTransaction

CENT = Decimal("0.01")


def to_quantity(value) -> Optional[int]:
    if value is None:
        return None
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_money(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class TypeCoercer:
    """Finalizes quantity (int), unit_price/total_spent (2 decimals) and the date."""

    def apply(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        for record in records:
            record["quantity"] = to_quantity(record.get("quantity"))
            record["unit_price"] = to_money(record.get("unit_price"))
            record["total_spent"] = to_money(record.get("total_spent"))
            tx_date = record.get("transaction_date")
            if isinstance(tx_date, datetime):
                record["transaction_date"] = tx_date.date()
        return records


class FeatureEnricher:
    """Derives day_of_week and transaction_month from transaction_date."""

    def __init__(self):
        self.stats: Dict[str, int] = {}

    def apply(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        self.stats = {"enriched": 0, "without_date": 0}
        for record in records:
            tx_date = record.get("transaction_date")
            if tx_date is None:
                record["day_of_week"] = None
                record["transaction_month"] = None
                self.stats["without_date"] += 1
                continue
            stamp = pd.Timestamp(tx_date)
            record["day_of_week"] = stamp.day_name()
            record["transaction_month"] = stamp.month_name()
            self.stats["enriched"] += 1

        logging.info(f"FeatureEnricher: {self.stats}")
        return records

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()
