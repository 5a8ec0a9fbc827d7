"""
Categorical Rules - Lookup-table driven co-imputation and item inference.

Both policies are fixed association tables kept as immutable mappings so they
can be audited and tested without running the pipeline.
"""
import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, List, Any, Optional, Tuple

import numpy as np

from .enrich import to_money
from .schema import CafeTransaction
from .transform import finding


# ─────────────────────────────────────────────────────────────
# Payment Method <-> Location Association
# ─────────────────────────────────────────────────────────────
# Order matters: reverse lookup takes the first payment method mapped to a
# location, so Digital Wallet is never produced from a location.

LOCATION_BY_PAYMENT = MappingProxyType({
    "Cash": "In-store",
    "Credit Card": "Takeaway",
    "Digital Wallet": "Takeaway",
})


def _first_match_reverse(table) -> MappingProxyType:
    reverse: Dict[str, str] = {}
    for payment, location in table.items():
        reverse.setdefault(location, payment)
    return MappingProxyType(reverse)


PAYMENT_BY_LOCATION = _first_match_reverse(LOCATION_BY_PAYMENT)

DEFAULT_LOCATION = "In-store"
DEFAULT_PAYMENT_METHOD = "Cash"


# ─────────────────────────────────────────────────────────────
# Unit Price -> Item Lookup
# ─────────────────────────────────────────────────────────────
# Each price maps to weighted candidates; a single candidate is a plain lookup.

ITEM_BY_PRICE = MappingProxyType({
    Decimal("1.50"): (("Tea", 1.0),),
    Decimal("2.00"): (("Coffee", 1.0),),
    Decimal("1.00"): (("Cookie", 1.0),),
    Decimal("5.00"): (("Salad", 1.0),),
    Decimal("4.00"): (("Smoothie", 1.0),),
    Decimal("3.00"): (("Cake", 0.5), ("Juice", 0.5)),
})


class CategoricalCoImputer:
    """
    Fills Location from Payment Method and vice versa.

    Rules, each applied only to records the previous rule left unresolved:
    1. location missing, payment present  -> LOCATION_BY_PAYMENT
    2. payment missing, location present  -> PAYMENT_BY_LOCATION
    3. both missing                       -> In-store / Cash
    """

    def __init__(self, location_by_payment=LOCATION_BY_PAYMENT):
        self.location_by_payment = location_by_payment
        self.payment_by_location = _first_match_reverse(location_by_payment)
        self.stats: Dict[str, int] = {}
        self.findings: List[Dict[str, Any]] = []

    def apply(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        self.stats = {"location_from_payment": 0, "payment_from_location": 0, "joint_default": 0, "unmapped": 0}
        self.findings = []

        for record in records:
            location = record.get("location")
            payment = record.get("payment_method")

            if location is None and payment is not None:
                mapped = self.location_by_payment.get(payment)
                if mapped is not None:
                    record["location"] = mapped
                    record["metadata"]["imputed"].append("location")
                    self.stats["location_from_payment"] += 1
                else:
                    self._unmapped(record, "location", f"No location mapped to payment method '{payment}'")
            elif payment is None and location is not None:
                mapped = self.payment_by_location.get(location)
                if mapped is not None:
                    record["payment_method"] = mapped
                    record["metadata"]["imputed"].append("payment_method")
                    self.stats["payment_from_location"] += 1
                else:
                    self._unmapped(record, "payment_method", f"No payment method mapped to location '{location}'")
            elif payment is None and location is None:
                record["location"] = DEFAULT_LOCATION
                record["payment_method"] = DEFAULT_PAYMENT_METHOD
                record["metadata"]["imputed"].extend(["location", "payment_method"])
                self.stats["joint_default"] += 1

        logging.info(f"CoImputer: {self.stats}")
        return records

    def _unmapped(self, record: CafeTransaction, field: str, reason: str) -> None:
        self.stats["unmapped"] += 1
        self.findings.append(finding(record, "AMBIGUOUS_MAPPING", field, reason))

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()

    def get_findings(self) -> List[Dict[str, Any]]:
        return self.findings.copy()


class ItemInferencer:
    """
    Fills missing item labels from the unit price.

    Usage:
        inferencer = ItemInferencer(rng=np.random.default_rng(42))
        records = inferencer.apply(records)

    The random source is only consumed for prices with more than one
    candidate, so a fixed seed reproduces the same assignment.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, item_by_price=ITEM_BY_PRICE):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.item_by_price = item_by_price
        self.stats: Dict[str, int] = {}
        self.findings: List[Dict[str, Any]] = []

    def candidates(self, unit_price: Optional[Decimal]) -> Tuple[Tuple[str, float], ...]:
        if unit_price is None:
            return ()
        return self.item_by_price.get(to_money(unit_price), ())

    def infer(self, unit_price: Optional[Decimal]) -> Optional[str]:
        candidates = self.candidates(unit_price)
        if not candidates:
            return None
        return self._choose(candidates)

    def _choose(self, candidates: Tuple[Tuple[str, float], ...]) -> str:
        if len(candidates) == 1:
            return candidates[0][0]
        draw = self.rng.random() * sum(weight for _, weight in candidates)
        for item, weight in candidates:
            if draw < weight:
                return item
            draw -= weight
        return candidates[-1][0]

    def apply(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        self.stats = {"inferred": 0, "sampled": 0, "unmatched": 0}
        self.findings = []

        for record in records:
            if record.get("item") is not None:
                continue
            price = record.get("unit_price")
            candidates = self.candidates(price)
            if not candidates:
                self.stats["unmatched"] += 1
                self.findings.append(finding(record, "AMBIGUOUS_MAPPING", "item", f"No item mapped to unit price {price}"))
                continue
            if len(candidates) > 1:
                self.stats["sampled"] += 1
            record["item"] = self._choose(candidates)
            record["metadata"]["imputed"].append("item")
            self.stats["inferred"] += 1

        logging.info(f"ItemInferencer: {self.stats}")
        return records

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()

    def get_findings(self) -> List[Dict[str, Any]]:
        return self.findings.copy()
