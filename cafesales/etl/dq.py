"""
Data Quality Engine - Diagnostics, null counting and the final projection.

Finding types:
- MALFORMED_VALUE: numeric field failed its pattern, set to missing
- UNRECOVERABLE_RECORD: record dropped by the imputer
- AMBIGUOUS_MAPPING: no lookup entry for the observed value
- MISSING_DATE: no earlier record in ID order had a valid date
- DUPLICATE_ID / MISSING_ID: identifier cannot give a total order
- INCONSISTENT_TOTAL: supplied total disagrees with quantity * unit_price

Nothing here removes or changes a record; every check is a report.
"""
from collections import Counter
from decimal import Decimal
from typing import List, Dict, Any

from .config import Config
from .models import CleanTransaction
from .schema import CafeTransaction, DroppedRecord
from .transform import finding


FLAG_TYPES = [
    "MALFORMED_VALUE",
    "UNRECOVERABLE_RECORD",
    "AMBIGUOUS_MAPPING",
    "MISSING_DATE",
    "DUPLICATE_ID",
    "MISSING_ID",
    "INCONSISTENT_TOTAL",
]

TOTAL_TOLERANCE = Decimal("0.01")


class DataQualityEngine:
    """
    Rule-based data quality reporting for the cleaning pipeline.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.stats = {
            "input_rows": 0,
            "output_rows": 0,
            "dropped_rows": 0,
            "remaining_nulls": 0,
            "inconsistent_totals": 0,
        }
        self.duplicates: Dict[str, int] = {}
        self.missing_id_count = 0
        self.flagged_rows: List[Dict[str, Any]] = []

    # ─────────────────────────────────────────────────────────────
    # Identifier diagnostics
    # ─────────────────────────────────────────────────────────────

    def check_identifiers(self, records: List[CafeTransaction]) -> Dict[str, int]:
        """
        Report identifiers that occur more than once, and records with none.
        Must run on the full working set before any record is dropped.
        """
        self.stats["input_rows"] = len(records)
        counts = Counter(r.get("transaction_id") for r in records if r.get("transaction_id") is not None)
        self.duplicates = {tx_id: cnt for tx_id, cnt in sorted(counts.items()) if cnt > 1}

        for record in records:
            tx_id = record.get("transaction_id")
            if tx_id is None:
                self.missing_id_count += 1
                self.flagged_rows.append(finding(record, "MISSING_ID", "transaction_id", "Record has no transaction ID"))
            elif tx_id in self.duplicates:
                self.flagged_rows.append(finding(record, "DUPLICATE_ID", "transaction_id",
                                                 f"Transaction ID occurs {self.duplicates[tx_id]} times"))
        return self.duplicates.copy()

    def add_findings(self, findings: List[Dict[str, Any]]) -> None:
        self.flagged_rows.extend(findings)

    # ─────────────────────────────────────────────────────────────
    # Final validation
    # ─────────────────────────────────────────────────────────────

    def assess(self, records: List[CafeTransaction], dropped: List[DroppedRecord]) -> List[CafeTransaction]:
        self.stats["output_rows"] = len(records)
        self.stats["dropped_rows"] = len(dropped)
        self.stats["remaining_nulls"] = self.count_remaining_nulls(records)

        inconsistent = 0
        for record in records:
            if not self._total_is_consistent(record):
                inconsistent += 1
                self.flagged_rows.append(finding(
                    record, "INCONSISTENT_TOTAL", "total_spent",
                    f"{record['quantity']} x {record['unit_price']} != {record['total_spent']}"))
        self.stats["inconsistent_totals"] = inconsistent
        return records

    @staticmethod
    def count_remaining_nulls(records: List[CafeTransaction]) -> int:
        return sum(1 for r in records if any(r.get(f) is None for f in Config.REQUIRED_OUTPUT_FIELDS))

    def _total_is_consistent(self, record: CafeTransaction) -> bool:
        qty, price, total = record.get("quantity"), record.get("unit_price"), record.get("total_spent")
        if qty is None or price is None or total is None:
            return True
        # Only supplied totals can disagree; imputed fields satisfy the invariant by construction
        if set(record["metadata"]["imputed"]) & set(Config.NUMERIC_FIELDS):
            return True
        return abs(Decimal(qty) * Decimal(price) - Decimal(total)) <= TOTAL_TOLERANCE

    # ─────────────────────────────────────────────────────────────
    # Reporting
    # ─────────────────────────────────────────────────────────────

    def final_view(self, records: List[CafeTransaction]) -> List[Dict[str, Any]]:
        """Formatted projection ordered by transaction date; undated records come first."""
        ordered = sorted(records, key=lambda r: (r.get("transaction_date") is not None, r.get("transaction_date") or ""))
        return [CleanTransaction.from_record(r).to_dict() for r in ordered]

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.copy()

    def get_flagged_rows(self) -> List[Dict[str, Any]]:
        return sorted(self.flagged_rows, key=lambda f: (f["row"], FLAG_TYPES.index(f["flag_type"])))

    def get_flag_counts(self) -> Dict[str, int]:
        counts = Counter(f["flag_type"] for f in self.flagged_rows)
        return {flag: counts[flag] for flag in FLAG_TYPES if counts[flag]}

    def get_full_report(self) -> Dict[str, Any]:
        return {
            "stats": self.get_stats(),
            "duplicates": self.duplicates.copy(),
            "flag_counts": self.get_flag_counts(),
            "flagged_rows": self.get_flagged_rows(),
            "summary": {
                "input_rows": self.stats["input_rows"],
                "output_rows": self.stats["output_rows"],
                "dropped_rows": self.stats["dropped_rows"],
                "remaining_nulls": self.stats["remaining_nulls"],
                "missing_id_count": self.missing_id_count,
                "total_flags": len(self.flagged_rows),
                "has_duplicates": bool(self.duplicates),
            }
        }
