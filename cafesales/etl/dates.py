"""
Date Repair - Invalid date normalization and forward-fill by identifier order.

Pass 1 turns anything that is not a calendar date into None.
Pass 2 sorts by transaction_id and carries the last valid date forward onto
records with a missing date. "Last" means the nearest earlier record in ID
order, not the calendar-nearest transaction.
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .config import Config
from .schema import CafeTransaction
from .transform import finding


def id_sort_key(record: CafeTransaction):
    """Lexicographic identifier order; records without an identifier sort last."""
    tx_id = record.get("transaction_id")
    return (tx_id is None, tx_id or "")


class DateRepairer:

    def __init__(self, date_formats: Sequence[str] = Config.INPUT_DATE_FORMATS):
        self.date_formats = tuple(date_formats)
        self.stats: Dict[str, int] = {}
        self.findings: List[Dict] = []

    def parse_date(self, value) -> Optional[date]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        text = str(value).strip()
        for fmt in self.date_formats:
            parsed = pd.to_datetime(text, format=fmt, errors="coerce")
            if not pd.isna(parsed):
                return parsed.date()
        return None

    def normalize(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        for record in records:
            raw = record.get("transaction_date")
            parsed = self.parse_date(raw)
            if raw is not None and parsed is None:
                self.stats["invalid"] += 1
            record["transaction_date"] = parsed
        return records

    def forward_fill(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        ordered = sorted(records, key=id_sort_key)
        last_valid: Optional[date] = None
        for record in ordered:
            current = record.get("transaction_date")
            if current is not None:
                last_valid = current
            elif last_valid is not None:
                record["transaction_date"] = last_valid
                record["metadata"]["imputed"].append("transaction_date")
                self.stats["filled"] += 1
            else:
                self.stats["unfilled"] += 1
                self.findings.append(finding(record, "MISSING_DATE", "transaction_date",
                                             "No earlier record in ID order has a valid date"))
        return ordered

    def apply(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        """Returns the records in identifier order with dates repaired."""
        self.stats = {"invalid": 0, "filled": 0, "unfilled": 0}
        self.findings = []
        records = self.forward_fill(self.normalize(records))
        logging.info(f"DateRepairer: {self.stats}")
        return records

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()

    def get_findings(self) -> List[Dict]:
        return self.findings.copy()
