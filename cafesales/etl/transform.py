"""
Transform Layer - Record construction, sentinel normalization and numeric validation.

This module implements:
1. Raw row -> working record copy (fixed column map)
2. Sentinel/placeholder normalization for categorical and date fields
3. Regex-based validation of quantity, unit price and total spent

Nothing here infers a value: fields are either accepted as they are or
replaced with None.
"""
import re
import logging
from decimal import Decimal
from typing import Dict, List, Any, Optional

import pandas as pd

from .config import Config
from .schema import CafeTransaction


def _is_null(value: Any) -> bool:
    return value is None or (pd.api.types.is_scalar(value) and bool(pd.isna(value)))


def build_records(rows: List[Dict[str, Any]]) -> List[CafeTransaction]:
    """Copy raw rows into working records. Raw values are kept verbatim."""
    records: List[CafeTransaction] = []
    for idx, row in enumerate(rows):
        record = {field: None for field in Config.COLUMN_MAP.values()}
        for column, field in Config.COLUMN_MAP.items():
            value = row.get(column)
            record[field] = None if _is_null(value) else value

        if record["transaction_id"] is not None:
            record["transaction_id"] = str(record["transaction_id"]).strip() or None
        record["day_of_week"] = None
        record["transaction_month"] = None
        record["metadata"] = {"row_number": idx + 1, "imputed": []}
        records.append(record)
    return records


def finding(record: CafeTransaction, flag_type: str, field: Optional[str], reason: str) -> Dict[str, Any]:
    return {
        "row": record["metadata"]["row_number"],
        "transaction_id": record.get("transaction_id"),
        "flag_type": flag_type,
        "field": field,
        "reason": reason
    }


class FieldNormalizer:
    """
    Maps placeholder values to None.

    A value is a placeholder when it is null, whitespace-only, or one of the
    sentinel strings after trimming. Comparison is case-sensitive.
    """

    def __init__(self, fields=Config.NORMALIZED_FIELDS, sentinels=Config.SENTINELS):
        self.fields = tuple(fields)
        self.sentinels = frozenset(sentinels)
        self.stats: Dict[str, int] = {}

    def normalize_value(self, value: Any) -> Optional[str]:
        if _is_null(value):
            return None
        text = str(value).strip()
        if not text or text in self.sentinels:
            return None
        return text

    def apply(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        self.stats = {field: 0 for field in self.fields}
        for record in records:
            for field in self.fields:
                cleaned = self.normalize_value(record.get(field))
                if cleaned is None:
                    self.stats[field] += 1
                record[field] = cleaned
        logging.info(f"Normalizer: missing after normalization {self.stats}")
        return records

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()


class NumericValidator:
    """
    Accepts or rejects quantity, unit price and total spent by pattern.

    quantity:            one or more digits
    unit_price/total:    digits, optionally '.' followed by digits

    Values that match but exceed the column's range (INT for quantity,
    DECIMAL(10,2) for money) are rejected the same way.
    """

    INTEGER_PATTERN = re.compile(r'[0-9]+')
    DECIMAL_PATTERN = re.compile(r'[0-9]+(\.[0-9]+)?')

    def __init__(self):
        self.patterns = {
            "quantity": (self.INTEGER_PATTERN, int, Config.MAX_QUANTITY),
            "unit_price": (self.DECIMAL_PATTERN, Decimal, Config.MAX_MONEY),
            "total_spent": (self.DECIMAL_PATTERN, Decimal, Config.MAX_MONEY),
        }
        self.stats: Dict[str, Dict[str, int]] = {}
        self.findings: List[Dict[str, Any]] = []

    def validate_value(self, field: str, value: Any):
        """Return the typed value, or None when missing, malformed or out of range."""
        if _is_null(value):
            return None
        pattern, cast, upper = self.patterns[field]
        text = str(value).strip()
        if not pattern.fullmatch(text):
            return None
        typed = cast(text)
        if typed > upper:
            return None
        return typed

    def apply(self, records: List[CafeTransaction]) -> List[CafeTransaction]:
        self.stats = {field: {"valid": 0, "missing": 0, "malformed": 0} for field in self.patterns}
        self.findings = []

        for record in records:
            for field in self.patterns:
                raw = record.get(field)
                value = self.validate_value(field, raw)
                if value is not None:
                    self.stats[field]["valid"] += 1
                elif _is_null(raw) or not str(raw).strip():
                    self.stats[field]["missing"] += 1
                else:
                    text = str(raw).strip()
                    reason = "Out of range" if self.patterns[field][0].fullmatch(text) else "Rejected value"
                    self.stats[field]["malformed"] += 1
                    self.findings.append(finding(record, "MALFORMED_VALUE", field, f"{reason} '{text}'"))
                record[field] = value

        logging.info(f"NumericValidator: {self.stats}")
        return records

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        return {field: counts.copy() for field, counts in self.stats.items()}

    def get_findings(self) -> List[Dict[str, Any]]:
        return self.findings.copy()
