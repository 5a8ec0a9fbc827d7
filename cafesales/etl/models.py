from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, List, Dict, Any, Iterable

from .config import Config


def _format_money(value: Optional[Decimal]) -> Optional[str]:
    if value is None:
        return None
    return f"{value:,.2f}"


@dataclass
class CleanTransaction:
    transaction_id: Optional[str]
    item: Optional[str]
    quantity: Optional[int]
    unit_price: Optional[Decimal]
    total_spent: Optional[Decimal]
    payment_method: Optional[str]
    location: Optional[str]
    transaction_date: Optional[date]
    day_of_week: Optional[str] = None
    transaction_month: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CleanTransaction":
        return cls(
            transaction_id=record.get("transaction_id"),
            item=record.get("item"),
            quantity=record.get("quantity"),
            unit_price=record.get("unit_price"),
            total_spent=record.get("total_spent"),
            payment_method=record.get("payment_method"),
            location=record.get("location"),
            transaction_date=record.get("transaction_date"),
            day_of_week=record.get("day_of_week"),
            transaction_month=record.get("transaction_month"),
        )

    def to_dict(self):
        return {
            "Transaction ID": self.transaction_id,
            "Item Purchased": self.item,
            "Quantity": self.quantity,
            "Price per Unit ($)": _format_money(self.unit_price),
            "Total Spent ($)": _format_money(self.total_spent),
            "Payment Method": self.payment_method,
            "Location": self.location,
            "Transaction Date": self.transaction_date.strftime(Config.OUTPUT_DATE_FORMAT) if self.transaction_date else None,
            "Day": self.day_of_week,
            "Month": self.transaction_month,
        }


OUTPUT_COLUMNS = [
    "Transaction ID", "Item Purchased", "Quantity", "Price per Unit ($)", "Total Spent ($)",
    "Payment Method", "Location", "Transaction Date", "Day", "Month",
]


class RawTransactionSchema:
    REQUIRED_COLUMNS = list(Config.COLUMN_MAP.keys())

    @staticmethod
    def validate(columns: Iterable[str]) -> List[str]:
        errors = []
        present = {str(c).strip() for c in columns}
        for column in RawTransactionSchema.REQUIRED_COLUMNS:
            if column not in present:
                errors.append(f"Missing column '{column}'")
        return errors
