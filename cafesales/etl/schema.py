"""
Transaction Schema - TypedDicts shared by every layer of the cleaning pipeline.

A record is created once from a raw row and mutated in place by each stage,
so field types narrow as the record moves through the pipeline:
raw string -> validated value (int / Decimal / date) -> coerced value.
"""
from datetime import date
from decimal import Decimal
from typing import TypedDict, Dict, Any, Optional, List, Union


class RecordMetadata(TypedDict):
    """Audit metadata for each record"""
    row_number: int               # 1-based position in the raw table
    imputed: List[str]            # fields filled by imputation or inference


class CafeTransaction(TypedDict):
    """
    Working transaction record - single source of truth across stages.

    Numeric fields hold raw strings until the validator runs; the date holds a
    raw string until the date repairer runs. Derived fields stay None until
    the enrichment stage.
    """
    transaction_id: Optional[str]
    item: Optional[str]
    quantity: Optional[Union[str, int, Decimal]]
    unit_price: Optional[Union[str, Decimal]]
    total_spent: Optional[Union[str, Decimal]]
    payment_method: Optional[str]
    location: Optional[str]
    transaction_date: Optional[Union[str, date]]
    day_of_week: Optional[str]
    transaction_month: Optional[str]
    metadata: RecordMetadata


class DroppedRecord(TypedDict):
    """A record removed by the imputer as unrecoverable"""
    record: CafeTransaction
    reason: str


class ExtractionPayload(TypedDict):
    """Output from Extract layer"""
    document_hash: str            # SHA256 for idempotency
    rows: List[Dict[str, Any]]    # Raw rows keyed by input column name
    source_file: str              # Original filename


class PipelineResult(TypedDict):
    """Final output from the cleaning pipeline"""
    success: bool
    transactions: List[CafeTransaction]
    final_view: List[Dict[str, Any]]
    stats: Dict[str, Any]         # per-stage counters
    audit: Dict[str, Any]         # dq report, drop count, seed
