"""
ETL Package - Cafe Sales Cleaning Pipeline

Modules:
- extract: CSV/Excel reading of the raw table
- transform: Record construction, sentinel normalization, numeric validation
- impute: Quantity/price/total reconstruction
- categorize: Payment/location co-imputation and price-based item inference
- dates: Date validation and forward-fill by transaction ID
- enrich: Type coercion and day/month features
- dq: Data quality report and final projection
- load: CSV/Excel/text export
- pipeline: Main orchestrator
- schema: TypedDict definitions
"""
from .pipeline import CleaningPipeline
from .schema import CafeTransaction, ExtractionPayload, PipelineResult

__all__ = ['CleaningPipeline', 'CafeTransaction', 'ExtractionPayload', 'PipelineResult']
