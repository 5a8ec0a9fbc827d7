import os
from decimal import Decimal


# ETL Configuration
class Config:
    OUTPUT_FOLDER = os.environ.get("OUTPUT_FOLDER", "outputs")
    LOG_FILE = os.environ.get("LOG_FILE", "cleaning.log")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    RANDOM_SEED = int(os.environ["CAFE_RANDOM_SEED"]) if os.environ.get("CAFE_RANDOM_SEED") else None

    ALLOWED_EXTENSIONS = {'csv', 'xlsx'}
    EXPORT_FORMATS = {'csv', 'xlsx', 'txt'}

    # Placeholder strings standing in for missing data (trimmed, case-sensitive)
    SENTINELS = frozenset({"ERROR", "UNKNOWN"})

    # Raw column -> working record field
    COLUMN_MAP = {
        "Transaction ID": "transaction_id",
        "Item": "item",
        "Quantity": "quantity",
        "Price Per Unit": "unit_price",
        "Total Spent": "total_spent",
        "Payment Method": "payment_method",
        "Location": "location",
        "Transaction Date": "transaction_date",
    }

    NORMALIZED_FIELDS = ("item", "location", "payment_method", "transaction_date")
    NUMERIC_FIELDS = ("quantity", "unit_price", "total_spent")
    REQUIRED_OUTPUT_FIELDS = ("item", "quantity", "unit_price", "total_spent", "transaction_date")

    # Column ranges: INT and DECIMAL(10,2)
    MAX_QUANTITY = 2147483647
    MAX_MONEY = Decimal("99999999.99")

    # Excel date cells read as text come out with a time part
    INPUT_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%d %H:%M:%S")
    OUTPUT_DATE_FORMAT = "%m/%d/%Y"
