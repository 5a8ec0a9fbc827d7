import pandas as pd
import hashlib
import logging
from typing import List, Dict, Any
from abc import ABC, abstractmethod

from .models import RawTransactionSchema


class InputTableError(Exception):
    """Raised when the raw table cannot be read or lacks required columns."""


class BaseParser(ABC):
    @abstractmethod
    def read_frame(self, file_path: str) -> pd.DataFrame:
        pass

    def parse(self, file_path: str) -> Dict[str, Any]:
        """
        Returns the raw payload:
        {
            "document_hash": "...",
            "rows": [{"Transaction ID": "TXN_1", "Item": "Coffee", ...}, ...],
            "source_file": "..."
        }
        """
        logging.info(f"Extracting raw table: {file_path}")
        try:
            df = self.read_frame(file_path)
            file_hash = self.get_file_hash(file_path)
        except (OSError, ValueError) as e:
            raise InputTableError(f"Cannot read input table {file_path}: {e}") from e

        df.columns = [str(c).strip() for c in df.columns]
        errors = RawTransactionSchema.validate(df.columns)
        if errors:
            raise InputTableError(f"Input table {file_path} is not a cafe sales table: {'; '.join(errors)}")

        return {
            "document_hash": file_hash,
            "rows": frame_to_rows(df),
            "source_file": file_path
        }

    def get_file_hash(self, file_path: str) -> str:
        sha256_hash = hashlib.sha256()
        with open(file_path, "rb") as f:
            for byte_block in iter(lambda: f.read(4096), b""):
                sha256_hash.update(byte_block)
        return sha256_hash.hexdigest()


class CSVParser(BaseParser):
    def read_frame(self, file_path: str) -> pd.DataFrame:
        # Everything stays a string; only true blanks become NaN
        return pd.read_csv(file_path, dtype=str, keep_default_na=False, na_values=[""])


class ExcelParser(BaseParser):
    def read_frame(self, file_path: str) -> pd.DataFrame:
        return pd.read_excel(file_path, dtype=str, keep_default_na=False, na_values=[""], engine="openpyxl")


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a DataFrame into row dicts, mapping NaN to None."""
    rows = []
    for row in df.to_dict(orient="records"):
        rows.append({k: (None if pd.isna(v) else v) for k, v in row.items()})
    return rows


class ParserFactory:
    @staticmethod
    def get_parser(file_type: str) -> BaseParser:
        ft = file_type.lower().lstrip('.')
        if ft == 'csv':
            return CSVParser()
        elif ft == 'xlsx':
            return ExcelParser()
        else:
            raise ValueError(f"Unsupported file type: {file_type}")
