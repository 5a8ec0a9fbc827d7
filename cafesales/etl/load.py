"""
Load Layer - Export of the cleaned projection.

Generates:
1. csv  - The final projection only (deterministic for a given input and seed)
2. xlsx - Transactions sheet + Data Quality Report sheet
3. txt  - Fixed-width preview for debugging
"""
import pandas as pd
from io import BytesIO
from typing import List, Dict, Any
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from .models import OUTPUT_COLUMNS


class UniversalLoader:
    """
    Universal exporter for the cleaned table.
    Supported: 'xlsx', 'csv', 'txt'
    """

    def __init__(self):
        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="5B3A29", end_color="5B3A29", fill_type="solid")
        self.warning_fill = PatternFill(start_color="FEE2E2", end_color="FEE2E2", fill_type="solid")
        self.success_fill = PatternFill(start_color="DCFCE7", end_color="DCFCE7", fill_type="solid")
        self.border = Border(bottom=Side(style='thin', color='DDDDDD'))

    def generate(self, final_view: List[Dict], audit_data: Dict[str, Any], target_format: str = "csv") -> BytesIO:
        """
        Generate output in the requested format.
        """
        if target_format == "csv":
            return self._generate_csv(final_view)
        elif target_format == "txt":
            return self._generate_text(final_view, audit_data)
        elif target_format == "xlsx":
            return self._generate_excel(final_view, audit_data)
        else:
            raise ValueError(f"Unsupported export format: {target_format}")

    def _generate_csv(self, final_view: List[Dict]) -> BytesIO:
        df = pd.DataFrame(final_view, columns=OUTPUT_COLUMNS)
        output = BytesIO()
        df.to_csv(output, index=False)
        output.seek(0)
        return output

    def _generate_excel(self, final_view: List[Dict], audit_data: Dict[str, Any]) -> BytesIO:
        output = BytesIO()
        wb = Workbook()

        # ════════════════════════════════════════════════════════════════
        # SHEET 1: TRANSACTIONS
        # ════════════════════════════════════════════════════════════════
        ws1 = wb.active
        ws1.title = "Transactions"

        for col_idx, header in enumerate(OUTPUT_COLUMNS, 1):
            cell = ws1.cell(row=1, column=col_idx, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = Alignment(horizontal="center")

        for row_idx, row in enumerate(final_view, 2):
            for col_idx, header in enumerate(OUTPUT_COLUMNS, 1):
                cell = ws1.cell(row=row_idx, column=col_idx, value=row.get(header))
                cell.border = self.border

        ws1.freeze_panes = "A2"
        self._auto_width(ws1)

        # ════════════════════════════════════════════════════════════════
        # SHEET 2: DATA QUALITY REPORT
        # ════════════════════════════════════════════════════════════════
        ws2 = wb.create_sheet("Data Quality Report")

        dq_report = audit_data.get("dq_report", {})
        summary = dq_report.get("summary", {})
        flagged_rows = dq_report.get("flagged_rows", [])

        ws2.cell(row=1, column=1, value="DATA QUALITY REPORT").font = Font(bold=True, size=14)
        ws2.merge_cells('A1:D1')

        row = 3
        ws2.cell(row=row, column=1, value="Summary Statistics").font = Font(bold=True, size=12)
        row += 1

        stat_items = [
            ("Input Rows", summary.get("input_rows", 0)),
            ("Output Rows", summary.get("output_rows", 0)),
            ("Dropped (Unrecoverable)", summary.get("dropped_rows", 0)),
            ("Rows With Remaining Nulls", summary.get("remaining_nulls", 0)),
            ("Rows Without Transaction ID", summary.get("missing_id_count", 0)),
            ("Total Flags", len(flagged_rows)),
        ]
        for key, val in stat_items:
            ws2.cell(row=row, column=1, value=key)
            ws2.cell(row=row, column=2, value=val)
            row += 1

        duplicates = dq_report.get("duplicates", {})
        if duplicates:
            row += 1
            ws2.cell(row=row, column=1, value="Duplicate Transaction IDs").font = Font(bold=True, size=12)
            row += 1
            for tx_id, cnt in duplicates.items():
                ws2.cell(row=row, column=1, value=tx_id).fill = self.warning_fill
                ws2.cell(row=row, column=2, value=cnt)
                row += 1

        row += 1
        ws2.cell(row=row, column=1, value="Flagged Rows Detail").font = Font(bold=True, size=12)
        row += 1

        if flagged_rows:
            flag_headers = ["Row #", "Transaction ID", "Flag Type", "Field", "Reason"]
            for col_idx, header in enumerate(flag_headers, 1):
                cell = ws2.cell(row=row, column=col_idx, value=header)
                cell.font = self.header_font
                cell.fill = self.header_fill
            row += 1

            for flag in flagged_rows:
                ws2.cell(row=row, column=1, value=flag.get("row", ""))
                ws2.cell(row=row, column=2, value=flag.get("transaction_id") or "")
                ws2.cell(row=row, column=3, value=flag.get("flag_type", ""))
                ws2.cell(row=row, column=4, value=flag.get("field") or "")
                ws2.cell(row=row, column=5, value=flag.get("reason", ""))
                row += 1
        else:
            ws2.cell(row=row, column=1, value="No flagged rows - all data passed quality checks").fill = self.success_fill

        self._auto_width(ws2)

        wb.save(output)
        output.seek(0)
        return output

    def _generate_text(self, final_view: List[Dict], audit_data: Dict[str, Any]) -> BytesIO:
        """Structured text export for debugging/preview"""
        output = BytesIO()
        summary = audit_data.get("dq_report", {}).get("summary", {})
        lines = [
            f"CAFE SALES CLEANING REPORT - {audit_data.get('source_file', 'in-memory')}\n",
            f"rows in: {summary.get('input_rows', 0)}  rows out: {summary.get('output_rows', 0)}  "
            f"dropped: {summary.get('dropped_rows', 0)}  remaining nulls: {summary.get('remaining_nulls', 0)}\n",
            "=" * 50 + "\n\n",
        ]

        for tx in final_view:
            line = (f"[{tx.get('Transaction Date') or '--/--/----':<10}] {tx.get('Transaction ID') or '':<14} "
                    f"{tx.get('Item Purchased') or '?':<10} x{tx.get('Quantity')!s:<3} "
                    f"@ {tx.get('Price per Unit ($)')!s:>8} = {tx.get('Total Spent ($)')!s:>9} | "
                    f"{tx.get('Payment Method')} / {tx.get('Location')}\n")
            lines.append(line)

        output.write("".join(lines).encode('utf-8'))
        output.seek(0)
        return output

    def _auto_width(self, ws) -> None:
        """Auto-adjust column widths"""
        for col_idx, column in enumerate(ws.columns, 1):
            max_length = 0
            for cell in column:
                if cell.value is not None:
                    max_length = max(max_length, len(str(cell.value)))
            ws.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 4, 60)
