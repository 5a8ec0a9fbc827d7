"""End-to-end tests for CleaningPipeline.clean"""
from datetime import date
from decimal import Decimal

import numpy as np

from cafesales.etl.dq import DataQualityEngine
from cafesales.etl.pipeline import CleaningPipeline
from cafesales.etl.transform import build_records
from conftest import make_row


def by_id(result):
    return {r["transaction_id"]: r for r in result["transactions"]}


def test_worked_example_row():
    result = CleaningPipeline(seed=1).clean(
        [make_row("T001", "ERROR", "3", "2.00", "", "Cash", "UNKNOWN", "2023-01-05")])
    rec = result["transactions"][0]

    assert rec["item"] == "Coffee"
    assert rec["quantity"] == 3
    assert rec["unit_price"] == Decimal("2.00")
    assert rec["total_spent"] == Decimal("6.00")
    assert rec["location"] == "In-store"
    assert rec["payment_method"] == "Cash"
    assert rec["transaction_date"] == date(2023, 1, 5)
    assert rec["day_of_week"] == "Thursday"
    assert rec["transaction_month"] == "January"
    assert sorted(rec["metadata"]["imputed"]) == ["item", "location", "total_spent"]


def test_full_sample(pipeline, raw_rows):
    result = pipeline.clean(raw_rows)
    records = by_id(result)

    assert result["success"] is True
    assert sorted(records) == ["TXN_1001", "TXN_1002", "TXN_1004", "TXN_1005", "TXN_1006"]

    assert records["TXN_1004"]["unit_price"] == Decimal("4.00")
    assert records["TXN_1004"]["item"] == "Smoothie"
    assert records["TXN_1004"]["payment_method"] == "Cash"
    # TXN_1003 was dropped before date repair, so TXN_1002 is the nearest earlier ID
    assert records["TXN_1004"]["transaction_date"] == date(2023, 2, 10)

    assert records["TXN_1005"]["quantity"] == 2
    assert (records["TXN_1005"]["location"], records["TXN_1005"]["payment_method"]) == ("In-store", "Cash")

    assert records["TXN_1006"]["transaction_date"] == date(2023, 1, 20)
    assert records["TXN_1006"]["item"] == "Juice"


def test_unrecoverable_record_is_dropped_and_counted(pipeline, raw_rows):
    result = pipeline.clean(raw_rows)

    assert result["audit"]["drop_count"] == 1
    assert result["audit"]["dropped"][0]["transaction_id"] == "TXN_1003"
    assert "TXN_1003" not in by_id(result)
    assert result["stats"]["dq"]["dropped_rows"] == 1
    assert result["audit"]["dq_report"]["summary"]["input_rows"] == 6


def test_output_has_no_nulls_in_required_fields(pipeline, raw_rows):
    result = pipeline.clean(raw_rows)
    for rec in result["transactions"]:
        for field in ("item", "quantity", "unit_price", "total_spent", "transaction_date"):
            assert rec[field] is not None
    assert result["audit"]["dq_report"]["summary"]["remaining_nulls"] == 0


def test_imputed_records_satisfy_total_invariant(pipeline, raw_rows):
    result = pipeline.clean(raw_rows)
    for rec in result["transactions"]:
        assert abs(rec["quantity"] * rec["unit_price"] - rec["total_spent"]) <= Decimal("0.01")


def test_leading_missing_date_stays_null_and_is_reported():
    rows = [make_row("A1", "Tea", "1", "1.50", "1.50", "Cash", "In-store", "UNKNOWN"),
            make_row("A2", "Tea", "1", "1.50", "1.50", "Cash", "In-store", "2023-04-04")]
    result = CleaningPipeline(seed=0).clean(rows)
    records = by_id(result)

    assert records["A1"]["transaction_date"] is None
    assert records["A1"]["day_of_week"] is None
    assert result["audit"]["dq_report"]["summary"]["remaining_nulls"] == 1
    assert result["audit"]["dq_report"]["flag_counts"]["MISSING_DATE"] == 1
    # undated rows lead the final view
    assert result["final_view"][0]["Transaction ID"] == "A1"
    assert result["final_view"][0]["Transaction Date"] is None


def test_duplicate_identifiers_are_reported_not_removed():
    rows = [make_row("DUP", "Tea", "1", "1.50", "1.50", "Cash", "In-store", "2023-01-01"),
            make_row("DUP", "Cake", "1", "3.00", "3.00", "Cash", "In-store", "2023-01-02"),
            make_row("", "Cookie", "1", "1.00", "1.00", "Cash", "In-store", "2023-01-03")]
    result = CleaningPipeline(seed=0).clean(rows)
    report = result["audit"]["dq_report"]

    assert report["duplicates"] == {"DUP": 2}
    assert report["summary"]["has_duplicates"] is True
    assert report["summary"]["missing_id_count"] == 1
    assert len(result["transactions"]) == 3


def test_duplicates_counted_before_drops():
    rows = [make_row("DUP", "Tea", "", "", "1.50", "Cash", "In-store", "2023-01-01"),
            make_row("DUP", "Tea", "1", "1.50", "1.50", "Cash", "In-store", "2023-01-01")]
    result = CleaningPipeline(seed=0).clean(rows)
    assert result["audit"]["dq_report"]["duplicates"] == {"DUP": 2}
    assert len(result["transactions"]) == 1


def test_final_view_is_formatted_and_sorted_by_date(pipeline, raw_rows):
    view = pipeline.clean(raw_rows)["final_view"]

    assert [r["Transaction ID"] for r in view] == ["TXN_1001", "TXN_1005", "TXN_1006", "TXN_1002", "TXN_1004"]
    first = view[0]
    assert first == {
        "Transaction ID": "TXN_1001",
        "Item Purchased": "Coffee",
        "Quantity": 3,
        "Price per Unit ($)": "2.00",
        "Total Spent ($)": "6.00",
        "Payment Method": "Cash",
        "Location": "In-store",
        "Transaction Date": "01/05/2023",
        "Day": "Thursday",
        "Month": "January",
    }


def test_malformed_values_reported(pipeline, raw_rows):
    report = pipeline.clean(raw_rows)["audit"]["dq_report"]
    malformed = [f for f in report["flagged_rows"] if f["flag_type"] == "MALFORMED_VALUE"]
    assert [(f["transaction_id"], f["field"]) for f in malformed] == [("TXN_1005", "quantity")]
    assert report["flag_counts"]["UNRECOVERABLE_RECORD"] == 1


def test_inconsistent_supplied_total_is_flagged_but_kept():
    rows = [make_row("B1", "Tea", "2", "1.50", "9.99", "Cash", "In-store", "2023-01-01")]
    result = CleaningPipeline(seed=0).clean(rows)
    assert result["transactions"][0]["total_spent"] == Decimal("9.99")
    assert result["stats"]["dq"]["inconsistent_totals"] == 1


def test_ambiguous_price_uses_injected_generator():
    rows = [make_row(f"C{i:03d}", "", "1", "3.00", "3.00", "Cash", "In-store", "2023-01-01") for i in range(200)]
    items = [r["item"] for r in CleaningPipeline(rng=np.random.default_rng(3)).clean(rows)["transactions"]]
    assert set(items) == {"Cake", "Juice"}


def test_oversized_quantity_is_rejected_not_fatal():
    rows = [make_row("T1", "Tea", "1" * 30, "1.50", "", "Cash", "In-store", "2023-01-01"),
            make_row("T2", "Tea", "1" * 30, "1.50", "3.00", "Cash", "In-store", "2023-01-01")]
    result = CleaningPipeline(seed=0).clean(rows)
    records = by_id(result)

    assert result["success"] is True
    assert result["audit"]["drop_count"] == 1
    assert records["T2"]["quantity"] == 2
    assert result["audit"]["dq_report"]["flag_counts"]["MALFORMED_VALUE"] == 2


def test_half_cent_price_item_matches_written_price():
    rows = [make_row("H1", "", "2", "", "4.01", "Cash", "In-store", "2023-01-01")]
    result = CleaningPipeline(seed=0).clean(rows)
    rec = result["transactions"][0]

    assert rec["unit_price"] == Decimal("2.01")
    assert rec["item"] is None
    assert result["final_view"][0]["Price per Unit ($)"] == "2.01"
    assert result["audit"]["dq_report"]["flag_counts"]["AMBIGUOUS_MAPPING"] == 1


def test_remaining_null_count_is_diagnostic():
    records = build_records([make_row("X", None, None, None, None, None, None, None)])
    assert DataQualityEngine.count_remaining_nulls(records) == 1
