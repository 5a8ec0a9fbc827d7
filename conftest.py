import pytest

from cafesales.etl.pipeline import CleaningPipeline


COLUMNS = ["Transaction ID", "Item", "Quantity", "Price Per Unit", "Total Spent",
           "Payment Method", "Location", "Transaction Date"]


def make_row(tx_id, item, qty, price, total, payment, location, tx_date):
    return dict(zip(COLUMNS, [tx_id, item, qty, price, total, payment, location, tx_date]))


@pytest.fixture
def raw_rows():
    return [
        make_row("TXN_1001", "ERROR", "3", "2.00", "", "Cash", "UNKNOWN", "2023-01-05"),
        make_row("TXN_1002", "Cake", "2", "3.00", "6.00", "Credit Card", "Takeaway", "2023-02-10"),
        make_row("TXN_1003", "Tea", "", "", "4.50", "Digital Wallet", "", "2023-03-01"),
        make_row("TXN_1004", "", "4", "", "16.00", "", "In-store", "ERROR"),
        make_row("TXN_1005", "Salad", "ERROR", "5.00", "10.00", "UNKNOWN", "", "2023-01-20"),
        make_row("TXN_1006", "Juice", "1", "3.00", "3.00", "Digital Wallet", "Takeaway", "2023-13-45"),
    ]


@pytest.fixture
def pipeline():
    return CleaningPipeline(seed=7)


@pytest.fixture
def raw_csv(tmp_path, raw_rows):
    import pandas as pd

    path = tmp_path / "dirty_cafe_sales.csv"
    pd.DataFrame(raw_rows, columns=COLUMNS).to_csv(path, index=False)
    return path
