import asyncio
import math

import pandas as pd
import pytest

from invoice_app.models.output_schema import CanonicalResult, ErrorKind, ErrorResult, to_response
from invoice_app.services.document_reader import read_spreadsheet_rows
from invoice_app.services.excel_processor import process_excel, reconcile, resolve_column
from invoice_app.utils import clean_text, parse_number


class TestParseNumber:
    @pytest.mark.parametrize("value, expected", [
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        ("NaN", 0.0),
        ("inf", 0.0),
        ([1, 2], 0.0),
        ("12.5", 12.5),
        (7, 7.0),
        ("$1,234.50", 1234.5),
        (" 42 ", 42.0),
    ])
    def test_coerces_to_finite_number(self, value, expected):
        result = parse_number(value)
        assert result == expected
        assert not math.isnan(result)

    @pytest.mark.parametrize("value", ["2 x 5", "12abc", "1e5 units", "Qty 3 of 4", "1.2.3", "--5"])
    def test_text_with_extra_content_is_not_a_number(self, value):
        assert parse_number(value) == 0.0

    @pytest.mark.parametrize("value, expected", [
        ("$ 1,250.00", 1250.0),
        ("-3.5", -3.5),
        ("1.5e3", 1500.0),
        ("₹99", 99.0),
    ])
    def test_currency_and_separators_are_stripped(self, value, expected):
        assert parse_number(value) == expected

    def test_clean_text_defaults_and_integral_floats(self):
        assert clean_text(None) == "N/A"
        assert clean_text("   ") == "N/A"
        assert clean_text(9876543210.0) == "9876543210"
        assert clean_text(pd.Timestamp("2024-11-12")) == "2024-11-12"
        assert clean_text(" Alice ") == "Alice"


class TestReconcile:
    def test_empty_rows_is_an_error(self):
        result = reconcile([])
        assert isinstance(result, ErrorResult)
        assert result.kind == ErrorKind.EMPTY_DATASET
        assert "no data found" in result.error.lower()
        assert "column names" in result.error

    def test_repeated_customer_is_aggregated(self):
        rows = [
            {"Customer Name": "Alice", "Product Name": "Pen", "Quantity": 2, "Total Amount": 100},
            {"Customer Name": "Alice", "Product Name": "Ink", "Quantity": 1, "Total Amount": 50},
        ]
        result = reconcile(rows)

        assert isinstance(result, CanonicalResult)
        customers = to_response(result)["customers"]
        assert customers == [{"name": "Alice", "phoneNumber": "N/A", "totalPurchaseAmount": 150.0}]
        assert len(result.invoices) == 2
        assert len(result.products) == 2

    def test_customer_totals_sum_per_exact_name(self):
        rows = [
            {"Customer Name": "Bob", "Total": 10},
            {"Customer Name": "bob", "Total": 5},
            {"Customer Name": "Bob", "Total": 2.5},
        ]
        result = reconcile(rows)
        totals = {c.name: c.total_purchase_amount for c in result.customers}
        assert totals == {"Bob": 12.5, "bob": 5.0}
        assert [c.name for c in result.customers] == ["Bob", "bob"]

    def test_first_seen_phone_is_kept(self):
        rows = [
            {"Customer_Name": "Carol", "Phone Number": "111", "Total_Amount": 1},
            {"Customer_Name": "Carol", "Phone Number": "222", "Total_Amount": 2},
        ]
        result = reconcile(rows)
        assert len(result.customers) == 1
        assert result.customers[0].phone_number == "111"
        assert result.customers[0].total_purchase_amount == 3.0

    def test_alias_priority_and_defaults(self):
        rows = [
            {"Serial Number": "S-9", "Invoice Number": "INV-77", "Customer Name": "Dan", "Invoice_Date": "2024-01-02"},
            {"Customer Name": "Eve"},
        ]
        result = reconcile(rows)

        first, second = result.invoices
        assert first.serial_number == "INV-77"
        assert first.date == "2024-01-02"
        assert second.serial_number == "INV-2"
        assert second.product_name == "N/A"
        assert second.date == "N/A"
        assert second.quantity == 0.0
        assert result.products[1].discount == "N/A"

    def test_blank_alias_falls_through_to_next(self):
        row = {"Quantity": "", "qty": "3"}
        assert resolve_column(row, "quantity") == "3"
        assert reconcile([row]).invoices[0].quantity == 3.0

    def test_non_numeric_values_become_zero(self):
        rows = [{"Customer Name": "Fay", "Quantity": "lots", "Tax": None, "Total Amount": "n/a", "Unit Price": "?"}]
        result = reconcile(rows)
        invoice, product = result.invoices[0], result.products[0]
        assert (invoice.quantity, invoice.tax, invoice.total_amount) == (0.0, 0.0, 0.0)
        assert product.unit_price == 0.0
        assert result.customers[0].total_purchase_amount == 0.0

    def test_product_mirrors_row(self):
        rows = [{"Product_Name": "Lamp", "qty": 4, "tax_amount": 18, "Total": 118, "Unit_Price": 25, "Discount": "10%"}]
        product = to_response(reconcile(rows))["products"][0]
        assert product == {
            "name": "Lamp",
            "quantity": 4.0,
            "unitPrice": 25.0,
            "tax": 18.0,
            "priceWithTax": 118.0,
            "discount": "10%",
        }

    def test_malformed_row_becomes_error_result(self):
        result = reconcile([{"Customer Name": "Gus"}, "not a row"])
        assert isinstance(result, ErrorResult)
        assert result.kind == ErrorKind.EXTRACTION_FAILURE
        assert result.error.startswith("Excel File Processing Failed")
        assert "Unexpected column names" in result.error
        assert result.details


class TestSpreadsheetFiles:
    def test_reads_first_sheet_and_drops_blank_cells(self, tmp_path):
        path = tmp_path / "invoices.xlsx"
        with pd.ExcelWriter(path) as writer:
            pd.DataFrame({
                "Customer Name": ["Alice", "Alice"],
                "Phone Number": [9999999999, None],
                "Total Amount": [100, 50],
            }).to_excel(writer, sheet_name="First", index=False)
            pd.DataFrame({"Customer Name": ["Ignored"]}).to_excel(writer, sheet_name="Second", index=False)

        rows = read_spreadsheet_rows(str(path))
        assert len(rows) == 2
        assert "Phone Number" not in rows[1]
        assert all(row["Customer Name"] == "Alice" for row in rows)

    def test_blank_rows_between_data_are_skipped(self, tmp_path):
        path = tmp_path / "gaps.xlsx"
        pd.DataFrame({
            "Customer Name": ["Alice", None, "Alice"],
            "Total Amount": [100, None, 50],
        }).to_excel(path, index=False)

        rows = read_spreadsheet_rows(str(path))
        assert len(rows) == 2

        result = asyncio.run(process_excel(str(path)))
        assert [i.serial_number for i in result.invoices] == ["INV-1", "INV-2"]
        assert len(result.products) == 2
        assert [(c.name, c.total_purchase_amount) for c in result.customers] == [("Alice", 150.0)]

    def test_process_excel_end_to_end(self, tmp_path):
        path = tmp_path / "invoices.xlsx"
        pd.DataFrame({
            "Customer Name": ["Alice", "Alice"],
            "Product Name": ["Pen", "Ink"],
            "Quantity": [1, 2],
            "Total Amount": [100, 50],
        }).to_excel(path, index=False)

        result = asyncio.run(process_excel(str(path)))
        assert isinstance(result, CanonicalResult)
        assert to_response(result)["customers"] == [
            {"name": "Alice", "phoneNumber": "N/A", "totalPurchaseAmount": 150.0}
        ]

    def test_header_only_sheet_is_empty_dataset(self, tmp_path):
        path = tmp_path / "empty.xlsx"
        pd.DataFrame(columns=["Customer Name", "Total Amount"]).to_excel(path, index=False)

        result = asyncio.run(process_excel(str(path)))
        assert isinstance(result, ErrorResult)
        assert result.kind == ErrorKind.EMPTY_DATASET

    def test_unreadable_workbook_is_an_error(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"this is not a workbook")

        result = asyncio.run(process_excel(str(path)))
        assert isinstance(result, ErrorResult)
        assert result.kind == ErrorKind.EXTRACTION_FAILURE
