import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from invoice_app.models.output_schema import (
    CanonicalResult,
    Customer,
    ErrorKind,
    ErrorResult,
    ExtractionResult,
    Invoice,
    Product,
)
from invoice_app.services.document_reader import DocumentReadError, read_spreadsheet_rows
from invoice_app.utils import clean_text, is_blank, parse_number

logger = logging.getLogger(__name__)

# Canonical field -> accepted source headers, in priority order. First non-blank match wins.
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "serial_number": ("Invoice Number", "Serial Number", "Serial_Number"),
    "customer_name": ("Customer Name", "Customer_Name"),
    "product_name": ("Product Name", "Product_Name"),
    "quantity": ("Quantity", "qty"),
    "tax": ("Tax", "tax_amount"),
    "total_amount": ("Total Amount", "Total_Amount", "Total"),
    "date": ("Date", "Invoice Date", "Invoice_Date"),
    "unit_price": ("Unit Price", "Unit_Price"),
    "discount": ("Discount",),
    "phone_number": ("Phone Number", "Phone_Number"),
}

NO_DATA_MESSAGE = (
    "No data found in the Excel file. "
    "The first sheet may be empty, or its column names may not match the expected headers "
    "(e.g. 'Customer Name', 'Product Name', 'Quantity', 'Total Amount')."
)

FAILURE_HINTS = """
            Possible reasons:
            - Incorrect file format
            - Unexpected column names
            - Empty or incorrectly formatted spreadsheet"""


def resolve_column(row: Mapping[str, Any], field: str) -> Optional[Any]:
    """Return the first non-blank value among the field's header aliases."""
    for alias in COLUMN_ALIASES[field]:
        value = row.get(alias)
        if not is_blank(value):
            return value
    return None


def _failure(e: Exception) -> ErrorResult:
    return ErrorResult(
        error=f"Excel File Processing Failed: {e}.{FAILURE_HINTS}",
        details=f"{type(e).__name__}: {e}",
        kind=ErrorKind.EXTRACTION_FAILURE,
    )


def reconcile(rows: Sequence[Mapping[str, Any]]) -> ExtractionResult:
    """
    1. Resolves every canonical field of each row through COLUMN_ALIASES.
    2. Emits one Invoice and one Product per row.
    3. Aggregates customers by exact name: totals are summed, the first
       phone number seen is kept.
    4. Returns an ErrorResult instead of raising on empty or broken input.
    """
    if not rows:
        logger.warning("Spreadsheet produced no rows")
        return ErrorResult(error=NO_DATA_MESSAGE, kind=ErrorKind.EMPTY_DATASET)

    try:
        invoices = []
        products = []
        customers: Dict[str, Customer] = {}  # insertion order == first-seen order

        for index, row in enumerate(rows):
            invoice = Invoice(
                serial_number=clean_text(resolve_column(row, "serial_number"), default=f"INV-{index + 1}"),
                customer_name=clean_text(resolve_column(row, "customer_name")),
                product_name=clean_text(resolve_column(row, "product_name")),
                quantity=parse_number(resolve_column(row, "quantity")),
                tax=parse_number(resolve_column(row, "tax")),
                total_amount=parse_number(resolve_column(row, "total_amount")),
                date=clean_text(resolve_column(row, "date")),
            )

            product = Product(
                name=invoice.product_name,
                quantity=invoice.quantity,
                unit_price=parse_number(resolve_column(row, "unit_price")),
                tax=invoice.tax,
                price_with_tax=invoice.total_amount,
                discount=clean_text(resolve_column(row, "discount")),
            )

            invoices.append(invoice)
            products.append(product)

            existing = customers.get(invoice.customer_name)
            if existing is not None:
                existing.total_purchase_amount += invoice.total_amount
            else:
                customers[invoice.customer_name] = Customer(
                    name=invoice.customer_name,
                    phone_number=clean_text(resolve_column(row, "phone_number")),
                    total_purchase_amount=invoice.total_amount,
                )

        logger.info(f"Reconciled {len(invoices)} rows into {len(customers)} customers")
        return CanonicalResult(invoices=invoices, products=products, customers=list(customers.values()))

    except Exception as e:
        logger.exception("Excel Processing Error")
        return _failure(e)


async def process_excel(file_path: str) -> ExtractionResult:
    """Read the first sheet of a workbook and reconcile its rows."""
    logger.info(f"📄 Processing Excel natively: {file_path}")
    try:
        rows = await asyncio.to_thread(read_spreadsheet_rows, file_path)
    except DocumentReadError as e:
        logger.error(f"Excel Processing Error: {e}")
        return _failure(e)

    return reconcile(rows)
