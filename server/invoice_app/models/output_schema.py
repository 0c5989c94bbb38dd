from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

NOT_AVAILABLE = "N/A"


class _CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(populate_by_name=True)


# 1. Invoice Schema (one per document, or one per spreadsheet row)
class Invoice(_CamelModel):
    serial_number: str = Field(default=NOT_AVAILABLE, alias="serialNumber", description="The invoice number or a generated placeholder")
    customer_name: str = Field(default=NOT_AVAILABLE, alias="customerName", description="The name of the buyer")
    product_name: str = Field(default=NOT_AVAILABLE, alias="productName", description="The first/primary product on the invoice")
    quantity: float = Field(default=0.0, description="Quantity of the primary product")
    tax: float = Field(default=0.0, description="The tax amount of the invoice")
    total_amount: float = Field(default=0.0, alias="totalAmount", description="The final amount payable")
    date: str = Field(default=NOT_AVAILABLE, description="The invoice date, free-form")


# 2. Product Schema (one per line item)
class Product(_CamelModel):
    name: str = Field(default=NOT_AVAILABLE, description="The name of the product/item")
    quantity: float = Field(default=0.0, description="The quantity purchased")
    unit_price: float = Field(default=0.0, alias="unitPrice", description="The base unit price")
    tax: float = Field(default=0.0, description="The tax amount applied")
    price_with_tax: float = Field(default=0.0, alias="priceWithTax", description="The line total including tax")
    discount: str = Field(default=NOT_AVAILABLE, description="The discount, as found in the source")


# 3. Customer Schema (identity is the exact name string)
class Customer(_CamelModel):
    name: str = Field(default=NOT_AVAILABLE, description="The name of the customer")
    phone_number: str = Field(default=NOT_AVAILABLE, alias="phoneNumber", description="The contact phone number")
    total_purchase_amount: float = Field(default=0.0, alias="totalPurchaseAmount", description="Sum of totals across this customer's invoices")


# 4. Root Extraction Schema
class CanonicalResult(_CamelModel):
    invoices: List[Invoice] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)
    customers: List[Customer] = Field(default_factory=list)


class ErrorKind(str, Enum):
    UNSUPPORTED_FORMAT = "unsupported_format"
    EXTRACTION_FAILURE = "extraction_failure"
    EMPTY_DATASET = "empty_dataset"
    UPSTREAM_CALL_FAILURE = "upstream_call_failure"
    MALFORMED_RESPONSE = "malformed_response"
    INVALID_SCHEMA = "invalid_schema"
    UNEXPECTED = "unexpected"


# 5. Error Schema (mutually exclusive with CanonicalResult)
class ErrorResult(BaseModel):
    error: str = Field(description="User-facing description of the failure")
    details: Optional[str] = Field(default=None, description="Raw failure text")
    raw_response: Optional[str] = Field(default=None, description="Upstream output that could not be used")
    kind: ErrorKind = Field(default=ErrorKind.UNEXPECTED, description="Failure classification")


ExtractionResult = Union[CanonicalResult, ErrorResult]


def is_error(result: ExtractionResult) -> bool:
    return isinstance(result, ErrorResult)


def to_response(result: ExtractionResult) -> Dict[str, Any]:
    """Serialize a result the way the upload endpoint returns it."""
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)
