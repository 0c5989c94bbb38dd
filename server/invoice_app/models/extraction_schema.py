"""Schema of the JSON the text-understanding model is asked to return.

The model output is untrusted: every field is coerced on its own, so a
missing key, a wrong type or a half-built nested object degrades to the
field default ("N/A" for text, 0 for numbers) instead of failing the whole
document.
"""
from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from invoice_app.models.output_schema import NOT_AVAILABLE
from invoice_app.utils import clean_text, parse_number


class CustomerDetails(BaseModel):
    name: str = Field(default=NOT_AVAILABLE, description="Customer full name")
    address: str = Field(default=NOT_AVAILABLE, description="Complete address")
    phone: str = Field(default=NOT_AVAILABLE, description="Phone number, if available")

    @field_validator("name", "address", "phone", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return clean_text(value)


class LineItem(BaseModel):
    description: str = Field(default=NOT_AVAILABLE, description="Product name/description")
    quantity: float = Field(default=0.0)
    unit_price: float = Field(default=0.0)
    total: float = Field(default=0.0, description="Line total")

    @field_validator("description", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("quantity", "unit_price", "total", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float:
        return parse_number(value)


class ExtractedInvoice(BaseModel):
    customer_details: CustomerDetails = Field(default_factory=CustomerDetails)
    products: List[LineItem] = Field(default_factory=list)
    total_amount: float = Field(default=0.0)
    tax_amount: float = Field(default=0.0)
    invoice_date: str = Field(default=NOT_AVAILABLE)
    invoice_number: str = Field(default=NOT_AVAILABLE)

    @field_validator("customer_details", mode="before")
    @classmethod
    def coerce_customer(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("products", mode="before")
    @classmethod
    def coerce_products(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item if isinstance(item, dict) else {} for item in value]

    @field_validator("total_amount", "tax_amount", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float:
        return parse_number(value)

    @field_validator("invoice_date", "invoice_number", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return clean_text(value)
