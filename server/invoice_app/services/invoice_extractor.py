import json
import logging
import re

from pydantic import ValidationError

from invoice_app.models.extraction_schema import ExtractedInvoice
from invoice_app.models.output_schema import (
    NOT_AVAILABLE,
    CanonicalResult,
    Customer,
    ErrorKind,
    ErrorResult,
    ExtractionResult,
    Invoice,
    Product,
)
from invoice_app.services.ai_service import AIService
from invoice_app.services.prompts import build_extraction_prompt

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?[ \t]*\n?|\n?```", re.IGNORECASE)

PARSE_FAILED_MESSAGE = "Failed to parse detailed invoice information."
SCHEMA_FAILED_MESSAGE = "Extracted invoice information does not match the expected structure."
UPSTREAM_FAILED_MESSAGE = "Advanced AI extraction failed. Please check the file quality."


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```) the model may wrap around its JSON."""
    return _CODE_FENCE.sub("", text or "").strip()


def to_canonical(extracted: ExtractedInvoice) -> CanonicalResult:
    """
    Map one extracted invoice onto the canonical shape.

    The Invoice row summarises the document, so it carries only the first
    product's name and quantity; the full list goes to `products`. The source
    schema has no per-line tax, so every product gets the invoice-level tax.
    """
    first = extracted.products[0] if extracted.products else None

    invoice = Invoice(
        serial_number=extracted.invoice_number,
        customer_name=extracted.customer_details.name,
        product_name=first.description if first else NOT_AVAILABLE,
        quantity=first.quantity if first else 0.0,
        tax=extracted.tax_amount,
        total_amount=extracted.total_amount,
        date=extracted.invoice_date,
    )

    products = [
        Product(
            name=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            tax=extracted.tax_amount,
            price_with_tax=item.total,
            discount=NOT_AVAILABLE,
        )
        for item in extracted.products
    ]

    customer = Customer(
        name=extracted.customer_details.name,
        phone_number=extracted.customer_details.phone,
        total_purchase_amount=extracted.total_amount,
    )

    return CanonicalResult(invoices=[invoice], products=products, customers=[customer])


def parse_extraction_response(text_response: str) -> ExtractionResult:
    """Turn raw model output into a CanonicalResult, or an ErrorResult saying why not."""
    cleaned = strip_code_fences(text_response)

    try:
        parsed = json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        logger.error(f"Error parsing JSON response: {e}")
        return ErrorResult(error=PARSE_FAILED_MESSAGE, raw_response=cleaned, kind=ErrorKind.MALFORMED_RESPONSE)

    if not isinstance(parsed, dict):
        logger.error(f"Expected a JSON object from the model, got {type(parsed).__name__}")
        return ErrorResult(
            error=SCHEMA_FAILED_MESSAGE,
            details=f"Expected a JSON object, got {type(parsed).__name__}",
            raw_response=cleaned,
            kind=ErrorKind.INVALID_SCHEMA,
        )

    try:
        extracted = ExtractedInvoice.model_validate(parsed)
    except (ValidationError, RecursionError) as e:
        logger.error(f"Error coercing extracted invoice: {e}")
        return ErrorResult(error=SCHEMA_FAILED_MESSAGE, details=str(e), raw_response=cleaned, kind=ErrorKind.INVALID_SCHEMA)

    return to_canonical(extracted)


async def extract_invoice_details(raw_text: str, ai_service: AIService) -> ExtractionResult:
    """
    1. Asks the text-understanding model for the fixed invoice JSON schema.
    2. Strips code fences and parses the answer; no retries.
    3. Coerces every field defensively and maps it to the canonical shape.
    """
    prompt = build_extraction_prompt(raw_text)
    logger.info(f"🤖 Generating structured JSON from {len(raw_text)} characters of text")

    try:
        text_response = await ai_service.generate_text(prompt)
    except Exception as e:
        error_msg = str(e)
        details = None
        if "429" in error_msg or "RESOURCE_EXHAUSTED" in error_msg or "Quota exceeded" in error_msg:
            details = "The Gemini API rate limit/quota was exceeded. Please check your billing details or try again later."
        logger.error(f"Error generating content from Gemini API: {error_msg}")
        return ErrorResult(
            error=UPSTREAM_FAILED_MESSAGE,
            details=details,
            raw_response=error_msg,
            kind=ErrorKind.UPSTREAM_CALL_FAILURE,
        )

    return parse_extraction_response(text_response)
