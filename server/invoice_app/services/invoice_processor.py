import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

from invoice_app.config import get_settings
from invoice_app.models.output_schema import ErrorKind, ErrorResult, ExtractionResult
from invoice_app.services.ai_service import AIService, get_ai_service
from invoice_app.services.document_reader import extract_text_from_image, extract_text_from_pdf
from invoice_app.services.excel_processor import process_excel
from invoice_app.services.invoice_extractor import extract_invoice_details
from invoice_app.utils import file_extension

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = {".pdf"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
SPREADSHEET_EXTENSIONS = {".xlsx", ".xls"}

DIAGNOSTIC_HINTS = """
            Possible reasons:
            - Unclear or low-quality document
            - Unsupported document format
            - Extraction limitations"""


def _failed(message: str, details: str, kind: ErrorKind, raw_response: Optional[str] = None) -> ErrorResult:
    return ErrorResult(
        error=f"Invoice Processing Failed: {message}.{DIAGNOSTIC_HINTS}",
        details=details,
        raw_response=raw_response,
        kind=kind,
    )


def _wrap(inner: ErrorResult) -> ErrorResult:
    logger.error(f"Invoice Processing Error: {inner.error}")
    return _failed(
        inner.error,
        details=inner.details or inner.raw_response or inner.error,
        kind=inner.kind,
        raw_response=inner.raw_response,
    )


async def _read_pdf_text(file_path: str) -> str:
    content = await asyncio.to_thread(Path(file_path).read_bytes)
    return await asyncio.to_thread(extract_text_from_pdf, content)


async def _read_image_text(file_path: str, ai_service: Optional[AIService]) -> str:
    # only the Azure backend needs the AI service for OCR
    if ai_service is None and get_settings().ocr_backend == "azure":
        ai_service = get_ai_service()
    return await extract_text_from_image(file_path, ai_service)


async def _process_text_document(file_path: str, ext: str, ai_service: Optional[AIService]) -> ExtractionResult:
    if ext in PDF_EXTENSIONS:
        text = await _read_pdf_text(file_path)
    else:
        text = await _read_image_text(file_path, ai_service)

    if not text.strip():
        return ErrorResult(error="No text could be extracted from the document", kind=ErrorKind.EXTRACTION_FAILURE)
    logger.info(f"✅ Extracted {len(text)} characters of text")

    return await extract_invoice_details(text, ai_service or get_ai_service())


async def process_invoice(file_path: str, ai_service: Optional[AIService] = None) -> ExtractionResult:
    """
    Dispatch one uploaded document to its extraction path by extension and
    return either a CanonicalResult or an ErrorResult. Never raises.
    """
    start_time = time.time()
    ext = file_extension(file_path)
    logger.info(f"📄 Processing file: {file_path}")

    if ext not in PDF_EXTENSIONS | IMAGE_EXTENSIONS | SPREADSHEET_EXTENSIONS:
        logger.warning(f"Rejected {file_path}: unsupported extension '{ext}'")
        return _failed(
            f"unsupported file type '{ext or file_path}'",
            details=f"Unsupported file type: {ext or 'no extension'}",
            kind=ErrorKind.UNSUPPORTED_FORMAT,
        )

    try:
        if ext in SPREADSHEET_EXTENSIONS:
            extracted_data = await process_excel(file_path)
        else:
            extracted_data = await _process_text_document(file_path, ext, ai_service)
    except Exception as err:
        logger.exception("Invoice Processing Error")
        kind = ErrorKind.EXTRACTION_FAILURE if isinstance(err, OSError) else ErrorKind.UNEXPECTED
        return _failed(str(err) or type(err).__name__, details=f"{type(err).__name__}: {err}", kind=kind)

    if isinstance(extracted_data, ErrorResult):
        return _wrap(extracted_data)

    logger.info(f"🏁 Finished {Path(file_path).name} in {time.time() - start_time:.2f} seconds")
    return extracted_data
