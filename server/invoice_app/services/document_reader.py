import asyncio
import io
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
import pytesseract
from pdfminer.high_level import extract_text
from PIL import Image

from invoice_app.config import get_settings
from invoice_app.services.ai_service import AIService
from invoice_app.utils import is_blank

logger = logging.getLogger(__name__)


class DocumentReadError(Exception):
    """The underlying reader could not open or parse the document."""


def extract_text_from_pdf(file_bytes: bytes) -> str:
    """Extract the text layer of a PDF. Returns '' when nothing can be read."""
    try:
        return extract_text(io.BytesIO(file_bytes)) or ""
    except Exception as e:
        logger.error(f"PDF parsing error: {e}")
        return ""


def _ocr_with_tesseract(file_path: str, language: str) -> str:
    with Image.open(file_path) as img:
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        return pytesseract.image_to_string(img, lang=language)


async def extract_text_from_image(file_path: str, ai_service: Optional[AIService] = None) -> str:
    """
    OCR an invoice image with a fixed language profile.
    Uses Azure Document Intelligence when OCR_BACKEND=azure, tesseract otherwise.
    Returns '' on failure.
    """
    settings = get_settings()
    try:
        if settings.ocr_backend == "azure":
            if ai_service is None:
                raise RuntimeError("OCR_BACKEND=azure needs an AIService")
            text = await ai_service.extract_text_with_azure(file_path)
        else:
            text = await asyncio.to_thread(_ocr_with_tesseract, file_path, settings.ocr_language)
        return text or ""
    except Exception as e:
        logger.error(f"Image text extraction error: {e}")
        return ""


def read_spreadsheet_rows(file_path: str) -> List[Dict[str, Any]]:
    """
    Read the first sheet of a workbook into row records keyed by column header.
    Blank cells are left out of the record, so a missing value and an empty
    cell look the same to the caller. Rows with no values at all are skipped.
    """
    try:
        df = pd.read_excel(file_path, sheet_name=0)
    except Exception as e:
        raise DocumentReadError(f"Could not read spreadsheet {file_path}: {e}") from e

    rows = []
    for record in df.to_dict(orient="records"):
        row = {str(k): v for k, v in record.items() if not is_blank(v) and not pd.isna(v)}
        if row:
            rows.append(row)
    return rows
