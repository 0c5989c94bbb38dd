import asyncio
import logging
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from invoice_app.config import get_settings
from invoice_app.models.output_schema import to_response
from invoice_app.services.ai_service import AIService, get_ai_service
from invoice_app.services.invoice_processor import process_invoice

logger = logging.getLogger(__name__)

router = APIRouter()


def _write_file(path: Path, content: bytes):
    """Sync file write helper for asyncio.to_thread"""
    with open(path, "wb") as f:
        f.write(content)


@router.post("/process-invoice")
async def process_invoice_upload(
    invoice: Optional[UploadFile] = File(None),
    ai_service: AIService = Depends(get_ai_service),
):
    if invoice is None or not invoice.filename:
        return JSONResponse(status_code=400, content={"error": "No file part"})

    # one directory per upload so concurrent requests with the same filename don't collide
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base_dir = Path(get_settings().upload_folder) / f"{timestamp}_{uuid.uuid4().hex[:8]}"
    file_path = base_dir / Path(invoice.filename).name

    try:
        await asyncio.to_thread(base_dir.mkdir, parents=True, exist_ok=True)
        content = await invoice.read()
        await asyncio.to_thread(_write_file, file_path, content)
        logger.info(f"Saved file: {file_path}")

        result = await process_invoice(str(file_path), ai_service)
        return JSONResponse(status_code=200, content=to_response(result))

    except Exception as e:
        logger.exception("Failed to process invoice upload")
        return JSONResponse(status_code=500, content={"error": f"Failed to process invoice: {e}"})

    finally:
        await asyncio.to_thread(shutil.rmtree, base_dir, True)
