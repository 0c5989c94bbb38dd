import asyncio
import logging
from functools import lru_cache
from typing import Optional

from azure.ai.documentintelligence import DocumentIntelligenceClient
from azure.core.credentials import AzureKeyCredential
from google import genai
from google.genai import types

from invoice_app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AIService:
    """
    Unified service for the network-backed collaborators: Google Gemini for
    text understanding and (optionally) Azure Document Intelligence for OCR.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.model_name = self.settings.gemini_model

        self.genai_client = None
        if self.settings.gemini_api_key:
            self.genai_client = genai.Client(api_key=self.settings.gemini_api_key)
        else:
            logger.warning("GEMINI_API_KEY not found in environment variables.")

        self.azure_client = None
        if self.settings.azure_endpoint and self.settings.azure_key:
            self.azure_client = DocumentIntelligenceClient(
                endpoint=self.settings.azure_endpoint,
                credential=AzureKeyCredential(self.settings.azure_key),
            )

    async def generate_text(self, prompt: str) -> str:
        """
        Send a prompt to Gemini and return the raw response text.
        The text is not guaranteed to be JSON, nor to be free of markdown.
        """
        if self.genai_client is None:
            raise RuntimeError("GEMINI_API_KEY is not set. Add it to your .env file.")

        logger.info(f"Calling Gemini model {self.model_name}")

        # Blocking SDK call runs in a thread, bounded by a timeout
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.genai_client.models.generate_content,
                    model=self.model_name,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        response_mime_type="application/json",
                        temperature=self.settings.gemini_temperature,
                    ),
                ),
                timeout=self.settings.gemini_timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"Gemini did not answer within {self.settings.gemini_timeout_seconds:g} seconds"
            )

        return response.text or ""

    async def extract_text_with_azure(self, file_path: str) -> str:
        """OCR a document with Azure Document Intelligence's read model."""
        if self.azure_client is None:
            raise RuntimeError(
                "Azure Document Intelligence is not configured. "
                "Set AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT and AZURE_DOCUMENT_INTELLIGENCE_KEY."
            )

        logger.info(f"Extracting text from {file_path} with Azure Intelligence")

        def analyze() -> str:
            with open(file_path, "rb") as f:
                poller = self.azure_client.begin_analyze_document(model_id="prebuilt-read", body=f)
            # result() waits on the poller; the request body is already sent
            return poller.result().content or ""

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(analyze),
                timeout=self.settings.azure_ocr_timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"Azure OCR did not finish within {self.settings.azure_ocr_timeout_seconds:g} seconds"
            )


@lru_cache(maxsize=1)
def get_ai_service() -> AIService:
    return AIService()
