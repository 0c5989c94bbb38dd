import json

import pytest

from invoice_app.config import get_settings


class FakeAIService:
    """Stands in for the Gemini-backed AIService; records every prompt it gets."""

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.prompts = []
        self.azure_calls = []

    async def generate_text(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response

    async def extract_text_with_azure(self, file_path):
        self.azure_calls.append(file_path)
        return "azure text"


@pytest.fixture
def fake_ai():
    def make(response="", error=None):
        if not isinstance(response, str):
            response = json.dumps(response)
        return FakeAIService(response=response, error=error)

    return make


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("UPLOAD_FOLDER", str(tmp_path / "uploads"))
    monkeypatch.delenv("OCR_BACKEND", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
