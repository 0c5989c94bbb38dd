import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str]
    gemini_model: str
    gemini_timeout_seconds: float
    gemini_temperature: float
    ocr_backend: str
    ocr_language: str
    azure_endpoint: Optional[str]
    azure_key: Optional[str]
    azure_ocr_timeout_seconds: float
    upload_folder: str
    cors_origins: List[str]
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment (and a local .env file, if any)."""
    ocr_backend = os.getenv("OCR_BACKEND", "tesseract").strip().lower()
    if ocr_backend not in ("tesseract", "azure"):
        raise ValueError(f"Unknown OCR_BACKEND '{ocr_backend}'. Use 'tesseract' or 'azure'.")

    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")

    return Settings(
        # API_KEY is what the first version of the service read
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        gemini_timeout_seconds=_env_float("GEMINI_TIMEOUT_SECONDS", 300.0),
        gemini_temperature=_env_float("GEMINI_TEMPERATURE", 0.3),
        ocr_backend=ocr_backend,
        ocr_language=os.getenv("OCR_LANGUAGE", "eng"),
        azure_endpoint=os.getenv("AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT"),
        azure_key=os.getenv("AZURE_DOCUMENT_INTELLIGENCE_KEY"),
        azure_ocr_timeout_seconds=_env_float("AZURE_OCR_TIMEOUT_SECONDS", 120.0),
        upload_folder=os.getenv("UPLOAD_FOLDER", "uploads"),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
