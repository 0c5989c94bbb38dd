import math
import numbers
import re
from datetime import datetime, time
from pathlib import Path
from typing import Any

from invoice_app.models.output_schema import NOT_AVAILABLE

# currency symbols, thousands separators and whitespace
_NUMBER_NOISE = re.compile(r"[\s,$€£¥₹]")
_NUMBER = re.compile(r"-?\d+(\.\d+)?([eE][-+]?\d+)?")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def parse_number(value: Any) -> float:
    """Coerce a loosely-typed value to a finite float, falling back to 0."""
    if is_blank(value):
        return 0.0

    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = float(text)
        except ValueError:
            cleaned = _NUMBER_NOISE.sub("", text)
            if not _NUMBER.fullmatch(cleaned):
                return 0.0
            number = float(cleaned)
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def clean_text(value: Any, default: str = NOT_AVAILABLE) -> str:
    """Render a cell/field as a string, or `default` when it is blank."""
    if is_blank(value):
        return default

    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        # pandas reads phone numbers and ids as floats (9999.0)
        return str(int(value))
    if isinstance(value, datetime) and value.time() == time(0, 0):
        return value.date().isoformat()

    text = str(value).strip()
    return text or default


def file_extension(file_path: str) -> str:
    """Lower-cased extension including the dot ('.pdf'), or '' if there is none."""
    return Path(file_path).suffix.lower()
