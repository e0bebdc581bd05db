"""
OCR service for extracting session figures from receipt and slip photos.

OCR is an external capability: a provider turns image bytes into text, and
``extract_session_fields`` turns that text into structured fields with a
confidence score. Nothing here feeds the financial totals directly; staff
review the extraction before a rolling record is created.
"""
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

import httpx

from junket.core.config import settings
from junket.services.financials import safe_number

logger = logging.getLogger(__name__)


class OCRError(Exception):
    """Raised when the OCR provider cannot be reached or returns an error."""


@dataclass
class OCRExtraction:
    """Fields read from an image, plus how many of the expected figures were found."""
    text: str
    confidence: float
    engine: str
    fields: Dict[str, str] = field(default_factory=dict)

    def amount(self, name: str) -> Optional[Decimal]:
        value = self.fields.get(name)
        return safe_number(value) if value is not None else None


_AMOUNT = r"([-+]?\(?\s*[\d,]+(?:\.\d+)?\s*\)?)"

FIELD_PATTERNS = {
    "rolling_amount": re.compile(r"(?:rolling|turnover|roll)\s*(?:amount)?\s*[:=]?\s*(?:HK\$|\$)?\s*" + _AMOUNT, re.I),
    "win_loss": re.compile(r"(?:win\s*/\s*loss|win[-\s]?loss|w/l|result)\s*[:=]?\s*(?:HK\$|\$)?\s*" + _AMOUNT, re.I),
    "buy_in_amount": re.compile(r"(?:buy[-\s]?in|cash\s*in)\s*[:=]?\s*(?:HK\$|\$)?\s*" + _AMOUNT, re.I),
    "buy_out_amount": re.compile(r"(?:buy[-\s]?out|cash[-\s]?out)\s*[:=]?\s*(?:HK\$|\$)?\s*" + _AMOUNT, re.I),
}

TEXT_PATTERNS = {
    "table_number": re.compile(r"table\s*(?:no\.?|number|#)?\s*[:=]?\s*([A-Z]*\d[A-Z0-9-]*)", re.I),
    "venue": re.compile(r"(?:venue|casino)\s*[:=]\s*([^\n]+)", re.I),
    "game_type": re.compile(r"\b(baccarat|blackjack|roulette|sic\s*bo|poker|slots)\b", re.I),
    "date": re.compile(r"\b(\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}/\d{2,4})\b"),
    "time": re.compile(r"\b(\d{1,2}:\d{2}(?::\d{2})?)\b"),
}


def _normalize_amount(raw: str) -> str:
    """Turn '1,200.50' into '1200.50' and accounting '(500)' into '-500'."""
    text = re.sub(r"[\s,]", "", raw)
    if text.startswith("(") and text.endswith(")"):
        text = "-" + text[1:-1]
    return text.strip("()")


def extract_session_fields(text: str, engine: str = "text") -> OCRExtraction:
    """Pull session figures out of OCR text. Confidence is the share of the four figures found."""
    fields: Dict[str, str] = {}

    for name, pattern in FIELD_PATTERNS.items():
        match = pattern.search(text or "")
        if match:
            fields[name] = _normalize_amount(match.group(1))

    for name, pattern in TEXT_PATTERNS.items():
        match = pattern.search(text or "")
        if match:
            fields[name] = match.group(1).strip()

    found = sum(1 for name in FIELD_PATTERNS if name in fields)
    confidence = round(found / len(FIELD_PATTERNS), 2)
    if not found:
        logger.warning("No session figures found in OCR text")

    return OCRExtraction(text=text or "", confidence=confidence, engine=engine, fields=fields)


async def _ocr_ocrspace(file_content: bytes, filename: str) -> str:
    """Send an image to OCR.space and return the recognised text."""
    data = {
        "apikey": settings.OCR_API_KEY or "helloworld",
        "language": "eng",
        "isOverlayRequired": False,
        "detectOrientation": True,
    }
    files = {"file": (filename, file_content)}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                settings.OCR_API_URL, files=files, data=data, timeout=settings.OCR_TIMEOUT_SECONDS
            )
            response.raise_for_status()
            result = response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"OCR.space HTTP error: {e.response.status_code} - {e.response.text}")
        raise OCRError(f"OCR provider returned {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"OCR.space request failed: {e}")
        raise OCRError("OCR provider is unreachable") from e

    if result.get("OCRExitCode") == 1:
        parsed_results = result.get("ParsedResults") or []
        if parsed_results:
            return parsed_results[0].get("ParsedText", "")

    error_message = result.get("ErrorMessage") or ["Unknown error"]
    if isinstance(error_message, list):
        error_message = error_message[0] if error_message else "Unknown error"
    logger.error(f"OCR.space error: {error_message}")
    raise OCRError(f"OCR.space error: {error_message}")


async def parse_session_image(file_content: bytes, filename: str) -> OCRExtraction:
    """Run the configured OCR provider over an image and extract session fields."""
    provider = settings.OCR_PROVIDER
    if provider == "ocrspace":
        text = await _ocr_ocrspace(file_content, filename)
    else:
        raise OCRError(f"OCR provider '{provider}' is not available")

    extraction = extract_session_fields(text, engine=provider)
    logger.info(f"OCR extracted {sorted(extraction.fields)} from {filename} (confidence {extraction.confidence})")
    return extraction
