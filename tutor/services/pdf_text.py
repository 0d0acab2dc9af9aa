"""Reference document text extraction."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Union

from pypdf import PdfReader

from ..utils.exceptions import ExtractionError

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def extract_pdf_text(path: Union[str, Path]) -> str:
    """Extract every page of a PDF as one whitespace-normalized string.

    Raises ExtractionError on any read or parse failure. The underlying
    error is logged and chained, but kept out of the message.
    """
    try:
        reader = PdfReader(str(path))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        logger.error(f"Error reading PDF file {path}: {e}", exc_info=True)
        raise ExtractionError("Failed to read PDF content", path=str(path)) from e
    return normalize_whitespace(" ".join(pages))


async def read_pdf_content(path: Union[str, Path]) -> str:
    """Async wrapper; parsing runs in a worker thread."""
    return await asyncio.to_thread(extract_pdf_text, path)
