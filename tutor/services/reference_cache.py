from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional, Union

from ..utils.exceptions import ExtractionError, log_error
from .pdf_text import read_pdf_content
from .references import ReferenceDocument

logger = logging.getLogger(__name__)

Loader = Callable[[Union[str, Path]], Awaitable[str]]


class ReferenceCache:
    """Extracted reference text per target language.

    Entries are filled on first use and never refreshed or evicted. One lock
    per language makes population single-flight: concurrent first requests
    wait for the same extraction instead of repeating it.
    """

    def __init__(self, loader: Loader = read_pdf_content):
        self._loader = loader
        self._texts: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def get_reference_text(self, document: ReferenceDocument) -> Optional[str]:
        """Return cached text for the document's language, extracting it once.

        Extraction failures are logged and yield None; the entry stays empty
        so a later request tries again.
        """
        key = document.language.lower()
        cached = self._texts.get(key)
        if cached is not None:
            return cached

        async with self._lock_for(key):
            cached = self._texts.get(key)
            if cached is not None:
                return cached

            logger.info(f"Loading {document.name} reference from: {document.path}")
            try:
                text = await self._loader(document.path)
            except ExtractionError as e:
                log_error(e, logger=logger, level="warning")
                return None

            if not text:
                logger.warning(f"Reference {document.name} produced no text")
                return None

            self._texts[key] = text
            return text

    def peek(self, language: str) -> Optional[str]:
        return self._texts.get(language.lower())

    def __contains__(self, language: object) -> bool:
        return isinstance(language, str) and language.lower() in self._texts

    def __len__(self) -> int:
        return len(self._texts)
