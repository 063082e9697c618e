"""
PDF Strategy
============

Extracts the embedded (selectable) text layer of a PDF using PyMuPDF.

There is no OCR fallback: a scanned PDF without a text layer yields an
empty string, which the pipeline passes on like any other text.

Follows Strategy Pattern: Implements ExtractionStrategy interface.
"""

from pathlib import Path

import pymupdf

from schedule_ingest.ingest.base_strategy import ExtractionStrategy
from schedule_ingest.schemas.domain import StrategyFamily
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class PdfStrategy(ExtractionStrategy):
    """
    PDF text extraction strategy.

    Args:
        pages: Specific page indices to read (0-based), None = all
    """

    def __init__(self, pages: list[int] | None = None) -> None:
        self._pages = pages

    @property
    def family(self) -> StrategyFamily:
        return StrategyFamily.PDF

    def _extract_text(self, path: Path) -> str:
        with pymupdf.open(str(path)) as doc:
            page_numbers = self._pages if self._pages is not None else range(doc.page_count)
            texts = [doc[number].get_text() for number in page_numbers]

        text = "\n".join(texts)
        if not text.strip():
            logger.warning("PDF has no extractable text", file_path=str(path))
        return text
