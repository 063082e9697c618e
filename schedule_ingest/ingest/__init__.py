"""
Ingest Package
==============

Text extraction strategies, format routing and text normalization.

Components:
    - ExtractionStrategy: Abstract base class for extraction strategies
    - SpreadsheetStrategy, DocumentStrategy, PdfStrategy,
      PlainTextStrategy, ImageStrategy: one strategy per input family
    - FormatRouter: Selects a strategy from a declared content type
    - normalize_text: Canonicalizes extracted text
"""

from schedule_ingest.ingest.base_strategy import ExtractionStrategy
from schedule_ingest.ingest.document_strategy import DocumentStrategy
from schedule_ingest.ingest.format_router import (
    CONTENT_TYPE_FAMILIES,
    FormatRouter,
    build_default_strategies,
)
from schedule_ingest.ingest.image_strategy import ImageStrategy
from schedule_ingest.ingest.pdf_strategy import PdfStrategy
from schedule_ingest.ingest.plain_text_strategy import PlainTextStrategy
from schedule_ingest.ingest.spreadsheet_strategy import SpreadsheetStrategy
from schedule_ingest.ingest.text_normalizer import normalize_text

__all__ = [
    # Base classes
    "ExtractionStrategy",
    # Strategies
    "SpreadsheetStrategy",
    "DocumentStrategy",
    "PdfStrategy",
    "PlainTextStrategy",
    "ImageStrategy",
    # Routing
    "CONTENT_TYPE_FAMILIES",
    "FormatRouter",
    "build_default_strategies",
    # Normalization
    "normalize_text",
]
