"""
Plain Text Strategy
===================

Reads text and markdown files verbatim as UTF-8.
Undecodable bytes are replaced rather than rejected.
"""

from pathlib import Path

from schedule_ingest.ingest.base_strategy import ExtractionStrategy
from schedule_ingest.schemas.domain import StrategyFamily


class PlainTextStrategy(ExtractionStrategy):
    """Plain text extraction strategy."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    @property
    def family(self) -> StrategyFamily:
        return StrategyFamily.PLAIN_TEXT

    def _extract_text(self, path: Path) -> str:
        return path.read_text(encoding=self._encoding, errors="replace")
