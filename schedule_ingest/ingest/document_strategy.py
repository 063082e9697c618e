"""
Document Strategy
=================

Flat text rendering of Word documents using python-docx.

Paragraphs and table cells are emitted in body order, one per line;
formatting is discarded. Warnings raised by the library while loading
the document are logged and never turned into errors.

Follows Strategy Pattern: Implements ExtractionStrategy interface.
"""

import warnings
from pathlib import Path

from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph

from schedule_ingest.ingest.base_strategy import ExtractionStrategy
from schedule_ingest.schemas.domain import StrategyFamily
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class DocumentStrategy(ExtractionStrategy):
    """Word document extraction strategy."""

    @property
    def family(self) -> StrategyFamily:
        return StrategyFamily.DOCUMENT

    def _extract_text(self, path: Path) -> str:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            document = Document(str(path))
            lines: list[str] = []
            for block in document.iter_inner_content():
                lines.extend(self._block_lines(block))

        if caught:
            logger.warning(
                "Document extraction warnings",
                file_path=str(path),
                warnings=[str(w.message) for w in caught],
            )

        return "\n".join(lines)

    def _block_lines(self, block: Paragraph | Table) -> list[str]:
        """Render a body block (paragraph or table) as text lines."""
        if isinstance(block, Paragraph):
            return [block.text] if block.text.strip() else []

        lines: list[str] = []
        for row in block.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                lines.append("\t".join(cells))
        return lines
