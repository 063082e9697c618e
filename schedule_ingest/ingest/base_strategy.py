"""
Extraction Strategy Abstract Base Class
=======================================

Defines the interface for text extraction strategies.
Every input family (spreadsheet, document, PDF, plain text, image)
implements this interface.

Follows Open/Closed Principle (SOLID-O):
- Open for extension: a family is added by writing a new strategy
- Closed for modification: existing strategies don't need to change
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

from schedule_ingest.schemas.domain import StrategyFamily
from schedule_ingest.utils.errors import ExtractionError
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class ExtractionStrategy(ABC):
    """
    Abstract base class for text extraction strategies.

    Contract:
        - Input: Path to the stored file
        - Output: Raw text (may be empty)
        - Errors: ExtractionError carrying the family and the cause

    Strategies are independent of each other. Library calls are
    blocking, so ``extract`` runs ``_extract_text`` in a worker thread
    and other pipeline runs keep making progress meanwhile.

    Usage:
        strategy = PdfStrategy()
        text = await strategy.extract(Path("/uploads/syllabus.pdf"))
    """

    @property
    @abstractmethod
    def family(self) -> StrategyFamily:
        """Return the family this strategy handles."""
        ...

    @abstractmethod
    def _extract_text(self, path: Path) -> str:
        """
        Read the file and return its text.

        Implementations may raise any exception; ``extract`` wraps it.
        """
        ...

    async def extract(self, file_path: str | Path) -> str:
        """
        Extract raw text from a file.

        Args:
            file_path: Path to the stored file

        Returns:
            Extracted text, not yet normalized

        Raises:
            ExtractionError: If the file cannot be read or parsed
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path

        if not path.exists():
            raise ExtractionError(self.family.value, f"File not found: {path}")

        logger.debug("Extracting text", family=self.family.value, file_path=str(path))

        try:
            text = await asyncio.to_thread(self._extract_text, path)
        except ExtractionError:
            raise
        except Exception as e:
            logger.error(
                "Text extraction failed",
                family=self.family.value,
                file_path=str(path),
                error=str(e),
            )
            raise ExtractionError(self.family.value, e) from e

        logger.info(
            "Text extracted",
            family=self.family.value,
            file_path=str(path),
            characters=len(text),
        )
        return text
