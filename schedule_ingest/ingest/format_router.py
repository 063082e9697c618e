"""
Format Router - Strategy Selection
==================================

Maps a declared content type to exactly one extraction strategy.

The content-type table and the family set are both closed: lookup is
exact and case-sensitive, bytes are never sniffed, and a router can
only be built when every StrategyFamily has a strategy.
"""

from collections.abc import Mapping
from types import MappingProxyType

from schedule_ingest.config.settings import Settings, get_settings
from schedule_ingest.ingest.base_strategy import ExtractionStrategy
from schedule_ingest.ingest.document_strategy import DocumentStrategy
from schedule_ingest.ingest.image_strategy import ImageStrategy
from schedule_ingest.ingest.pdf_strategy import PdfStrategy
from schedule_ingest.ingest.plain_text_strategy import PlainTextStrategy
from schedule_ingest.ingest.spreadsheet_strategy import SpreadsheetStrategy
from schedule_ingest.schemas.domain import StrategyFamily
from schedule_ingest.utils.errors import ConfigurationError, UnsupportedTypeError
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


CONTENT_TYPE_FAMILIES: Mapping[str, StrategyFamily] = MappingProxyType(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": StrategyFamily.SPREADSHEET,
        "application/vnd.ms-excel": StrategyFamily.SPREADSHEET,
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": StrategyFamily.DOCUMENT,
        "application/msword": StrategyFamily.DOCUMENT,
        "application/pdf": StrategyFamily.PDF,
        "text/plain": StrategyFamily.PLAIN_TEXT,
        "text/markdown": StrategyFamily.PLAIN_TEXT,
        "image/jpeg": StrategyFamily.IMAGE,
        "image/png": StrategyFamily.IMAGE,
        "image/gif": StrategyFamily.IMAGE,
    }
)


def build_default_strategies(
    settings: Settings | None = None,
) -> dict[StrategyFamily, ExtractionStrategy]:
    """
    Build one strategy instance per family.

    Args:
        settings: Application settings (OCR language)

    Returns:
        Mapping covering every StrategyFamily
    """
    settings = settings or get_settings()
    return {
        StrategyFamily.SPREADSHEET: SpreadsheetStrategy(),
        StrategyFamily.DOCUMENT: DocumentStrategy(),
        StrategyFamily.PDF: PdfStrategy(),
        StrategyFamily.PLAIN_TEXT: PlainTextStrategy(),
        StrategyFamily.IMAGE: ImageStrategy(language=settings.ocr_language),
    }


class FormatRouter:
    """
    Selects the extraction strategy for a declared content type.

    Usage:
        router = FormatRouter()
        strategy = router.select("application/pdf")
        text = await strategy.extract(path)

        # Swapping strategies (e.g. in tests) must still cover every family
        router = FormatRouter(strategies={...})
    """

    def __init__(
        self,
        strategies: Mapping[StrategyFamily, ExtractionStrategy] | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize router.

        Args:
            strategies: One strategy per family (defaults to the built-in set)
            settings: Application settings used for the default set

        Raises:
            ConfigurationError: If a family is missing or mapped to the wrong strategy
        """
        strategies = dict(strategies) if strategies is not None else build_default_strategies(settings)

        missing = [family.value for family in StrategyFamily if family not in strategies]
        if missing:
            raise ConfigurationError(
                message="Every strategy family needs a strategy",
                details={"missing_families": missing},
            )

        mismatched = [
            family.value for family, strategy in strategies.items() if strategy.family != family
        ]
        if mismatched:
            raise ConfigurationError(
                message="Strategy registered under the wrong family",
                details={"families": mismatched},
            )

        self._strategies: Mapping[StrategyFamily, ExtractionStrategy] = MappingProxyType(strategies)

    def family_for(self, content_type: str) -> StrategyFamily:
        """
        Resolve the strategy family for a content type.

        Raises:
            UnsupportedTypeError: If the content type is not mapped
        """
        family = CONTENT_TYPE_FAMILIES.get(content_type)
        if family is None:
            raise UnsupportedTypeError(content_type, self.supported_types())
        return family

    def select(self, content_type: str) -> ExtractionStrategy:
        """
        Select the strategy for a declared content type.

        Args:
            content_type: MIME type recorded at upload time

        Returns:
            The strategy for the content type's family

        Raises:
            UnsupportedTypeError: If the content type is not mapped
        """
        family = self.family_for(content_type)
        strategy = self._strategies[family]

        logger.debug(
            "Strategy selected",
            content_type=content_type,
            family=family.value,
            strategy=type(strategy).__name__,
        )
        return strategy

    @staticmethod
    def is_supported(content_type: str) -> bool:
        """Check if a content type is supported."""
        return content_type in CONTENT_TYPE_FAMILIES

    @staticmethod
    def supported_types() -> list[str]:
        """Get list of supported content types."""
        return list(CONTENT_TYPE_FAMILIES.keys())
