"""
Image Strategy
==============

Optical character recognition over a whole image using Tesseract
(via pytesseract) and Pillow.

Prerequisites:
    System package: tesseract-ocr (plus the configured language data)

Recognition runs to completion before any text is returned. Start and
finish are logged so long OCR runs can be followed in the logs.
"""

import time
from pathlib import Path

import pytesseract
from PIL import Image

from schedule_ingest.ingest.base_strategy import ExtractionStrategy
from schedule_ingest.schemas.domain import StrategyFamily
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class ImageStrategy(ExtractionStrategy):
    """
    Image OCR extraction strategy.

    Args:
        language: Tesseract language code (e.g. "eng")
        psm: Page segmentation mode; 3 = fully automatic
    """

    def __init__(self, language: str = "eng", psm: int = 3) -> None:
        self._language = language
        self._psm = psm

    @property
    def family(self) -> StrategyFamily:
        return StrategyFamily.IMAGE

    @property
    def language(self) -> str:
        return self._language

    def _extract_text(self, path: Path) -> str:
        logger.info("OCR started", file_path=str(path), language=self._language)
        start = time.perf_counter()

        with Image.open(path) as img:
            # GIF/palette images are converted so Tesseract gets plain pixels
            if img.mode not in ("L", "RGB"):
                img = img.convert("RGB")
            text = pytesseract.image_to_string(
                img,
                lang=self._language,
                config=f"--psm {self._psm}",
            )

        logger.info(
            "OCR finished",
            file_path=str(path),
            characters=len(text),
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return text
