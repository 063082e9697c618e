"""
Spreadsheet Strategy
====================

Renders every worksheet of an Excel workbook as tab-separated text.

Output layout:
    Sheet: <name>
    <cell>\t<cell>\t...
    <blank line>

Fully empty rows are skipped and trailing empty cells are dropped.
Uses pandas for reading; pandas inspects the file content and picks
openpyxl for .xlsx workbooks and xlrd for legacy .xls workbooks.

Follows Strategy Pattern: Implements ExtractionStrategy interface.
"""

from pathlib import Path
from typing import Any

import pandas as pd

from schedule_ingest.ingest.base_strategy import ExtractionStrategy
from schedule_ingest.schemas.domain import StrategyFamily
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class SpreadsheetStrategy(ExtractionStrategy):
    """
    Spreadsheet extraction strategy.

    Example:
        Workbook with sheet "Week 1":
        | Monday | Essay draft | Room 4 |
        |        |             |        |
        | Friday | Quiz        |        |

        Output:
        Sheet: Week 1
        Monday\tEssay draft\tRoom 4
        Friday\tQuiz
    """

    @property
    def family(self) -> StrategyFamily:
        return StrategyFamily.SPREADSHEET

    def _extract_text(self, path: Path) -> str:
        sheets: dict[str, pd.DataFrame] = pd.read_excel(
            path,
            sheet_name=None,
            header=None,
            dtype=object,
        )

        parts: list[str] = []
        for sheet_name, df in sheets.items():
            lines = [f"Sheet: {sheet_name}"]
            for row in df.itertuples(index=False, name=None):
                cells = self._row_to_cells(row)
                if cells:
                    lines.append("\t".join(cells))
            parts.append("\n".join(lines) + "\n")

        logger.debug("Workbook rendered", file_path=str(path), sheet_count=len(sheets))
        return "\n".join(parts)

    @staticmethod
    def _row_to_cells(row: tuple[Any, ...]) -> list[str]:
        """Convert a row to strings, dropping trailing empty cells."""
        cells = ["" if value is None or pd.isna(value) else str(value) for value in row]
        while cells and not cells[-1].strip():
            cells.pop()
        return cells
