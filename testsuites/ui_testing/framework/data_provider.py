"""
================================================================================
Test Data Provider
================================================================================

Row-based test data for data-driven UI tests.

Each data file holds one or more named sheets; a sheet is a list of rows and
each row maps column names to string values. Two formats are supported:

    - YAML (``.yaml`` / ``.yml``): a mapping of sheet name to a list of rows
    - Excel (``.xlsx``): the first row of a worksheet holds the column names

Example (YAML):
    login:
      - case: valid_admin
        username: admin
        password: password123

Usage:
    LOGIN_DATA = DataProvider(DATA_DIR / "login_data.yaml")

    @LOGIN_DATA.parametrize("login", id_field="case")
    def test_login(row):
        ...

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytest
import yaml
from loguru import logger
from openpyxl import load_workbook


Row = Dict[str, str]

YAML_SUFFIXES = (".yaml", ".yml")
EXCEL_SUFFIXES = (".xlsx",)


class DataProviderError(Exception):
    """Raised when a data file or sheet cannot be read."""
    pass


class DataProvider:
    """
    Reads named sheets of test data from a YAML or Excel file.

    Sheets are loaded on first use and cached per instance.
    """

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)
        self._sheets: Optional[Dict[str, List[Row]]] = None

    def sheet_names(self) -> List[str]:
        return list(self._load())

    def get_rows(self, sheet: str) -> List[Row]:
        """
        Return the rows of ``sheet``, in file order.

        Raises:
            DataProviderError: Unknown sheet, unreadable file or bad layout
        """
        sheets = self._load()
        if sheet not in sheets:
            raise DataProviderError(
                f"Sheet '{sheet}' not found in {self.file_path} (available: {', '.join(sheets) or 'none'})"
            )
        return [dict(row) for row in sheets[sheet]]

    def parametrize(self, sheet: str, argname: str = "row", id_field: Optional[str] = None):
        """
        Build a ``pytest.mark.parametrize`` marker with one case per row.

        Args:
            sheet: Sheet to read
            argname: Name of the test argument receiving the row dict
            id_field: Column used as the test id; row numbers otherwise
        """
        rows = self.get_rows(sheet)
        if id_field is not None:
            ids = [row.get(id_field) or f"{sheet}-{i}" for i, row in enumerate(rows, start=1)]
        else:
            ids = [f"{sheet}-{i}" for i in range(1, len(rows) + 1)]
        return pytest.mark.parametrize(argname, rows, ids=ids)

    # ========================================================================
    # Loading
    # ========================================================================

    def _load(self) -> Dict[str, List[Row]]:
        if self._sheets is None:
            if not self.file_path.is_file():
                raise DataProviderError(f"Test data file not found: {self.file_path}")

            suffix = self.file_path.suffix.lower()
            if suffix in YAML_SUFFIXES:
                self._sheets = self._load_yaml()
            elif suffix in EXCEL_SUFFIXES:
                self._sheets = self._load_excel()
            else:
                raise DataProviderError(f"Unsupported test data format: {self.file_path.name}")

            total = sum(len(rows) for rows in self._sheets.values())
            logger.info(f"Test data loaded from {self.file_path.name}: {len(self._sheets)} sheet(s), {total} row(s)")
        return self._sheets

    def _load_yaml(self) -> Dict[str, List[Row]]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DataProviderError(f"Invalid YAML in {self.file_path}: {e}") from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise DataProviderError(f"{self.file_path} must map sheet names to lists of rows")

        sheets: Dict[str, List[Row]] = {}
        for name, rows in content.items():
            if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
                raise DataProviderError(f"Sheet '{name}' in {self.file_path} must be a list of mappings")
            sheets[str(name)] = [
                {str(key): _as_text(value) for key, value in row.items()}
                for row in rows
            ]
        return sheets

    def _load_excel(self) -> Dict[str, List[Row]]:
        try:
            workbook = load_workbook(self.file_path, read_only=True, data_only=True)
        except Exception as e:
            raise DataProviderError(f"Cannot open workbook {self.file_path}: {e}") from e

        try:
            sheets: Dict[str, List[Row]] = {}
            for worksheet in workbook.worksheets:
                values = worksheet.iter_rows(values_only=True)
                header = next(values, None)
                if header is None:
                    sheets[worksheet.title] = []
                    continue

                columns = [(i, str(name).strip()) for i, name in enumerate(header) if name is not None]
                rows: List[Row] = []
                for record in values:
                    if record is None or all(cell is None or cell == "" for cell in record):
                        continue
                    rows.append({
                        name: _as_text(record[i] if i < len(record) else None)
                        for i, name in columns
                    })
                sheets[worksheet.title] = rows
            return sheets
        finally:
            workbook.close()


def _as_text(value: Any) -> str:
    """Cell value as text: blanks become "", whole floats lose their ".0"."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "DataProvider",
    "DataProviderError",
    "Row",
]
