"""
Test data from Excel workbooks.

The first row of a sheet is a header and is skipped. Every cell comes back
as a string so that data-driven tests receive plain arguments.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Tuple, Union

import openpyxl

from .errors import DataSourceError

logger = logging.getLogger(__name__)


def cell_to_str(value: Any) -> str:
    """Normalize a cell value read with ``data_only=True``."""
    if value is None:
        return ""
    # bool is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return str(value).strip()


def _header_width(header) -> int:
    """Columns up to the last non-blank header cell."""
    width = 0
    for idx, cell in enumerate(header, start=1):
        if cell is not None and str(cell).strip():
            width = idx
    return width


def read_sheet(path: Union[str, Path], sheet_name: str = "Sheet1") -> List[Tuple[str, ...]]:
    """
    Read all data rows of a sheet.

    Blank rows are skipped and every row is cut or padded to the header
    width. Formulas yield their cached value.

    Raises:
        DataSourceError: the file cannot be opened or the sheet does not exist
    """
    try:
        workbook = openpyxl.load_workbook(path, data_only=True, read_only=True)
    except Exception as e:
        raise DataSourceError(f"Failed to read Excel file [{path}] sheet [{sheet_name}]: {e}") from e

    try:
        if sheet_name not in workbook.sheetnames:
            raise DataSourceError(
                f"Failed to read Excel file [{path}] sheet [{sheet_name}]: sheet not found"
            )

        rows: List[Tuple[str, ...]] = []
        sheet_rows = workbook[sheet_name].iter_rows(values_only=True)
        header = next(sheet_rows, None) or ()
        width = _header_width(header)

        for row in sheet_rows:
            if not row or all(cell is None or str(cell).strip() == "" for cell in row):
                continue
            values = [cell_to_str(cell) for cell in row]
            if width:
                values = values[:width] + [""] * (width - len(values))
            rows.append(tuple(values))
    finally:
        workbook.close()

    logger.info(f"Loaded {len(rows)} data rows from {path} [{sheet_name}]")
    return rows
