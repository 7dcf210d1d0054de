from __future__ import annotations

from typing import Optional


class InventoryError(Exception):
    """Base class for every failure raised by the stock core."""


class MalformedRow(InventoryError):
    """A single spreadsheet row could not be turned into a product.

    Recoverable: the row is skipped and the rest of the batch continues.
    """

    def __init__(self, reason: str, row_number: Optional[int] = None):
        self.reason = reason
        self.row_number = row_number
        if row_number is None:
            super().__init__(reason)
        else:
            super().__init__(f"Row {row_number}: {reason}")


class EmptyValidBatch(InventoryError):
    """Every row of an upload was skipped, so there is nothing to import."""


class ValidationError(InventoryError, ValueError):
    """A bulk replace was handed a structurally invalid batch."""


class SpreadsheetError(InventoryError):
    """The uploaded workbook could not be read."""
