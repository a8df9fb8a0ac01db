"""
Import error taxonomy and the error/warning collector

Structural errors end an import before any row is read, row errors only
exclude their row from matching, and unmatched-fill warnings report open
quantity left at the end of the stream. All three share one ordered list.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "Must contain a header row and at least one data row"


def malformed_header_message(reason: str) -> str:
    return f"Malformed header row: {reason}"


class IssueKind(Enum):
    """Import issue kinds"""
    STRUCTURAL = "structural"
    ROW = "row"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class ImportIssue:
    """One entry of the import error channel"""
    kind: IssueKind
    message: str
    row_number: Optional[int] = None

    @property
    def is_warning(self) -> bool:
        return self.kind == IssueKind.UNMATCHED

    @property
    def is_row_error(self) -> bool:
        return self.kind == IssueKind.ROW


class ErrorCollector:
    """Accumulates import issues in the order they are raised"""

    def __init__(self):
        self._issues: List[ImportIssue] = []

    def add_structural(self, message: str):
        logger.debug(f"Structural error: {message}")
        self._issues.append(ImportIssue(IssueKind.STRUCTURAL, message))

    def add_row_errors(self, row_errors: Iterable):
        """Record every field error of a rejected row"""
        for row_error in row_errors:
            logger.debug(f"Rejected {row_error}")
            self._issues.append(ImportIssue(IssueKind.ROW, str(row_error), row_error.row_number))

    def add_unmatched(self, symbol: str, quantity: int, direction: str):
        message = (f"Warning: Unmatched fill for {symbol}: "
                   f"{quantity} {direction} still open at end of import")
        self._issues.append(ImportIssue(IssueKind.UNMATCHED, message))

    @property
    def issues(self) -> List[ImportIssue]:
        return list(self._issues)

    @property
    def messages(self) -> List[str]:
        return [issue.message for issue in self._issues]

    def __len__(self) -> int:
        return len(self._issues)
