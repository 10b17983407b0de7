"""
import_engine.report - Structured result of a spreadsheet import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import config


@dataclass
class ImportReport:
    filename: str = ""
    total_rows: int = 0
    imported: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)   # "Row N: reason"
    log_id: str | None = None

    def add_success(self):
        self.imported += 1

    def add_error(self, row: int, reason: str):
        self.errors.append(f"Row {row}: {reason}")
        self.failed += 1

    @property
    def consistent(self) -> bool:
        return self.imported + self.failed == self.total_rows

    def error_text(self) -> str | None:
        """Newline-joined errors for the import log, None when clean."""
        return "\n".join(self.errors) if self.errors else None

    def preview(self, limit: int | None = None) -> tuple[list[str], int]:
        """First ``limit`` errors and the count left out."""
        limit = config.IMPORT_ERROR_PREVIEW if limit is None else limit
        shown = self.errors[:limit]
        return shown, len(self.errors) - len(shown)

    def to_dict(self) -> dict:
        shown, remaining = self.preview()
        return {
            "filename": self.filename,
            "total": self.total_rows,
            "successful": self.imported,
            "failed": self.failed,
            "errors": list(self.errors),
            "error_preview": shown,
            "remaining_errors": remaining,
            "log_id": self.log_id,
        }
