"""
app/validators/upload_validator.py

Table-level validation for uploaded company exports.
"""

from __future__ import annotations

from collections.abc import Sequence

from app.config import UploadSettings, get_upload_settings
from app.domain.target_list import (
    CRITICAL_VALUE_COLUMNS,
    REQUIRED_COLUMNS,
    NormalizedRow,
    UploadValidationResult,
)


class UploadValidator:
    """
    Checks column coverage, data volume and critical values of parsed rows.
    """

    def __init__(self, settings: UploadSettings | None = None) -> None:
        self._settings = settings or get_upload_settings()

    def validate(
        self,
        *,
        headers: Sequence[str],
        rows: Sequence[NormalizedRow],
    ) -> UploadValidationResult:
        """
        Return errors (blocking) and warnings (informational) for one table.
        """

        errors: list[str] = []
        warnings: list[str] = []

        if not rows:
            errors.append("No data rows found in file")
            return UploadValidationResult(
                is_valid=False,
                row_count=0,
                errors=errors,
                warnings=warnings,
                missing_columns=[],
            )

        available = {header.strip() for header in headers}
        missing_columns = [column for column in REQUIRED_COLUMNS if column not in available]
        if missing_columns:
            errors.append(f"Missing required columns: {', '.join(missing_columns)}")

        row_count = len(rows)
        if row_count > self._settings.very_large_file_warning_rows:
            warnings.append(
                f"Large file detected ({row_count} companies). Processing may take 15-20 minutes."
            )
        elif row_count > self._settings.large_file_warning_rows:
            warnings.append(
                f"File contains {row_count} companies. "
                "Processing will take approximately 10-12 minutes."
            )

        rows_missing_data = sum(1 for row in rows if self._is_missing_critical(row))
        if rows_missing_data:
            warnings.append(
                f"{rows_missing_data} rows have missing critical data "
                "(company name, description, or revenue)"
            )

        return UploadValidationResult(
            is_valid=not errors,
            row_count=row_count,
            errors=errors,
            warnings=warnings,
            missing_columns=missing_columns,
        )

    @staticmethod
    def _is_missing_critical(row: NormalizedRow) -> bool:
        return any(not str(row.get(column) or "").strip() for column in CRITICAL_VALUE_COLUMNS)
