"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

from app.ingestion.table_parser import SUPPORTED_EXTENSIONS, TableParser, file_extension

TABLE_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def get_table_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV or XLSX export.

    The extension decides how the file is parsed, so a supported MIME type
    alone is not enough.
    """

    extension = file_extension((file.filename or "").strip())
    content_type = (file.content_type or "").strip().lower()

    if extension not in SUPPORTED_EXTENSIONS:
        detail = "Only CSV or XLSX files are allowed."
        if content_type in TABLE_CONTENT_TYPES:
            detail = f"{detail} Rename the file with a .csv or .xlsx extension."
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    return file


def get_table_parser() -> TableParser:
    return TableParser()
