"""
app/api/routers/target_list.py

Target list HTTP endpoints: validate, process and export uploaded exports.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Form, HTTPException, Response, UploadFile, status

from app.api.dependencies import get_table_parser, get_table_upload
from app.domain.target_list import ParsedTable, ReportConfig
from app.ingestion.table_parser import TableParseError, TableParser
from app.rendering.common import RenderError, build_output_filename
from app.rendering.document import DocumentRenderer
from app.rendering.workbook import WorkbookRenderer
from app.schemas.target_list import (
    EnrichedCompanyResponse,
    QualityStatsResponse,
    TargetListProcessResponse,
    UploadValidationResponse,
)
from app.services.enrichment_service import EnrichmentResult, EnrichmentService, get_enrichment_service

router = APIRouter(prefix="/target-lists", tags=["target-lists"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"


def _parse_upload(file: UploadFile, parser: TableParser) -> ParsedTable:
    try:
        content = file.file.read()
        return parser.parse(content, file.filename or "")
    except TableParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        file.file.close()


def _enrich_valid_table(parsed: ParsedTable, service: EnrichmentService) -> EnrichmentResult:
    if not parsed.validation.is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=UploadValidationResponse.from_result(parsed.validation).model_dump(),
        )
    return service.enrich(parsed.rows)


def _download(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/validate", response_model=UploadValidationResponse)
def validate_target_list(
    file: UploadFile = Depends(get_table_upload),
    parser: TableParser = Depends(get_table_parser),
) -> UploadValidationResponse:
    """
    Parse one export and report column coverage and data warnings.
    """

    parsed = _parse_upload(file, parser)
    return UploadValidationResponse.from_result(parsed.validation)


@router.post("/process", response_model=TargetListProcessResponse)
def process_target_list(
    file: UploadFile = Depends(get_table_upload),
    parser: TableParser = Depends(get_table_parser),
    enrichment_service: EnrichmentService = Depends(get_enrichment_service),
) -> TargetListProcessResponse:
    """
    Enrich every company in the export with a summary and a logo.
    """

    parsed = _parse_upload(file, parser)
    result = _enrich_valid_table(parsed, enrichment_service)
    return TargetListProcessResponse(
        validation=UploadValidationResponse.from_result(parsed.validation),
        companies=[EnrichedCompanyResponse.from_company(company) for company in result.companies],
        stats=QualityStatsResponse.from_stats(result.stats),
    )


@router.post("/workbook")
def export_workbook(
    file: UploadFile = Depends(get_table_upload),
    report_title: str = Form(..., min_length=1),
    output_format: Literal["detailed", "minimal"] = Form("detailed"),
    company_name: str | None = Form(None),
    parser: TableParser = Depends(get_table_parser),
    enrichment_service: EnrichmentService = Depends(get_enrichment_service),
) -> Response:
    """
    Enrich the export and download it as a two-sheet XLSX workbook.
    """

    parsed = _parse_upload(file, parser)
    result = _enrich_valid_table(parsed, enrichment_service)
    config = ReportConfig(
        report_title=report_title,
        output_format=output_format,
        company_name=company_name,
    )
    try:
        content = WorkbookRenderer().render(
            config=config,
            source_headers=parsed.headers,
            source_rows=parsed.rows,
            companies=result.companies,
        )
    except RenderError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to generate workbook.",
        ) from exc

    return _download(content, build_output_filename(report_title, "xlsx"), XLSX_MEDIA_TYPE)


@router.post("/document")
def export_document(
    file: UploadFile = Depends(get_table_upload),
    report_title: str = Form(..., min_length=1),
    output_format: Literal["detailed", "minimal"] = Form("detailed"),
    company_name: str | None = Form(None),
    parser: TableParser = Depends(get_table_parser),
    enrichment_service: EnrichmentService = Depends(get_enrichment_service),
) -> Response:
    """
    Enrich the export and download it as a PDF document.
    """

    parsed = _parse_upload(file, parser)
    result = _enrich_valid_table(parsed, enrichment_service)
    config = ReportConfig(
        report_title=report_title,
        output_format=output_format,
        company_name=company_name,
    )
    try:
        content = DocumentRenderer().render(config=config, companies=result.companies)
    except RenderError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to generate document.",
        ) from exc

    return _download(content, build_output_filename(report_title, "pdf"), PDF_MEDIA_TYPE)
