"""
app/rendering/common.py

Helpers shared by the workbook and document renderers.
"""

from __future__ import annotations

import base64
import binascii
import re
from datetime import date

from app.domain.target_list import EnrichedCompany, logo_data
from app.mappers.company_mapper import format_executive

_NON_ALNUM_PATTERN = re.compile(r"[^a-zA-Z0-9]")
_RASTER_DATA_URL_PATTERN = re.compile(
    r"^data:image/(png|jpe?g|gif|bmp|x-icon|vnd\.microsoft\.icon);base64,(.*)$",
    re.IGNORECASE | re.DOTALL,
)

SUBTITLE = "Acquisition Target Universe"
REVENUE_NOTE = "($ in millions)"


class RenderError(RuntimeError):
    """
    Raised when an output file cannot be produced.
    """


def build_output_filename(report_title: str, extension: str, today: date | None = None) -> str:
    """
    `<title with non-alphanumerics as _>_<YYYYMMDD>.<extension>`.
    """

    stamp = (today or date.today()).strftime("%Y%m%d")
    safe_title = _NON_ALNUM_PATTERN.sub("_", report_title)
    return f"{safe_title}_{stamp}.{extension.lstrip('.')}"


def executive_single_line(company: EnrichedCompany) -> str:
    return format_executive(
        company.executive_first_name,
        company.executive_last_name,
        company.executive_title,
        separator=", ",
    )


def raster_logo_bytes(company: EnrichedCompany) -> bytes | None:
    """
    Decode the company logo when it is a raster image.

    Synthesized SVG badges and missing logos return None; neither output
    format can embed SVG directly.
    """

    data_url = logo_data(company.logo)
    if not data_url:
        return None
    match = _RASTER_DATA_URL_PATTERN.match(data_url)
    if match is None:
        return None
    try:
        return base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError):
        return None
