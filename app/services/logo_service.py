"""
app/services/logo_service.py

Three-tier company logo enrichment with a bounded worker pool.

Tiers per company: primary logo source, secondary favicon source, then a
locally synthesized initials badge. Companies are processed in fixed-size
windows; every fetch in a window runs concurrently and the whole window
resolves before the next one starts.
"""

from __future__ import annotations

import base64
import logging
import re
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from html import escape

import requests

from app.config import LogoFetchSettings
from app.connectors.logo_sources import (
    BaseLogoSource,
    LogoSourceError,
    PrimaryLogoSource,
    SecondaryLogoSource,
)
from app.domain.target_list import (
    LogoProgressCallback,
    LogoRequest,
    LogoResult,
    NoLogo,
    PrimaryLogo,
    SecondaryLogo,
    SynthesizedLogo,
)
from app.logging_utils import log_event
from app.mappers.company_mapper import normalize_logo_domain

logger = logging.getLogger(__name__)

_LEGAL_SUFFIX_PATTERN = re.compile(
    r",?\s+(Inc|LLC|Ltd|Corp|Corporation|Company|Co)\b\.?",
    re.IGNORECASE,
)

UNKNOWN_INITIALS = "??"


def company_initials(company_name: str) -> str:
    """
    Derive a two-letter badge from a company name.

    Legal suffixes are stripped first. Two or more remaining words use the
    first letter of the first two words; a single word uses its first two
    letters. "Apple Inc." -> "AP", "Acme Rentals" -> "AR".
    """

    if not company_name or not company_name.strip():
        return UNKNOWN_INITIALS

    cleaned = _LEGAL_SUFFIX_PATTERN.sub("", company_name).strip()
    words = [word for word in cleaned.split() if word]

    if not words:
        return company_name.strip()[:2].upper()
    if len(words) == 1:
        return words[0][:2].upper()
    return (words[0][0] + words[1][0]).upper()


def color_from_name(company_name: str) -> str:
    """
    Map a name to a stable HSL color via a 32-bit string hash.
    """

    hash_value = 0
    for char in company_name:
        hash_value = (ord(char) + ((hash_value << 5) - hash_value)) & 0xFFFFFFFF
    if hash_value >= 0x80000000:
        hash_value -= 0x100000000
    hue = abs(hash_value) % 360
    return f"hsl({hue}, 65%, 50%)"


def synthesize_initials_logo(company_name: str, size_px: int = 32) -> SynthesizedLogo:
    """
    Render the initials badge as an SVG circle and return it as a data URL.
    """

    initials = escape(company_initials(company_name))
    color = color_from_name(company_name)
    half = size_px / 2
    svg = (
        f'<svg width="{size_px}" height="{size_px}" xmlns="http://www.w3.org/2000/svg">'
        f'<circle cx="{half:g}" cy="{half:g}" r="{half:g}" fill="{color}"/>'
        '<text x="50%" y="50%" text-anchor="middle" dy=".35em" '
        f'font-family="Arial, sans-serif" font-size="{size_px / 2.5:g}" '
        f'font-weight="bold" fill="white">{initials}</text>'
        "</svg>"
    )
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return SynthesizedLogo(data=f"data:image/svg+xml;base64,{encoded}")


class LogoService:
    """
    Fetches logos for companies with tiered fallback and bounded concurrency.
    """

    def __init__(
        self,
        *,
        settings: LogoFetchSettings,
        session: requests.Session | None = None,
        primary: BaseLogoSource | None = None,
        secondary: BaseLogoSource | None = None,
        synthesizer: Callable[[str, int], SynthesizedLogo] = synthesize_initials_logo,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._primary = primary or PrimaryLogoSource(
            url_template=settings.primary_url_template,
            settings=settings,
            session=session,
        )
        self._secondary = secondary or SecondaryLogoSource(
            url_template=settings.secondary_url_template,
            settings=settings,
            session=session,
        )
        self._synthesizer = synthesizer
        self._sleep = sleep

    @property
    def window_size(self) -> int:
        return self._settings.concurrency

    def fetch_logo(self, request: LogoRequest) -> LogoResult:
        """
        Resolve one logo through the tiers; never raises.
        """

        remote = self._fetch_remote(normalize_logo_domain(request.domain))
        return remote if remote is not None else self._synthesize(request.company_name)

    def _fetch_remote(self, domain: str) -> LogoResult | None:
        if not domain:
            return None
        for source, wrap in ((self._primary, PrimaryLogo), (self._secondary, SecondaryLogo)):
            try:
                return wrap(data=source.fetch(domain))
            except LogoSourceError as exc:
                log_event(
                    logger,
                    logging.DEBUG,
                    "logo_tier_failed",
                    tier=source.name,
                    domain=domain,
                    error=str(exc),
                )
        return None

    def _synthesize(self, company_name: str) -> LogoResult:
        try:
            return self._synthesizer(company_name, self._settings.size_px)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "logo_synthesis_failed",
                company=company_name,
                error=str(exc),
            )
            return NoLogo(error=str(exc) or exc.__class__.__name__)

    def _resolve_group(self, domain: str, group: Sequence[LogoRequest]) -> list[LogoResult]:
        remote = self._fetch_remote(domain)
        if remote is not None:
            return [remote for _ in group]
        return [self._synthesize(request.company_name) for request in group]

    def fetch_logos(
        self,
        logo_requests: Sequence[LogoRequest],
        on_progress: LogoProgressCallback | None = None,
    ) -> dict[str, LogoResult]:
        """
        Fetch logos window by window and return results keyed by request key.

        Duplicate keys are resolved once. Requests sharing a domain share one
        remote lookup, but a synthesized badge is drawn from each request's
        own company name.
        """

        unique: dict[str, LogoRequest] = {}
        for request in logo_requests:
            unique.setdefault(request.key, request)
        total = len(unique)

        groups: dict[str, tuple[str, list[LogoRequest]]] = {}
        for request in unique.values():
            domain = normalize_logo_domain(request.domain)
            group_key = domain or f"key:{request.key}"
            groups.setdefault(group_key, (domain, []))[1].append(request)
        pending = list(groups.values())

        results: dict[str, LogoResult] = {}
        if not pending:
            return results

        width = max(1, self._settings.concurrency)
        completed = 0
        with ThreadPoolExecutor(max_workers=width, thread_name_prefix="logo-fetch") as executor:
            for start in range(0, len(pending), width):
                window = pending[start : start + width]
                futures = [executor.submit(self._resolve_group, domain, group) for domain, group in window]
                wait(futures)

                for (_, group), future in zip(window, futures):
                    try:
                        resolved = future.result()
                    except Exception as exc:
                        failure = NoLogo(error=str(exc) or exc.__class__.__name__)
                        resolved = [failure for _ in group]
                    for request, result in zip(group, resolved):
                        results[request.key] = result
                        completed += 1
                        if on_progress is not None:
                            on_progress(completed, total)

                log_event(
                    logger,
                    logging.INFO,
                    "logo_window_completed",
                    window_start=start,
                    window_size=len(window),
                    completed=completed,
                    total=total,
                )
                if start + width < len(pending):
                    self._sleep(self._settings.window_pause_seconds)

        return results
