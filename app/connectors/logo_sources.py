"""
app/connectors/logo_sources.py

Remote logo sources keyed by company domain.
"""

from __future__ import annotations

import base64
import logging
import threading
import time
from abc import ABC
from typing import Callable

import requests

from app.config import LogoFetchSettings

logger = logging.getLogger(__name__)

_DEFAULT_CONTENT_TYPE = "image/png"
_CHUNK_SIZE = 1024


class LogoSourceError(RuntimeError):
    """
    Raised when a logo source cannot provide an image for a domain.
    """


def to_data_url(content: bytes, content_type: str | None) -> str:
    """
    Encode image bytes as a base64 data URL.
    """

    mime = (content_type or "").split(";")[0].strip().lower()
    if not mime.startswith("image/"):
        mime = _DEFAULT_CONTENT_TYPE
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime};base64,{encoded}"


class BaseLogoSource(ABC):
    """
    One remote lookup-by-domain image service.

    A single streamed GET with no retries. `timeout_seconds` bounds the
    whole fetch, body included; the caller falls through to the next tier
    on any failure. Without an explicit session each worker thread gets
    its own `requests.Session`.
    """

    name: str

    def __init__(
        self,
        *,
        url_template: str,
        settings: LogoFetchSettings,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._url_template = url_template
        self._shared_session = session
        self._local = threading.local()
        self._timeout_seconds = settings.timeout_seconds
        self._headers = {"User-Agent": settings.user_agent}
        self._clock = clock

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def build_url(self, domain: str) -> str:
        return self._url_template.format(domain=domain)

    def fetch(self, domain: str) -> str:
        """
        Fetch the image for `domain` and return it as a data URL.
        """

        url = self.build_url(domain)
        deadline = self._clock() + self._timeout_seconds
        try:
            response = self.session.get(
                url,
                headers=self._headers,
                timeout=self._timeout_seconds,
                allow_redirects=True,
                stream=True,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise LogoSourceError(f"{self.name}: request failed for {domain}: {exc}") from exc
        except requests.RequestException as exc:
            raise LogoSourceError(f"{self.name}: invalid request for {domain}: {exc}") from exc

        try:
            if response.status_code != 200:
                raise LogoSourceError(f"{self.name}: HTTP {response.status_code} for {domain}")
            content = self._read_body(response, domain=domain, deadline=deadline)
        finally:
            response.close()

        self._check_content(domain=domain, content=content)
        return to_data_url(content, response.headers.get("Content-Type"))

    def _read_body(self, response: requests.Response, *, domain: str, deadline: float) -> bytes:
        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                if self._clock() > deadline:
                    raise LogoSourceError(
                        f"{self.name}: body for {domain} exceeded {self._timeout_seconds:g}s"
                    )
                if chunk:
                    chunks.append(chunk)
        except requests.RequestException as exc:
            raise LogoSourceError(f"{self.name}: read failed for {domain}: {exc}") from exc
        return b"".join(chunks)

    def _check_content(self, *, domain: str, content: bytes) -> None:
        if not content:
            raise LogoSourceError(f"{self.name}: empty body for {domain}")


class PrimaryLogoSource(BaseLogoSource):
    """
    Logo-by-domain service (Clearbit-style URL template).
    """

    name = "primary"


class SecondaryLogoSource(BaseLogoSource):
    """
    Favicon-by-domain service.

    The favicon service answers unknown domains with a tiny default icon,
    so responses below `min_secondary_bytes` count as a miss.
    """

    name = "secondary"

    def __init__(
        self,
        *,
        url_template: str,
        settings: LogoFetchSettings,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(url_template=url_template, settings=settings, session=session, clock=clock)
        self._min_bytes = settings.min_secondary_bytes

    def _check_content(self, *, domain: str, content: bytes) -> None:
        super()._check_content(domain=domain, content=content)
        if len(content) < self._min_bytes:
            raise LogoSourceError(
                f"{self.name}: default icon returned for {domain} ({len(content)} bytes)"
            )
