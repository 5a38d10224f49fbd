"""
Shared fixtures: scripted generation adapter, fake HTTP session, recorded sleeps.
"""

from __future__ import annotations

import io
import os
import threading
from collections.abc import Sequence
from types import SimpleNamespace

import pytest
import requests
from PIL import Image

os.environ.setdefault("LLM_ADAPTER", "mock")
os.environ.setdefault("LOGO_FETCH_ENABLED", "false")

from app.config import (  # noqa: E402
    get_llm_settings,
    get_logo_fetch_settings,
    get_summary_settings,
    get_upload_settings,
)
from llm_synthesis.adapter import BaseLLMAdapter, ChatMessage  # noqa: E402

ACME_NAME = "Acme Widgets, Inc."
ACME_DESCRIPTION = (
    "Acme Widgets manufactures custom widgets for industrial clients across the Midwest, "
    "offering precision tooling and rapid prototyping services to OEM partners in automotive "
    "and aerospace sectors, with in-house engineering support."
)
ACME_SPECIALTIES = "precision tooling, rapid prototyping"
ACME_EXCELLENT_SUMMARY = (
    "Acme Widgets, Inc. manufactures custom widgets and precision tooling for industrial "
    "clients, including rapid prototyping for automotive and aerospace OEM partners."
)

SOURCE_HEADERS: tuple[str, ...] = (
    "Company Name",
    "Informal Name",
    "City",
    "State",
    "Website",
    "Description",
    "Specialties",
    "Industries",
    "Employee Count",
    "Latest Estimated Revenue ($)",
    "6 Months Growth Rate %",
    "9 Months Growth Rate %",
    "24 Months Growth Rate %",
    "Executive Title",
    "Executive First Name",
    "Executive Last Name",
)


class StatusError(Exception):
    """Provider-style HTTP error carrying a status code."""

    def __init__(self, status_code: int, message: str = "provider error") -> None:
        super().__init__(message)
        self.status_code = status_code


class ScriptedAdapter(BaseLLMAdapter):
    """Returns (or raises) scripted responses in order; records every call."""

    def __init__(self, responses: Sequence[object], default: str | None = None) -> None:
        self._responses = list(responses)
        self._default = default
        self.calls: list[list[ChatMessage]] = []

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        self.calls.append(list(messages))
        if self._responses:
            item = self._responses.pop(0)
        elif self._default is not None:
            item = self._default
        else:
            raise AssertionError("ScriptedAdapter ran out of responses")
        if isinstance(item, BaseException):
            raise item
        return str(item)


class FakeResponse:
    """
    Streamed response stand-in. `chunk_size` splits the body for
    `iter_content`; `on_chunk` runs before each chunk is handed out.
    """

    def __init__(
        self,
        status_code: int = 200,
        content: bytes = b"",
        content_type: str = "image/png",
        chunk_size: int | None = None,
        on_chunk=None,
    ) -> None:
        self.status_code = status_code
        self.content = content
        self.headers = {"Content-Type": content_type}
        self.chunk_size = chunk_size
        self.on_chunk = on_chunk
        self.chunks_served = 0
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        step = self.chunk_size or chunk_size
        for offset in range(0, len(self.content), step):
            if self.on_chunk is not None:
                self.on_chunk()
            self.chunks_served += 1
            yield self.content[offset : offset + step]

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """
    Stand-in for requests.Session routed by URL substring.

    Unrouted URLs answer 404. A routed exception instance is raised.
    """

    def __init__(self, routes: dict[str, object] | None = None) -> None:
        self.routes = dict(routes or {})
        self.requested: list[str] = []
        self.timeouts: list[float] = []
        self.streamed: list[bool] = []
        self._lock = threading.Lock()

    def get(self, url: str, headers=None, timeout=None, allow_redirects=True, stream=False):
        with self._lock:
            self.requested.append(url)
            self.timeouts.append(timeout)
            self.streamed.append(stream)
        for fragment, outcome in self.routes.items():
            if fragment in url:
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome
        return FakeResponse(status_code=404)


class RecordingSleep:
    def __init__(self) -> None:
        self.durations: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.durations.append(seconds)


def build_row(**overrides: str) -> dict[str, str]:
    row = {
        "Company Name": ACME_NAME,
        "Informal Name": "Acme",
        "City": "Dayton",
        "State": "OH",
        "Website": "https://www.acmewidgets.com/about?ref=list",
        "Description": ACME_DESCRIPTION,
        "Specialties": ACME_SPECIALTIES,
        "Industries": "Industrial Machinery",
        "Employee Count": "85",
        "Latest Estimated Revenue ($)": "11,590,000",
        "6 Months Growth Rate %": "4.2",
        "9 Months Growth Rate %": "6.1",
        "24 Months Growth Rate %": "12.5",
        "Executive Title": "CEO",
        "Executive First Name": "Jane",
        "Executive Last Name": "Doe",
    }
    row.update(overrides)
    return row


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    for getter in (get_llm_settings, get_summary_settings, get_logo_fetch_settings, get_upload_settings):
        getter.cache_clear()
    yield
    for getter in (get_llm_settings, get_summary_settings, get_logo_fetch_settings, get_upload_settings):
        getter.cache_clear()


@pytest.fixture()
def scripted_adapter():
    def factory(*responses: object, default: str | None = None) -> ScriptedAdapter:
        return ScriptedAdapter(responses, default=default)

    return factory


@pytest.fixture()
def recorded_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def fake_session():
    def factory(routes: dict[str, object] | None = None) -> FakeSession:
        return FakeSession(routes)

    return factory


@pytest.fixture()
def company_row():
    return build_row


@pytest.fixture()
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), (30, 58, 95)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def timeout_error() -> Exception:
    return requests.Timeout("timed out")


@pytest.fixture()
def status_error():
    return StatusError


@pytest.fixture()
def fake_response():
    return FakeResponse


@pytest.fixture()
def acme() -> SimpleNamespace:
    return SimpleNamespace(
        name=ACME_NAME,
        description=ACME_DESCRIPTION,
        specialties=ACME_SPECIALTIES,
        excellent_summary=ACME_EXCELLENT_SUMMARY,
    )


@pytest.fixture()
def source_headers() -> list[str]:
    return list(SOURCE_HEADERS)
