"""Integration-test fixtures isolating credentials, environment, and network."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import requests

from pdf_translator.errors import ExtractionError


class MockTranslateResponse:
    """Minimal requests response for the Translation v2 endpoint."""

    def __init__(self, *, payload: bytes, status_code: int = 200) -> None:
        self.content = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


@pytest.fixture(autouse=True)
def app_config_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point the credential file at a temp dir and clear translator env vars."""

    app_dir = tmp_path / "app-config"
    monkeypatch.setattr(
        "pdf_translator.credentials.typer.get_app_dir", lambda _name: str(app_dir)
    )
    for key in list(os.environ):
        if key.startswith("PDF_TRANSLATOR_"):
            monkeypatch.delenv(key, raising=False)
    return app_dir


@pytest.fixture
def google_translate_stub(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, object]]:
    """Answer translate requests from a small English -> Swedish table.

    Texts starting with `FAIL` get a 400 response; everything else without a
    table entry is upper-cased.
    """

    table = {
        "Hello world. This is a test.": "Hej världen. Det här är ett test.",
        "Hello world.": "Hej världen.",
        "This is a test.": "Det här är ett test.",
    }
    calls: list[dict[str, object]] = []

    def _post(url: str, **kwargs: object) -> MockTranslateResponse:
        calls.append({"url": url, **kwargs})
        body = kwargs["json"]
        assert isinstance(body, dict)
        text = str(body["q"])
        if text.startswith("FAIL"):
            payload = {"error": {"code": 400, "message": "Invalid value", "status": "INVALID_ARGUMENT"}}
            return MockTranslateResponse(payload=json.dumps(payload).encode("utf-8"), status_code=400)
        translated = table.get(text, text.upper())
        payload = {"data": {"translations": [{"translatedText": translated}]}}
        return MockTranslateResponse(payload=json.dumps(payload).encode("utf-8"))

    monkeypatch.setattr("pdf_translator.translation.google_client.requests.post", _post)
    return calls


@pytest.fixture
def fake_pdftotext(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Replace `pdftotext` extraction with a mutable in-memory document."""

    document = {"text": "Hello world. This is a test."}

    def _extract(self: object, pdf_path: Path) -> str:
        if not pdf_path.exists():
            raise ExtractionError(f"Input PDF not found: {pdf_path}")
        return document["text"]

    monkeypatch.setattr("pdf_translator.io.pdf_text_extractor.PdfTextExtractor.extract", _extract)
    return document
