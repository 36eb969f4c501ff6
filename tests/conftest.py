"""Shared pytest fixtures for the PDF Translator test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.fakes import FakeCredentialStore, ScriptedTranslationClient


@pytest.fixture
def credential_store() -> FakeCredentialStore:
    """Provide an in-memory credential store that counts refreshes."""

    return FakeCredentialStore()


@pytest.fixture
def swedish_client() -> ScriptedTranslationClient:
    """Provide a client that knows the canonical English -> Swedish sentences."""

    return ScriptedTranslationClient(
        translations={
            "Hello world. This is a test.": "Hej världen. Det här är ett test.",
            "Hello world.": "Hej världen.",
            "This is a test.": "Det här är ett test.",
        }
    )


@pytest.fixture
def sample_pdf(tmp_path: Path) -> Path:
    """Create a placeholder PDF path; extraction is faked in tests that use it."""

    pdf_path = tmp_path / "report.pdf"
    pdf_path.write_bytes(b"%PDF-1.4\n% placeholder\n")
    return pdf_path
