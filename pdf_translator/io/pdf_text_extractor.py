"""PDF text extraction via the external `pdftotext` tool.

Responsibilities:
- Define the narrow extraction capability the pipeline depends on.
- Run `pdftotext` and map every failure to `ExtractionError`.
"""

from __future__ import annotations

from pathlib import Path
import subprocess
from typing import Protocol

from ..errors import ExtractionError
from ..runtime_tools import resolve_executable


class TextExtractor(Protocol):
    """Capability that turns a PDF file into raw text."""

    def extract(self, pdf_path: Path) -> str:
        """Return the raw text of `pdf_path` or raise `ExtractionError`."""


class PdfTextExtractor:
    """Extractor for text-based PDFs using the `pdftotext` tool."""

    def __init__(self, layout: bool = True) -> None:
        """Initialize extraction flags."""

        self.layout = layout

    def extract(self, pdf_path: Path) -> str:
        """Extract all text from a PDF file, pages separated by newlines."""

        output = self._run_pdftotext(pdf_path)
        return output.replace("\f", "\n")

    def _run_pdftotext(self, pdf_path: Path) -> str:
        if not pdf_path.exists():
            raise ExtractionError(f"Input PDF not found: {pdf_path}")
        if not pdf_path.is_file():
            raise ExtractionError(f"Input path is not a file: {pdf_path}")

        command = [resolve_executable("pdftotext"), "-enc", "UTF-8"]
        if self.layout:
            command.append("-layout")
        command.extend([str(pdf_path), "-"])

        try:
            result = subprocess.run(
                command,
                check=False,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise ExtractionError(
                "The `pdftotext` command is required but was not found."
            ) from exc
        except OSError as exc:
            raise ExtractionError(f"Failed to run `pdftotext`: {exc}") from exc

        if result.returncode != 0:
            details = result.stderr.strip() or "unknown error"
            raise ExtractionError(f"pdftotext failed for {pdf_path}: {details}")

        return result.stdout
