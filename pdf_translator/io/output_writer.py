"""Translated output persistence.

Responsibilities:
- Derive the sibling output path for a source PDF.
- Write the assembled translation atomically, mapping failures to `WriteError`.
"""

from __future__ import annotations

import os
from pathlib import Path
import tempfile

from ..errors import WriteError

DEFAULT_OUTPUT_SUFFIX = ".translated.txt"


class OutputWriter:
    """Write translated text next to the source PDF."""

    def __init__(self, suffix: str = DEFAULT_OUTPUT_SUFFIX) -> None:
        """Initialize with the fixed output file suffix."""

        if not suffix.strip():
            raise ValueError("Output suffix must be a non-empty string.")
        self.suffix = suffix

    def output_path(self, pdf_path: Path) -> Path:
        """Return `<dir>/<stem><suffix>` for the given PDF path."""

        return pdf_path.with_name(f"{pdf_path.stem}{self.suffix}")

    def write(self, pdf_path: Path, text: str) -> Path:
        """Write `text` to the sibling output file, replacing prior content."""

        target = self.output_path(pdf_path)
        temp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_name = handle.name
                handle.write(text)
            os.replace(temp_name, target)
        except OSError as exc:
            if temp_name is not None and os.path.exists(temp_name):
                os.unlink(temp_name)
            raise WriteError(f"Failed to write translated output `{target}`: {exc}") from exc
        return target
