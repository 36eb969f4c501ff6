"""Module entrypoint for running PDF Translator as ``python -m pdf_translator``."""

from __future__ import annotations

from pdf_translator.cli import main


if __name__ == "__main__":
    main()
