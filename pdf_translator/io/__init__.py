"""Input/output collaborators: PDF text extraction and output writing."""

from .output_writer import DEFAULT_OUTPUT_SUFFIX, OutputWriter
from .pdf_text_extractor import PdfTextExtractor, TextExtractor

__all__ = ["DEFAULT_OUTPUT_SUFFIX", "OutputWriter", "PdfTextExtractor", "TextExtractor"]
