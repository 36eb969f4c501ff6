"""Top-level package for PDF Translator.

This package extracts text from PDF files, splits it into byte-bounded
segments, translates them concurrently through the Google Cloud Translation
API, and writes the reassembled text beside the source file. The main
orchestration entry point is `TranslationPipeline`.
"""

from .pipeline import TranslationPipeline

__all__ = ["TranslationPipeline", "__version__"]

__version__ = "0.1.0"
