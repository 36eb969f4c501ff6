"""Datatype package for PDF Translator."""

from .datatypes import (
    Credentials,
    Segment,
    SegmentFailure,
    TranslationOutcome,
    TranslationResult,
)

__all__ = [
    "Credentials",
    "Segment",
    "SegmentFailure",
    "TranslationOutcome",
    "TranslationResult",
]
