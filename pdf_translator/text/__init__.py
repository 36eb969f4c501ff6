"""Text segmentation utilities."""

from .chunking import Chunker, reassemble, utf8_length

__all__ = ["Chunker", "reassemble", "utf8_length"]
