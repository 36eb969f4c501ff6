"""Translation client interface."""

from __future__ import annotations

from typing import Protocol

from ..models.datatypes import Credentials


class TranslationClient(Protocol):
    """Sends one segment to a translation service.

    Implementations raise a `TranslationError` subclass on failure and never
    mutate credentials; refreshing is the caller's responsibility.
    """

    def translate(
        self,
        segment_text: str,
        source_lang: str,
        target_lang: str,
        credentials: Credentials,
    ) -> str:
        """Return `segment_text` translated from `source_lang` to `target_lang`."""
