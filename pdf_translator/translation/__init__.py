"""Translation service access: HTTP client, pacing, and retry control."""

from .client import TranslationClient
from .google_client import GOOGLE_TRANSLATE_ENDPOINT, GoogleTranslateClient
from .rate_limiter import RateLimiter
from .retry import RetryController, RetryPolicy, SegmentLifecycle, SegmentState

__all__ = [
    "GOOGLE_TRANSLATE_ENDPOINT",
    "GoogleTranslateClient",
    "RateLimiter",
    "RetryController",
    "RetryPolicy",
    "SegmentLifecycle",
    "SegmentState",
    "TranslationClient",
]
