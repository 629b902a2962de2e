from .apple_import import (
    AppleImportClient,
    AppleImportError,
    AppleImportResult,
    transform_apple_reviews,
)

__all__ = [
    "AppleImportClient",
    "AppleImportError",
    "AppleImportResult",
    "transform_apple_reviews",
]
