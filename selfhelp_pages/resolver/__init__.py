"""Page Content Resolver, its cache, and the CMS HTTP client."""

from .cache import CacheStats, TtlCache
from .client import CmsApiClient, ContentFetchError, PageNotFoundError, build_session
from .resolver import (
    ContentSource,
    FetchState,
    PageContentResolver,
    Resolution,
    ResolutionStatus,
)

__all__ = [
    "CacheStats",
    "CmsApiClient",
    "ContentFetchError",
    "ContentSource",
    "FetchState",
    "PageContentResolver",
    "PageNotFoundError",
    "Resolution",
    "ResolutionStatus",
    "TtlCache",
    "build_session",
]
