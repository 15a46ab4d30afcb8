"""Content source registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from saaksh.ingest.base import BaseSource

SOURCES: dict[str, type[BaseSource]] = {}


def register_source(name: str):
    """Decorator to register a content source."""

    def decorator(cls):
        SOURCES[name] = cls
        return cls

    return decorator


# Import implementations to trigger registration
from saaksh.ingest.reddit import RedditSource  # noqa: E402, F401
from saaksh.ingest.youtube import YouTubeSource  # noqa: E402, F401
