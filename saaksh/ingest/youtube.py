"""YouTube source using the YouTube Data API v3."""

from __future__ import annotations

import logging

import httpx

from saaksh.errors import ConfigurationError, SourceError, SourceErrorKind
from saaksh.ingest import register_source
from saaksh.ingest.base import BaseSource
from saaksh.ingest.text import preprocess_text
from saaksh.models import YouTubeAnalysisResult, YouTubeComment, YouTubeVideo
from saaksh.schema import AnalysisRecord

logger = logging.getLogger(__name__)

API_BASE = "https://www.googleapis.com/youtube/v3"
ORDER_MODES = ("relevance", "date", "viewCount", "rating")
RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded"}
MIN_COMMENT_LENGTH = 10
MAX_ANALYZED_COMMENTS = 30
STORED_COMMENTS = 10


def _to_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@register_source("youtube")
class YouTubeSource(BaseSource):
    """Search videos, pull their comments and analyze them."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_key = self.settings.get("api_key", "")
        if not self.api_key:
            raise ConfigurationError(
                "YouTube API key not configured. Set sources.youtube.api_key "
                "(e.g. \"${YOUTUBE_API_KEY}\") in your config."
            )

    @property
    def name(self) -> str:
        return "youtube"

    def item_id(self, item: YouTubeVideo) -> str:
        return item.id

    async def search_videos(
        self, query: str, max_results: int = 10, order: str = "relevance",
    ) -> list[YouTubeVideo]:
        """Keyword search followed by a details lookup for the hits."""
        if order not in ORDER_MODES:
            raise ValueError(f"Unknown order '{order}', expected one of {ORDER_MODES}")

        search = await self._get_json(
            f"{API_BASE}/search",
            params={
                "part": "snippet",
                "q": query,
                "type": "video",
                "maxResults": max_results,
                "order": order,
                "key": self.api_key,
            },
        )
        video_ids = [
            item["id"]["videoId"]
            for item in self._items(search)
            if item.get("id", {}).get("videoId")
        ]
        if not video_ids:
            return []

        details = await self._get_json(
            f"{API_BASE}/videos",
            params={
                "part": "snippet,statistics,contentDetails",
                "id": ",".join(video_ids),
                "key": self.api_key,
            },
        )
        videos = [self._parse_video(item) for item in self._items(details)]
        logger.info("YouTube search '%s' returned %d videos", query, len(videos))
        return videos

    async def fetch_comments(
        self, video_id: str, max_results: int = 20,
    ) -> list[YouTubeComment]:
        """Fetch top-level comments; disabled comments yield an empty list."""
        try:
            data = await self._get_json(
                f"{API_BASE}/commentThreads",
                params={
                    "part": "snippet",
                    "videoId": video_id,
                    "maxResults": max_results,
                    "order": "relevance",
                    "textFormat": "plainText",
                    "key": self.api_key,
                },
            )
        except SourceError as exc:
            if exc.reason == "commentsDisabled":
                logger.debug("Comments disabled for video %s", video_id)
                return []
            raise

        comments = []
        for item in self._items(data):
            top = item.get("snippet", {}).get("topLevelComment", {})
            snippet = top.get("snippet", {})
            comments.append(
                YouTubeComment(
                    id=top.get("id", ""),
                    author_display_name=snippet.get("authorDisplayName", ""),
                    text_display=snippet.get("textDisplay", ""),
                    like_count=_to_int(snippet.get("likeCount")),
                    published_at=snippet.get("publishedAt", ""),
                    video_id=snippet.get("videoId", video_id),
                ),
            )
        return comments

    async def analyze_video(
        self, video: YouTubeVideo, comments: list[YouTubeComment],
    ) -> YouTubeAnalysisResult:
        """Analyze a video's title, description and comments."""
        key = self.cache_key(video.id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        analysis = await self.analyzer.analyze(build_analysis_text(video, comments))

        result = YouTubeAnalysisResult(
            item_id=video.id,
            container=video.channel_title,
            title=video.title,
            url=video.url,
            analysis=analysis,
            top_comments=comments[:STORED_COMMENTS],
            description=video.description,
            published_at=video.published_at,
            view_count=video.view_count,
            comment_count=video.comment_count,
            thumbnail_url=video.thumbnail_url,
        )
        self.cache.put(key, result)
        return result

    async def analyze_item(self, item: YouTubeVideo) -> YouTubeAnalysisResult:
        cached = self.cache.get(self.cache_key(item.id))
        if cached is not None:
            return cached
        comments = await self.fetch_comments(item.id, self.settings["comment_limit"])
        return await self.analyze_video(item, comments)

    def fallback_result(self, item: YouTubeVideo) -> YouTubeAnalysisResult:
        return YouTubeAnalysisResult(
            item_id=item.id,
            container=item.channel_title,
            title=item.title,
            url=item.url,
            analysis=AnalysisRecord.unknown(),
            description=item.description,
            published_at=item.published_at,
            view_count=item.view_count,
            comment_count=item.comment_count,
            thumbnail_url=item.thumbnail_url,
        )

    def _items(self, data) -> list[dict]:
        if not isinstance(data, dict) or not isinstance(data.get("items", []), list):
            raise SourceError(
                SourceErrorKind.INVALID_RESPONSE,
                "Invalid YouTube API response",
                source=self.name,
            )
        return data.get("items", [])

    def error_reason(self, resp: httpx.Response) -> str:
        try:
            errors = resp.json().get("error", {}).get("errors") or [{}]
        except (ValueError, AttributeError):
            return ""
        return errors[0].get("reason", "")

    def classify_status(self, resp: httpx.Response) -> SourceError:
        error = super().classify_status(resp)
        if error.reason in RATE_LIMIT_REASONS:
            error.kind = SourceErrorKind.RATE_LIMITED
        return error

    @staticmethod
    def _parse_video(item: dict) -> YouTubeVideo:
        snippet = item.get("snippet", {})
        stats = item.get("statistics", {})
        thumbnails = snippet.get("thumbnails", {})
        thumbnail = thumbnails.get("medium") or thumbnails.get("default") or {}
        return YouTubeVideo(
            id=item.get("id", ""),
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            channel_id=snippet.get("channelId", ""),
            channel_title=snippet.get("channelTitle", ""),
            published_at=snippet.get("publishedAt", ""),
            view_count=_to_int(stats.get("viewCount")),
            like_count=_to_int(stats.get("likeCount")),
            comment_count=_to_int(stats.get("commentCount")),
            thumbnail_url=thumbnail.get("url", ""),
            duration=item.get("contentDetails", {}).get("duration", ""),
            tags=snippet.get("tags", []),
        )


def build_analysis_text(video: YouTubeVideo, comments: list[YouTubeComment]) -> str:
    """Combine title, description, comments and stats into one oracle input."""
    cleaned = [preprocess_text(c.text_display, strip_symbols=True) for c in comments]
    cleaned = [c for c in cleaned if len(c) > MIN_COMMENT_LENGTH][:MAX_ANALYZED_COMMENTS]

    return "\n".join([
        f"VIDEO TITLE: {preprocess_text(video.title, strip_symbols=True)}",
        "",
        f"VIDEO DESCRIPTION: {preprocess_text(video.description, strip_symbols=True)}",
        "",
        f"TOP COMMENTS: {' | '.join(cleaned)}",
        "",
        f"CHANNEL: {video.channel_title}",
        f"VIEWS: {video.view_count}",
        f"COMMENTS: {video.comment_count}",
    ])
