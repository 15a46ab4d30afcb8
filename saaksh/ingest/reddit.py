"""Reddit source: public JSON API, or OAuth2 when app credentials are set."""

from __future__ import annotations

import logging

import httpx

from saaksh.errors import SourceError, SourceErrorKind
from saaksh.ingest import register_source
from saaksh.ingest.base import BaseSource
from saaksh.ingest.text import preprocess_text
from saaksh.models import RedditAnalysisResult, RedditComment, RedditPost
from saaksh.schema import AnalysisRecord

logger = logging.getLogger(__name__)

PUBLIC_BASE = "https://www.reddit.com"
OAUTH_BASE = "https://oauth.reddit.com"
TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
SORT_MODES = ("hot", "new", "top", "rising")
MAX_ANALYZED_COMMENTS = 10


@register_source("reddit")
class RedditSource(BaseSource):
    """Fetch subreddit posts and comments and analyze them."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._token: str | None = None

    @property
    def name(self) -> str:
        return "reddit"

    def item_id(self, item: RedditPost) -> str:
        return item.id

    @property
    def _uses_oauth(self) -> bool:
        return bool(self.settings.get("client_id") and self.settings.get("client_secret"))

    async def fetch_posts(
        self, subreddit: str, sort: str = "hot", limit: int = 10,
    ) -> list[RedditPost]:
        """Fetch a subreddit listing (``limit`` is capped at 100 by Reddit)."""
        if sort not in SORT_MODES:
            raise ValueError(f"Unknown sort mode '{sort}', expected one of {SORT_MODES}")

        base, headers = await self._endpoint()
        data = await self._get_json(
            f"{base}/r/{subreddit}/{sort}.json",
            params={"limit": limit},
            headers=headers,
        )
        posts = self._parse_listing(data)
        logger.info("Reddit fetched %d posts from r/%s (%s)", len(posts), subreddit, sort)
        return posts

    async def search_posts(
        self, query: str, subreddit: str | None = None, limit: int = 10,
    ) -> list[RedditPost]:
        """Search posts by keyword, optionally restricted to one subreddit."""
        base, headers = await self._endpoint()
        params = {"q": query, "limit": limit, "sort": "relevance"}
        if subreddit:
            url = f"{base}/r/{subreddit}/search.json"
            params["restrict_sr"] = "on"
        else:
            url = f"{base}/search.json"

        data = await self._get_json(url, params=params, headers=headers)
        posts = self._parse_listing(data)
        logger.info("Reddit search '%s' returned %d posts", query, len(posts))
        return posts

    async def fetch_comments(
        self, subreddit: str, post_id: str, limit: int = 20,
    ) -> list[RedditComment]:
        """Fetch top-level comments; failures yield an empty list."""
        base, headers = await self._endpoint()
        try:
            data = await self._get_json(
                f"{base}/r/{subreddit}/comments/{post_id}.json",
                params={"limit": limit, "depth": 1, "sort": "top"},
                headers=headers,
            )
        except SourceError as exc:
            logger.warning("Failed to fetch comments for post %s: %s", post_id, exc)
            return []

        if not isinstance(data, list) or len(data) < 2:
            return []
        children = (data[1].get("data") or {}).get("children") or []

        comments = []
        for child in children:
            comment = child.get("data", {})
            if child.get("kind") != "t1" or not comment.get("body"):
                continue
            comments.append(
                RedditComment(
                    id=comment.get("id", ""),
                    author=comment.get("author", ""),
                    body=comment["body"],
                    score=comment.get("score", 0),
                    created=comment.get("created_utc", 0.0),
                ),
            )
        return comments[:limit]

    async def analyze_post(
        self,
        post: RedditPost,
        include_comments: bool | None = None,
        comment_limit: int | None = None,
    ) -> RedditAnalysisResult:
        """Analyze a post together with its top comments."""
        key = self.cache_key(post.id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if include_comments is None:
            include_comments = self.settings["include_comments"]
        if comment_limit is None:
            comment_limit = self.settings["comment_limit"]

        comments: list[RedditComment] = []
        if include_comments and post.num_comments > 0:
            comments = await self.fetch_comments(post.subreddit, post.id, comment_limit)

        analysis = await self.analyzer.analyze(build_analysis_text(post, comments))

        result = RedditAnalysisResult(
            item_id=post.id,
            container=post.subreddit,
            title=post.title,
            url=post.permalink,
            analysis=analysis,
            top_comments=comments,
            post_text=post.selftext,
        )
        self.cache.put(key, result)
        return result

    async def analyze_item(
        self, item: RedditPost, include_comments: bool | None = None,
    ) -> RedditAnalysisResult:
        return await self.analyze_post(item, include_comments=include_comments)

    def fallback_result(self, item: RedditPost) -> RedditAnalysisResult:
        return RedditAnalysisResult(
            item_id=item.id,
            container=item.subreddit,
            title=item.title,
            url=item.permalink,
            analysis=AnalysisRecord.unknown(),
            post_text=item.selftext,
        )

    async def _endpoint(self) -> tuple[str, dict]:
        """API base URL and headers, authenticating once if configured."""
        headers = {"User-Agent": self.settings["user_agent"]}
        if self._uses_oauth:
            if self._token is None:
                self._token = await self._get_token(
                    self.settings["client_id"],
                    self.settings["client_secret"],
                    self.settings["user_agent"],
                )
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
                return OAUTH_BASE, headers
            logger.warning("Reddit OAuth unavailable, using the public API")
        return PUBLIC_BASE, headers

    @staticmethod
    async def _get_token(
        client_id: str, client_secret: str, user_agent: str,
    ) -> str:
        """Obtain an OAuth2 bearer token using client credentials."""
        try:
            async with httpx.AsyncClient(timeout=15) as client:
                resp = await client.post(
                    TOKEN_URL,
                    data={"grant_type": "client_credentials"},
                    auth=(client_id, client_secret),
                    headers={"User-Agent": user_agent},
                )
                resp.raise_for_status()
                return resp.json().get("access_token") or ""
        except (httpx.HTTPError, ValueError):
            logger.exception("Reddit OAuth token request failed")
            return ""

    def _parse_listing(self, data) -> list[RedditPost]:
        children = (
            (data.get("data") or {}).get("children")
            if isinstance(data, dict) else None
        )
        if children is None:
            raise SourceError(
                SourceErrorKind.INVALID_RESPONSE,
                "Invalid Reddit API response",
                source=self.name,
            )

        posts = []
        for child in children:
            if child.get("kind") != "t3":
                continue
            post = child.get("data", {})
            posts.append(
                RedditPost(
                    id=post.get("id", ""),
                    subreddit=post.get("subreddit", ""),
                    title=post.get("title", ""),
                    selftext=post.get("selftext") or "",
                    author=post.get("author", ""),
                    score=post.get("score", 0),
                    upvote_ratio=post.get("upvote_ratio", 0.0),
                    num_comments=post.get("num_comments", 0),
                    created=post.get("created_utc", 0.0),
                    url=post.get("url", ""),
                    permalink=f"{PUBLIC_BASE}{post.get('permalink', '')}",
                ),
            )
        return posts


def build_analysis_text(post: RedditPost, comments: list[RedditComment]) -> str:
    """Combine title, body and top comments into one oracle input."""
    text = f"Post Title: {preprocess_text(post.title)}"

    body = preprocess_text(post.selftext)
    if body:
        text += f"\n\nPost Content: {body}"

    cleaned = [preprocess_text(c.body) for c in comments]
    cleaned = [c for c in cleaned if c][:MAX_ANALYZED_COMMENTS]
    if cleaned:
        text += "\n\nTop Comments:\n" + "\n---\n".join(cleaned)

    return text
