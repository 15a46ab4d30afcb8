"""Tests for the YouTube source."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from saaksh.errors import ConfigurationError, SourceError, SourceErrorKind
from saaksh.ingest.youtube import YouTubeSource, build_analysis_text
from saaksh.models import YouTubeComment, YouTubeVideo

MOCK_SEARCH = {
    "items": [
        {"id": {"kind": "youtube#video", "videoId": "vid1"}},
        {"id": {"kind": "youtube#video", "videoId": "vid2"}},
        {"id": {"kind": "youtube#channel", "channelId": "chan"}},
    ],
}

MOCK_DETAILS = {
    "items": [
        {
            "id": "vid1",
            "snippet": {
                "title": "The cure THEY don't want you to know",
                "description": "Doctors hate this.",
                "channelId": "UC1",
                "channelTitle": "Wellness Truth",
                "publishedAt": "2024-03-01T10:00:00Z",
                "tags": ["health", "cure"],
                "thumbnails": {
                    "default": {"url": "https://i.ytimg.com/vi/vid1/default.jpg"},
                    "medium": {"url": "https://i.ytimg.com/vi/vid1/mqdefault.jpg"},
                },
            },
            "statistics": {"viewCount": "120500", "likeCount": "900", "commentCount": "311"},
            "contentDetails": {"duration": "PT12M3S"},
        },
        {
            "id": "vid2",
            "snippet": {
                "title": "Fact check",
                "description": "",
                "channelId": "UC2",
                "channelTitle": "News Desk",
            },
            "statistics": {},
        },
    ],
}


def _comment_thread(cid, text):
    return {
        "snippet": {
            "topLevelComment": {
                "id": cid,
                "snippet": {
                    "authorDisplayName": "viewer",
                    "textDisplay": text,
                    "likeCount": 4,
                    "publishedAt": "2024-03-02T10:00:00Z",
                    "videoId": "vid1",
                },
            },
        },
    }


def _video(vid="vid1", channel="Wellness Truth"):
    return YouTubeVideo(
        id=vid,
        title=f"Video {vid}",
        description="desc",
        channel_id="UC1",
        channel_title=channel,
        view_count=10,
        comment_count=2,
    )


@pytest.fixture
def youtube_source(sample_config, make_record):
    analyzer = AsyncMock()
    analyzer.analyze = AsyncMock(return_value=make_record())
    return YouTubeSource(sample_config, analyzer)


def test_missing_api_key_is_configuration_error(sample_config):
    sample_config["sources"]["youtube"]["api_key"] = ""
    with pytest.raises(ConfigurationError, match="YouTube API key"):
        YouTubeSource(sample_config, AsyncMock())


@pytest.mark.asyncio
async def test_search_videos(youtube_source):
    get = AsyncMock(side_effect=[MOCK_SEARCH, MOCK_DETAILS])
    with patch.object(youtube_source, "_get_json", get):
        videos = await youtube_source.search_videos("miracle cure", max_results=5, order="date")

    assert [v.id for v in videos] == ["vid1", "vid2"]
    video = videos[0]
    assert video.channel_title == "Wellness Truth"
    assert video.view_count == 120500
    assert video.comment_count == 311
    assert video.thumbnail_url == "https://i.ytimg.com/vi/vid1/mqdefault.jpg"
    assert video.duration == "PT12M3S"
    assert video.url == "https://www.youtube.com/watch?v=vid1"
    assert videos[1].view_count == 0

    search_params = get.call_args_list[0].kwargs["params"]
    assert search_params["q"] == "miracle cure"
    assert search_params["maxResults"] == 5
    assert search_params["order"] == "date"
    assert search_params["key"] == "test-youtube-key"
    assert get.call_args_list[1].kwargs["params"]["id"] == "vid1,vid2"


@pytest.mark.asyncio
async def test_search_without_hits_skips_details(youtube_source):
    get = AsyncMock(return_value={"items": []})
    with patch.object(youtube_source, "_get_json", get):
        videos = await youtube_source.search_videos("nothing")

    assert videos == []
    assert get.await_count == 1


@pytest.mark.asyncio
async def test_search_rejects_unknown_order(youtube_source):
    with pytest.raises(ValueError):
        await youtube_source.search_videos("x", order="random")


@pytest.mark.asyncio
async def test_fetch_comments(youtube_source):
    data = {"items": [_comment_thread("c1", "Total nonsense"), _comment_thread("c2", "wow")]}
    with patch.object(youtube_source, "_get_json", AsyncMock(return_value=data)):
        comments = await youtube_source.fetch_comments("vid1")

    assert [c.id for c in comments] == ["c1", "c2"]
    assert comments[0].text_display == "Total nonsense"
    assert comments[0].like_count == 4


@pytest.mark.asyncio
async def test_fetch_comments_disabled_returns_empty(youtube_source):
    error = SourceError(
        SourceErrorKind.FORBIDDEN, "HTTP 403", source="youtube", reason="commentsDisabled",
    )
    with patch.object(youtube_source, "_get_json", AsyncMock(side_effect=error)):
        assert await youtube_source.fetch_comments("vid1") == []


@pytest.mark.asyncio
async def test_fetch_comments_other_errors_propagate(youtube_source):
    error = SourceError(SourceErrorKind.NOT_FOUND, "HTTP 404", source="youtube")
    with patch.object(youtube_source, "_get_json", AsyncMock(side_effect=error)):
        with pytest.raises(SourceError):
            await youtube_source.fetch_comments("gone")


@pytest.mark.parametrize(
    ("reason", "kind"),
    [
        ("rateLimitExceeded", SourceErrorKind.RATE_LIMITED),
        ("userRateLimitExceeded", SourceErrorKind.RATE_LIMITED),
        ("quotaExceeded", SourceErrorKind.FORBIDDEN),
        ("commentsDisabled", SourceErrorKind.FORBIDDEN),
    ],
)
def test_classify_status_uses_error_reason(youtube_source, reason, kind):
    resp = httpx.Response(403, json={"error": {"code": 403, "errors": [{"reason": reason}]}})
    error = youtube_source.classify_status(resp)
    assert error.kind is kind
    assert error.reason == reason


def test_classify_status_without_json_body(youtube_source):
    error = youtube_source.classify_status(httpx.Response(403, text="Forbidden"))
    assert error.kind is SourceErrorKind.FORBIDDEN
    assert error.reason == ""


def test_build_analysis_text():
    video = YouTubeVideo(
        id="vid1",
        title="Miracle cure \U0001F631 revealed!!",
        description="Visit https://example.com now \u2764",
        channel_id="UC1",
        channel_title="Wellness Truth",
        view_count=1000,
        comment_count=40,
    )
    comments = [
        YouTubeComment(id="c1", author_display_name="a", text_display="This is completely false"),
        YouTubeComment(id="c2", author_display_name="b", text_display="lol"),
        YouTubeComment(id="c3", author_display_name="c", text_display="My aunt was cured by this!"),
    ]

    text = build_analysis_text(video, comments)

    assert "VIDEO TITLE: Miracle cure revealed!!" in text
    assert "VIDEO DESCRIPTION: Visit [LINK] now" in text
    assert "TOP COMMENTS: This is completely false | My aunt was cured by this!" in text
    assert "CHANNEL: Wellness Truth" in text
    assert "VIEWS: 1000" in text
    assert "COMMENTS: 40" in text


def test_build_analysis_text_caps_comments():
    comments = [
        YouTubeComment(id=str(i), author_display_name="a", text_display=f"comment number {i}")
        for i in range(40)
    ]
    text = build_analysis_text(_video(), comments)
    assert "comment number 29" in text
    assert "comment number 30" not in text


@pytest.mark.asyncio
async def test_analyze_item_fetches_comments_and_caches(youtube_source):
    comments = [
        YouTubeComment(id=str(i), author_display_name="a", text_display=f"a long comment {i}")
        for i in range(15)
    ]
    with patch.object(
        youtube_source, "fetch_comments", AsyncMock(return_value=comments),
    ) as fetch:
        first = await youtube_source.analyze_item(_video())
        second = await youtube_source.analyze_item(_video())

    assert first is second
    fetch.assert_awaited_once_with("vid1", 30)
    assert len(first.top_comments) == 10
    assert first.channel_title == "Wellness Truth"
    assert first.url == "https://www.youtube.com/watch?v=vid1"
    youtube_source.analyzer.analyze.assert_awaited_once()


@pytest.mark.asyncio
async def test_analyze_batch_substitutes_failures(youtube_source, make_record):
    async def analyze(text):
        if "Video bad" in text:
            raise RuntimeError("oracle down")
        return make_record()

    youtube_source.analyzer.analyze = AsyncMock(side_effect=analyze)

    with patch.object(youtube_source, "fetch_comments", AsyncMock(return_value=[])):
        results = await youtube_source.analyze_batch([_video("ok"), _video("bad")])

    assert [r.item_id for r in results] == ["ok", "bad"]
    fallback = results[1]
    assert fallback.fake_risk_score == 0
    assert fallback.credibility_score == 50
    assert fallback.analysis.emotional_tone.neutrality == 100
    assert fallback.analysis.virality_risk.potential_impact == "Unknown"
    assert fallback.top_comments == []


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [["not", "an", "object"], {"items": "nope"}, None])
async def test_search_rejects_malformed_body(youtube_source, body):
    with patch.object(youtube_source, "_get_json", AsyncMock(return_value=body)):
        with pytest.raises(SourceError) as exc_info:
            await youtube_source.search_videos("anything")
    assert exc_info.value.kind is SourceErrorKind.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_malformed_details_body(youtube_source):
    get = AsyncMock(side_effect=[MOCK_SEARCH, "<html>"])
    with patch.object(youtube_source, "_get_json", get):
        with pytest.raises(SourceError) as exc_info:
            await youtube_source.search_videos("anything")
    assert exc_info.value.kind is SourceErrorKind.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_malformed_comments_body(youtube_source):
    with patch.object(youtube_source, "_get_json", AsyncMock(return_value=[])):
        with pytest.raises(SourceError) as exc_info:
            await youtube_source.fetch_comments("vid1")
    assert exc_info.value.kind is SourceErrorKind.INVALID_RESPONSE
