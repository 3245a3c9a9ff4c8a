"""
Tests for YouTube URL parsing
"""

import pytest

from gist_notes.errors import InvalidURLError
from gist_notes.youtube import (
    extract_video_ids,
    format_timestamp,
    is_valid_video_id,
    parse_timestamp_to_seconds,
    parse_youtube_url,
)

VIDEO_ID = "dQw4w9WgXcQ"


class TestParseYouTubeUrl:
    @pytest.mark.parametrize("url", [
        f"https://www.youtube.com/watch?v={VIDEO_ID}",
        f"https://youtube.com/watch?v={VIDEO_ID}&t=42s",
        f"https://youtu.be/{VIDEO_ID}",
        f"https://www.youtube.com/embed/{VIDEO_ID}",
        f"https://www.youtube.com/v/{VIDEO_ID}",
        f"https://music.youtube.com/watch?v={VIDEO_ID}",
        f"https://www.youtube.com/watch?feature=share&v={VIDEO_ID}",
        f"  https://www.youtube.com/watch%3Fv%3D{VIDEO_ID}  ",
    ])
    def test_regular_video(self, url):
        info = parse_youtube_url(url)
        assert info.video_id == VIDEO_ID
        assert info.is_shorts is False
        assert info.clean_url == f"https://www.youtube.com/watch?v={VIDEO_ID}"
        assert info.embed_url == f"https://www.youtube.com/embed/{VIDEO_ID}"

    @pytest.mark.parametrize("url", [
        f"https://www.youtube.com/shorts/{VIDEO_ID}",
        f"https://youtu.be/shorts/{VIDEO_ID}",
    ])
    def test_shorts(self, url):
        info = parse_youtube_url(url)
        assert info.video_id == VIDEO_ID
        assert info.is_shorts is True
        assert info.clean_url == f"https://www.youtube.com/shorts/{VIDEO_ID}"

    def test_query_parameter_fallback(self):
        info = parse_youtube_url(f"https://example.com/player?v={VIDEO_ID}")
        assert info.video_id == VIDEO_ID

    def test_timestamp_url(self):
        info = parse_youtube_url(f"https://youtu.be/{VIDEO_ID}")
        assert info.timestamp_url(83.9) == f"https://www.youtube.com/watch?v={VIDEO_ID}&t=83s"

    @pytest.mark.parametrize("url", [
        "https://example.com/watch",
        "not a url",
        "https://www.youtube.com/watch?v=short",
        "",
    ])
    def test_invalid(self, url):
        with pytest.raises(InvalidURLError) as exc_info:
            parse_youtube_url(url)
        assert exc_info.value.error_code == "invalid_url"


class TestExtractVideoIds:
    def test_unique_in_order(self):
        text = (
            f"watch https://youtu.be/{VIDEO_ID} and "
            "https://www.youtube.com/shorts/abcdefghijk then "
            f"https://www.youtube.com/watch?v={VIDEO_ID}"
        )
        assert extract_video_ids(text) == [VIDEO_ID, "abcdefghijk"]

    def test_no_ids(self):
        assert extract_video_ids("nothing to see here") == []


class TestTimestamps:
    @pytest.mark.parametrize("raw,expected", [
        ("[1:23]", 83.0),
        ("45.2s", 45.2),
        ("[1:02:03]", 3723.0),
        ("[45]", 45.0),
        ("garbage", 0.0),
    ])
    def test_parse(self, raw, expected):
        assert parse_timestamp_to_seconds(raw) == pytest.approx(expected)

    def test_format(self):
        assert format_timestamp(83) == "1:23"
        assert format_timestamp(3723) == "1:02:03"
        assert format_timestamp(5) == "0:05"

    def test_valid_video_id(self):
        assert is_valid_video_id(VIDEO_ID)
        assert not is_valid_video_id("too-short")
