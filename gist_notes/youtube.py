"""
YouTube URL parsing: video ids, canonical/embed URLs and timestamps
"""
import re
from dataclasses import dataclass
from typing import List
from urllib.parse import parse_qs, unquote, urlparse

from .errors import InvalidURLError

_ID = r"([A-Za-z0-9_-]{11})"
VIDEO_ID_RE = re.compile(rf"^{_ID[1:-1]}$")

# (pattern, is_shorts); shorts patterns come first
URL_PATTERNS = [
    (re.compile(rf"youtube\.com/shorts/{_ID}"), True),
    (re.compile(rf"youtu\.be/shorts/{_ID}"), True),
    (re.compile(rf"youtube\.com/watch\?v={_ID}"), False),
    (re.compile(rf"youtu\.be/{_ID}"), False),
    (re.compile(rf"youtube\.com/embed/{_ID}"), False),
    (re.compile(rf"youtube\.com/v/{_ID}"), False),
    (re.compile(rf"youtube\.com/.*[?&]v={_ID}"), False),
]


@dataclass(frozen=True)
class YouTubeInfo:
    """Identifiers and canonical URLs for one video"""
    video_id: str
    is_shorts: bool = False

    @property
    def clean_url(self) -> str:
        if self.is_shorts:
            return f"https://www.youtube.com/shorts/{self.video_id}"
        return f"https://www.youtube.com/watch?v={self.video_id}"

    @property
    def embed_url(self) -> str:
        return f"https://www.youtube.com/embed/{self.video_id}"

    def timestamp_url(self, seconds: float) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}&t={int(seconds)}s"


def is_valid_video_id(video_id: str) -> bool:
    return bool(VIDEO_ID_RE.match(video_id))


def parse_youtube_url(url: str) -> YouTubeInfo:
    """Parse any common YouTube URL form (watch, youtu.be, shorts, embed, music).

    Raises:
        InvalidURLError: no 11-character video id could be found.
    """
    clean = unquote(url.strip())

    for pattern, is_shorts in URL_PATTERNS:
        match = pattern.search(clean)
        if match:
            return YouTubeInfo(video_id=match.group(1), is_shorts=is_shorts)

    # any URL carrying a v= query parameter
    values = parse_qs(urlparse(clean).query).get("v", [])
    if values and is_valid_video_id(values[0]):
        return YouTubeInfo(video_id=values[0])

    raise InvalidURLError(f"Not a YouTube video URL: {url!r}", {"url": url})


def extract_video_ids(text: str) -> List[str]:
    """All distinct video ids in whitespace-separated text, in order of appearance."""
    ids: List[str] = []
    for token in text.split():
        try:
            info = parse_youtube_url(token)
        except InvalidURLError:
            continue
        if info.video_id not in ids:
            ids.append(info.video_id)
    return ids


def parse_timestamp_to_seconds(timestamp: str) -> float:
    """``[1:23]``, ``45.2s``, ``1:02:03`` -> seconds; unparseable gives 0."""
    clean = timestamp.replace("[", "").replace("]", "").strip()
    if clean.endswith("s"):
        clean = clean[:-1]
    try:
        if ":" in clean:
            parts = [float(p) for p in clean.split(":")]
            if len(parts) == 2:
                return parts[0] * 60 + parts[1]
            if len(parts) == 3:
                return parts[0] * 3600 + parts[1] * 60 + parts[2]
            return 0.0
        return float(clean)
    except ValueError:
        return 0.0


def format_timestamp(seconds: float) -> str:
    hours, rem = divmod(int(seconds), 3600)
    mins, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"
