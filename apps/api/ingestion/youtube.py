"""
YouTube Data API client for caption discovery and download.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from services.errors import UpstreamFailure

# One pattern for watch?v=, youtu.be/, /embed/, /shorts/, /live/, /v/ and any other
# youtube.com path segment; the first 11 id characters win. A bare id must stand alone.
_VIDEO_ID_RE = re.compile(
    r"(?:youtu\.be/|youtube(?:-nocookie)?\.com/(?:(?:watch)?\?(?:[^#\s]*?&)?v=|(?:[^/?#\s]+/)+))"
    r"(?P<id>[A-Za-z0-9_-]{11})"
    r"|^(?P<bare>[A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"
)


@dataclass(frozen=True)
class VideoReference:
    raw_url: str
    video_id: str


@dataclass(frozen=True)
class CaptionTrack:
    track_id: str
    language_code: str


def extract_video_id(url: Any) -> Optional[str]:
    """
    Extract the 11-character video id from a YouTube URL.

    Supports:
    - youtube.com/watch?v=<id> (extra query params in any order)
    - youtu.be/<id>
    - youtube.com/embed/<id>, /v/<id>, /shorts/<id>, /live/<id>
    - any youtube.com path ending in the id
    - the bare id

    Returns None for empty or unrecognized input. The id is not checked
    against the platform; a missing video surfaces later as a caption lookup failure.
    """
    if not isinstance(url, str):
        return None
    candidate = url.strip()
    if not candidate:
        return None
    match = _VIDEO_ID_RE.search(candidate)
    if not match:
        return None
    return match.group("id") or match.group("bare")


def parse_video_reference(url: Any) -> Optional[VideoReference]:
    video_id = extract_video_id(url)
    if not video_id:
        return None
    return VideoReference(raw_url=url.strip(), video_id=video_id)


class CaptionSource(Protocol):
    """Anything that can list and download caption tracks for a video."""

    def list_tracks(self, video_id: str) -> List[CaptionTrack]:
        ...

    def download_track(self, track_id: str, fmt: str = "srt") -> str:
        ...


def _describe_http_error(exc: HttpError) -> str:
    # str(HttpError) embeds the request URL, which carries the API key.
    status = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(exc, "reason", "") or ""
    return f"YouTube API error {status}: {reason}".strip()


class YouTubeCaptionSource:
    """Caption access through YouTube Data API v3."""

    def __init__(self, api_key: str):
        """
        Initialize YouTube client.

        Args:
            api_key: API key for public data access
        """
        if not api_key:
            raise ValueError("api_key must be provided")
        self.youtube = build("youtube", "v3", developerKey=api_key, cache_discovery=False)

    def list_tracks(self, video_id: str) -> List[CaptionTrack]:
        """Return caption tracks in the order the platform lists them."""
        try:
            response = self.youtube.captions().list(
                part="snippet",
                videoId=video_id
            ).execute()
        except HttpError as exc:
            raise UpstreamFailure("Failed to list YouTube captions.", details=_describe_http_error(exc)) from exc

        tracks: List[CaptionTrack] = []
        for item in response.get("items", []):
            track_id = item.get("id")
            if not track_id:
                continue
            language = item.get("snippet", {}).get("language", "") or ""
            tracks.append(CaptionTrack(track_id=track_id, language_code=language))
        return tracks

    def download_track(self, track_id: str, fmt: str = "srt") -> str:
        """Download a caption track in the requested timing format."""
        try:
            payload = self.youtube.captions().download(id=track_id, tfmt=fmt).execute()
        except HttpError as exc:
            raise UpstreamFailure("Failed to download YouTube captions.", details=_describe_http_error(exc)) from exc

        if isinstance(payload, bytes):
            return payload.decode("utf-8", errors="replace")
        return str(payload or "")


def create_caption_source_with_api_key(api_key: str) -> YouTubeCaptionSource:
    """Create a caption source using an API key."""
    return YouTubeCaptionSource(api_key=api_key)
