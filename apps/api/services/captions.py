"""Caption track selection and transcript resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ingestion.subtitles import normalize_subtitles
from ingestion.youtube import CaptionSource, CaptionTrack
from services.errors import AnalysisPipelineError, CaptionsNotFoundError, UpstreamFailure

logger = logging.getLogger(__name__)

CAPTION_DOWNLOAD_FORMAT = "srt"


@dataclass(frozen=True)
class Transcript:
    text: str
    video_id: Optional[str] = None
    language_code: Optional[str] = None


def _matches_prefix(track: CaptionTrack, prefix: str) -> bool:
    language = (track.language_code or "").strip().lower()
    wanted = (prefix or "").strip().lower()
    return bool(wanted) and language.startswith(wanted)


def select_caption_track(
    tracks: Sequence[CaptionTrack],
    primary_language: str = "pt",
    fallback_language: str = "en",
) -> CaptionTrack:
    """
    Pick one track: first primary-language match, then first fallback-language
    match, then the first track as listed. Requires a non-empty sequence.
    """
    if not tracks:
        raise CaptionsNotFoundError()
    for prefix in (primary_language, fallback_language):
        for track in tracks:
            if _matches_prefix(track, prefix):
                return track
    return tracks[0]


class CaptionResolver:
    """List, select, download and normalize the caption track for a video."""

    def __init__(
        self,
        source: CaptionSource,
        primary_language: str = "pt",
        fallback_language: str = "en",
    ):
        self.source = source
        self.primary_language = primary_language
        self.fallback_language = fallback_language

    def resolve(self, video_id: str) -> Transcript:
        try:
            tracks = self.source.list_tracks(video_id)
        except AnalysisPipelineError:
            raise
        except Exception as exc:
            logger.warning("Caption listing failed for %s: %s", video_id, exc)
            raise UpstreamFailure("Failed to list captions for this video.", details=str(exc)) from exc

        if not tracks:
            raise CaptionsNotFoundError()

        track = select_caption_track(tracks, self.primary_language, self.fallback_language)
        logger.info("Selected caption track %s (%s) for %s", track.track_id, track.language_code, video_id)

        try:
            raw = self.source.download_track(track.track_id, fmt=CAPTION_DOWNLOAD_FORMAT)
        except AnalysisPipelineError:
            raise
        except Exception as exc:
            logger.warning("Caption download failed for %s track=%s: %s", video_id, track.track_id, exc)
            raise UpstreamFailure("Failed to download the caption track.", details=str(exc)) from exc

        return Transcript(
            text=normalize_subtitles(raw),
            video_id=video_id,
            language_code=track.language_code,
        )
