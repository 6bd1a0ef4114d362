"""
Transcript router: YouTube URL in, normalized caption text out.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from services.pipeline import fetch_transcript, get_caption_resolver, require_video_reference

router = APIRouter()
logger = logging.getLogger(__name__)


class TranscriptResponse(BaseModel):
    transcription: str


def _get_caption_resolver():
    """Get caption resolver using the configured API key."""
    return get_caption_resolver()


@router.get("/transcript", response_model=TranscriptResponse)
async def get_transcript(video_url: Optional[str] = Query(default=None, alias="videoUrl")):
    """
    Fetch and clean the captions of a YouTube video.

    Portuguese tracks are preferred, then English, then whatever is listed first.
    """
    reference = require_video_reference(video_url)
    resolver = _get_caption_resolver()
    transcript = await fetch_transcript(resolver, reference.video_id)
    logger.info("Transcript for %s: %d chars (%s)", reference.video_id, len(transcript.text), transcript.language_code)
    return TranscriptResponse(transcription=transcript.text)
