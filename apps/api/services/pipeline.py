"""Wiring of the transcript and analysis components from settings."""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any, Mapping, Optional

from analysis.models import AnalysisReport
from config import require_openai_api_key, require_youtube_api_key, settings
from ingestion.youtube import (
    VideoReference,
    YouTubeCaptionSource,
    create_caption_source_with_api_key,
    parse_video_reference,
)
from services.analysis import SectionAnalyzer, aggregate_report
from services.captions import CaptionResolver, Transcript
from services.errors import CaptionsNotFoundError, ClientInputError, UpstreamFailure
from services.generation import OpenAITextGenerator

logger = logging.getLogger(__name__)


# Clients live for the whole process, one per credential set.
@lru_cache(maxsize=4)
def _caption_source(api_key: str) -> YouTubeCaptionSource:
    return create_caption_source_with_api_key(api_key)


@lru_cache(maxsize=4)
def _text_generator(api_key: str, model: str, timeout_seconds: float) -> OpenAITextGenerator:
    return OpenAITextGenerator(api_key=api_key, model=model, timeout_seconds=timeout_seconds)


def get_caption_resolver() -> CaptionResolver:
    """Build the production resolver; raises ConfigError when the YouTube key is missing."""
    source = _caption_source(require_youtube_api_key())
    return CaptionResolver(
        source,
        primary_language=settings.CAPTION_PRIMARY_LANGUAGE,
        fallback_language=settings.CAPTION_FALLBACK_LANGUAGE,
    )


def get_section_analyzer() -> SectionAnalyzer:
    """Build the production analyzer; raises ConfigError when the OpenAI key is missing."""
    generator = _text_generator(
        require_openai_api_key(),
        settings.OPENAI_MODEL,
        settings.GENERATION_TIMEOUT_SECONDS,
    )
    return SectionAnalyzer(
        generator,
        concurrent=settings.ANALYSIS_CONCURRENT,
        timeout_seconds=settings.GENERATION_TIMEOUT_SECONDS,
    )


def require_video_reference(video_url: Optional[str]) -> VideoReference:
    if not video_url or not str(video_url).strip():
        raise ClientInputError('The "videoUrl" parameter is required.')
    reference = parse_video_reference(video_url)
    if reference is None:
        raise ClientInputError("Invalid YouTube URL or unrecognized format.")
    return reference


async def fetch_transcript(resolver: CaptionResolver, video_id: str) -> Transcript:
    """Run the blocking caption lookup off the event loop, bounded by a timeout."""
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(resolver.resolve, video_id),
            timeout=settings.CAPTION_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as exc:
        raise UpstreamFailure(
            "Timed out fetching the YouTube transcript.",
            details=f"No response within {settings.CAPTION_TIMEOUT_SECONDS}s.",
        ) from exc


async def analyze_video_url(
    video_url: str,
    resolver: CaptionResolver,
    analyzer: SectionAnalyzer,
    aux_fields: Optional[Mapping[str, Any]] = None,
) -> AnalysisReport:
    """URL -> transcript -> eight sections -> report. Nothing is persisted here."""
    reference = require_video_reference(video_url)
    transcript = await fetch_transcript(resolver, reference.video_id)
    if not transcript.text:
        raise CaptionsNotFoundError("The caption track for this video is empty.")
    logger.info("Analyzing %s (%d transcript chars)", reference.video_id, len(transcript.text))
    sections = await analyzer.analyze_all(transcript.text, aux_fields)
    return aggregate_report(reference.raw_url, sections, video_id=reference.video_id)
