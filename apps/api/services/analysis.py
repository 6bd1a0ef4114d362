"""Eight-section analysis orchestration and report aggregation."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from analysis.models import SECTION_IDS, AnalysisReport, SectionResult
from analysis.sections import get_section_spec
from services.errors import AnalysisPipelineError, InvalidSectionError, UpstreamFailure
from services.generation import TextGenerator

logger = logging.getLogger(__name__)


class SectionAnalyzer:
    """
    Runs the structured-generation request for each section.

    With ``concurrent=True`` the eight requests are dispatched together and
    joined; otherwise they run one after another in section order. Either way
    the first failure aborts the run and no partial mapping is returned.
    """

    def __init__(
        self,
        generator: TextGenerator,
        *,
        concurrent: bool = True,
        timeout_seconds: Optional[float] = 90.0,
    ):
        self.generator = generator
        self.concurrent = concurrent
        self.timeout_seconds = timeout_seconds

    async def analyze_section(
        self,
        section_id: int,
        transcript: str,
        aux_fields: Optional[Mapping[str, Any]] = None,
    ) -> SectionResult:
        spec = get_section_spec(section_id)
        prompt = spec.build_prompt(transcript, aux_fields)
        call = asyncio.to_thread(self.generator.generate_json, prompt, spec.output_schema(), spec.schema_name)
        try:
            if self.timeout_seconds:
                payload = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            else:
                payload = await call
        except asyncio.TimeoutError as exc:
            raise UpstreamFailure(
                f"Timed out analyzing section {section_id}.",
                details=f"No response within {self.timeout_seconds}s.",
            ) from exc
        except AnalysisPipelineError:
            raise
        except Exception as exc:
            logger.warning("Generation failed for section %s: %s", section_id, exc)
            raise UpstreamFailure(
                "Failed to analyze the content with the text generation API.",
                details=str(exc),
            ) from exc
        return spec.validate(payload)

    async def analyze_all(
        self,
        transcript: str,
        aux_fields: Optional[Mapping[str, Any]] = None,
    ) -> Dict[int, SectionResult]:
        if self.concurrent:
            tasks = [
                asyncio.ensure_future(self.analyze_section(section_id, transcript, aux_fields))
                for section_id in SECTION_IDS
            ]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise
            return dict(zip(SECTION_IDS, results))

        sections: Dict[int, SectionResult] = {}
        for section_id in SECTION_IDS:
            sections[section_id] = await self.analyze_section(section_id, transcript, aux_fields)
        return sections


def aggregate_report(
    source_url: str,
    section_results: Mapping[int, SectionResult],
    *,
    video_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> AnalysisReport:
    """Wrap the eight section results with their source URL and creation time."""
    if sorted(section_results.keys()) != list(SECTION_IDS):
        raise InvalidSectionError(
            f"Expected results for sections 1..8, got {sorted(section_results.keys())}."
        )
    return AnalysisReport(
        source_url=source_url,
        sections=dict(section_results),
        created_at=created_at or datetime.now(timezone.utc),
        video_id=video_id,
    )
