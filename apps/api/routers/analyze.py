"""
Analysis router: transcript in, eight-section report data out.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from analysis.models import SectionCatalogEntry, section_key
from analysis.sections import section_catalog
from config import settings
from routers.rate_limit import rate_limit
from services.errors import ClientInputError
from services.pipeline import get_section_analyzer

router = APIRouter()
logger = logging.getLogger(__name__)


class SimulatedVideoData(BaseModel):
    """Transcript plus any descriptive fields (visual notes, audience, context...)."""

    model_config = ConfigDict(extra="allow")

    transcription: Optional[str] = None

    def aux_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class AnalyzeRequest(BaseModel):
    simulatedVideoData: Optional[SimulatedVideoData] = None


class AnalyzeResponse(BaseModel):
    reportData: Dict[str, Dict[str, Any]]


def _get_section_analyzer():
    """Get section analyzer using the configured OpenAI key."""
    return get_section_analyzer()


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    dependencies=[Depends(rate_limit("analyze", settings.ANALYZE_RATE_LIMIT_PER_MINUTE, 60))],
)
async def analyze(request: AnalyzeRequest):
    """Run all eight section analyses over the supplied transcript."""
    data = request.simulatedVideoData
    if data is None or not (data.transcription or "").strip():
        raise ClientInputError("Analysis data (transcription) is required.")

    analyzer = _get_section_analyzer()
    sections = await analyzer.analyze_all(data.transcription, data.aux_fields())
    report_data = {section_key(section_id): sections[section_id].model_dump() for section_id in sorted(sections)}
    return AnalyzeResponse(reportData=report_data)


@router.get("/sections", response_model=List[SectionCatalogEntry])
async def list_sections():
    """Section titles and field names, for rendering reports."""
    return section_catalog()
