"""
Analysis models and schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

SECTION_IDS = tuple(range(1, 9))

FieldValue = Union[str, List[str]]


def section_key(section_id: int) -> str:
    return f"secao{section_id}"


def parse_section_key(key: Any) -> int:
    """Accept 3, "3" or "secao3" and return 3."""
    text = str(key).strip().lower()
    if text.startswith("secao"):
        text = text[len("secao"):]
    return int(text)


class SectionResult(BaseModel):
    """Validated answer for one section: extracted facts plus qualitative judgments."""

    model_config = ConfigDict(frozen=True)

    identificacao: Dict[str, FieldValue]
    avaliacao: Dict[str, FieldValue]


class AnalysisReport(BaseModel):
    """All eight sections for one video, stamped with source and creation time."""

    model_config = ConfigDict(frozen=True)

    source_url: str
    sections: Dict[int, SectionResult]
    created_at: datetime
    video_id: Optional[str] = None

    @field_validator("sections")
    @classmethod
    def _require_all_sections(cls, value: Dict[int, SectionResult]) -> Dict[int, SectionResult]:
        if sorted(value.keys()) != list(SECTION_IDS):
            raise ValueError("A report must contain exactly sections 1..8.")
        return value

    def report_data(self) -> Dict[str, Dict[str, Any]]:
        """Sections keyed secao1..secao8, the shape the front end renders."""
        return {
            section_key(section_id): self.sections[section_id].model_dump()
            for section_id in SECTION_IDS
        }

    @classmethod
    def from_report_data(
        cls,
        *,
        source_url: str,
        report_data: Dict[str, Any],
        created_at: datetime,
        video_id: Optional[str] = None,
    ) -> "AnalysisReport":
        sections = {
            parse_section_key(key): SectionResult.model_validate(value)
            for key, value in report_data.items()
        }
        return cls(source_url=source_url, sections=sections, created_at=created_at, video_id=video_id)


class SectionCatalogEntry(BaseModel):
    key: str
    section_id: int
    title: str
    description: str
    uses_aux_fields: bool = False
    fields: Dict[str, List[str]] = Field(default_factory=dict)
