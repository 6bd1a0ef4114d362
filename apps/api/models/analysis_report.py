"""Persisted eight-section analysis report."""

from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
import uuid

from database import Base


class AnalysisReportRecord(Base):
    """A completed report owned by one (anonymous) user."""

    __tablename__ = "analysis_reports"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    video_url = Column(String, nullable=False)
    video_id = Column(String, nullable=True)
    sections_json = Column(JSON, nullable=False)  # {"secao1": {...}, ..., "secao8": {...}}
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="reports")
