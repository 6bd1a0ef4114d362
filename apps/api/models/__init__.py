"""Models package."""

from .user import User
from .analysis_report import AnalysisReportRecord
