"""Error taxonomy for the transcript and analysis pipeline."""

from __future__ import annotations

from typing import Optional


class AnalysisPipelineError(RuntimeError):
    """Base class for failures that abort a transcript/analysis run."""

    status_code = 500
    public_message = "Internal server error."

    def __init__(self, message: Optional[str] = None, *, details: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.details = details

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ClientInputError(AnalysisPipelineError):
    """Missing or malformed URL/payload supplied by the caller."""

    status_code = 400
    public_message = "Invalid request."


class CaptionsNotFoundError(AnalysisPipelineError):
    """The video exposes no caption tracks."""

    status_code = 404
    public_message = "No captions were found for this video."


class ReportNotFoundError(AnalysisPipelineError):
    status_code = 404
    public_message = "Report not found."


class UpstreamFailure(AnalysisPipelineError):
    """Caption or text-generation collaborator failed; original message kept in details."""

    status_code = 500
    public_message = "Upstream service failure."


class ConfigError(AnalysisPipelineError):
    """A required credential is missing. The detail is logged, never returned."""

    status_code = 500
    public_message = "Server configuration error."

    def to_payload(self) -> dict:
        return {"error": self.public_message}


class InvalidSectionError(AnalysisPipelineError):
    """Section number outside 1..8; a programming error, not user input."""

    status_code = 500
