"""Structured text generation through OpenAI chat completions."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Protocol

from openai import OpenAI, OpenAIError

from services.errors import UpstreamFailure

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Você é um analista de semiótica e comunicação audiovisual. "
    "Responda sempre em português, apenas com um objeto JSON que siga exatamente o esquema fornecido."
)


class TextGenerator(Protocol):
    """Sends an instruction plus a JSON schema and returns the decoded JSON reply."""

    def generate_json(self, prompt: str, schema: Dict[str, Any], schema_name: str) -> Any:
        ...


def decode_json_reply(content: Optional[str]) -> Any:
    if not content or not content.strip():
        raise UpstreamFailure("Invalid response from the text generation API.", details="Empty response body.")
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise UpstreamFailure(
            "Invalid response from the text generation API.",
            details=f"Malformed JSON: {exc}",
        ) from exc


class OpenAITextGenerator:
    """TextGenerator backed by OpenAI structured outputs (json_schema response format)."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 90.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        # No retries: a failed section fails the whole run.
        self.client = client or OpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)

    def generate_json(self, prompt: str, schema: Dict[str, Any], schema_name: str) -> Any:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": schema_name, "schema": schema, "strict": True},
                },
                temperature=0.2,
            )
        except OpenAIError as exc:
            logger.warning("OpenAI request failed for %s: %s", schema_name, exc)
            raise UpstreamFailure("Failed to analyze the content with the text generation API.", details=str(exc)) from exc

        if not response.choices:
            raise UpstreamFailure("Invalid response from the text generation API.", details="No choices returned.")
        message = response.choices[0].message
        refusal = getattr(message, "refusal", None)
        if refusal:
            raise UpstreamFailure("The text generation API refused the request.", details=str(refusal))
        return decode_json_reply(message.content)
