from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from ingestion.youtube import CaptionTrack
from main import app
from services.analysis import SectionAnalyzer
from services.captions import CaptionResolver
from services.errors import ConfigError, UpstreamFailure


VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_root_and_liveness(client):
    root = await client.get("/")
    assert root.status_code == 200
    assert root.json()["status"] == "running"
    live = await client.get("/health/live")
    assert live.json() == {"alive": True}


@pytest.mark.asyncio
async def test_transcript_requires_video_url(client):
    response = await client.get("/transcript")
    assert response.status_code == 400
    assert response.json()["error"]


@pytest.mark.asyncio
async def test_transcript_rejects_unrecognized_url(client):
    response = await client.get("/transcript", params={"videoUrl": "https://example.com/video"})
    assert response.status_code == 400
    assert "URL" in response.json()["error"]


@pytest.mark.asyncio
async def test_transcript_returns_normalized_text(client, fake_caption_source_factory):
    source = fake_caption_source_factory([
        CaptionTrack(track_id="en-track", language_code="en"),
        CaptionTrack(track_id="pt-track", language_code="pt-BR"),
    ])
    with patch("routers.transcript._get_caption_resolver", return_value=CaptionResolver(source)):
        response = await client.get("/transcript", params={"videoUrl": VIDEO_URL})

    assert response.status_code == 200
    assert response.json() == {"transcription": "Olá pessoal bem-vindos ao canal"}
    assert source.downloaded == ["pt-track"]


@pytest.mark.asyncio
async def test_transcript_without_captions_is_404(client, fake_caption_source_factory):
    with patch(
        "routers.transcript._get_caption_resolver",
        return_value=CaptionResolver(fake_caption_source_factory([])),
    ):
        response = await client.get("/transcript", params={"videoUrl": VIDEO_URL})

    assert response.status_code == 404
    assert response.json()["error"]


@pytest.mark.asyncio
async def test_transcript_upstream_failure_is_500_with_details(client, fake_caption_source_factory):
    source = fake_caption_source_factory([], list_error=ConnectionError("quota exceeded"))
    with patch("routers.transcript._get_caption_resolver", return_value=CaptionResolver(source)):
        response = await client.get("/transcript", params={"videoUrl": VIDEO_URL})

    assert response.status_code == 500
    body = response.json()
    assert body["error"]
    assert body["details"] == "quota exceeded"


@pytest.mark.asyncio
async def test_transcript_missing_api_key_is_generic_500(client):
    with patch("config.settings.YOUTUBE_API_KEY", ""):
        response = await client.get("/transcript", params={"videoUrl": VIDEO_URL})

    assert response.status_code == 500
    assert response.json() == {"error": ConfigError.public_message}


@pytest.mark.asyncio
async def test_analyze_requires_transcription(client):
    for body in ({}, {"simulatedVideoData": {}}, {"simulatedVideoData": {"transcription": "   "}}):
        response = await client.post("/analyze", json=body)
        assert response.status_code == 400
        assert response.json()["error"]


@pytest.mark.asyncio
async def test_analyze_returns_all_eight_sections(client, fake_generator_factory):
    generator = fake_generator_factory()
    payload = {
        "simulatedVideoData": {
            "transcription": "Compre agora e ganhe desconto.",
            "visualElements": "apresentador em estúdio",
        }
    }
    with patch("routers.analyze._get_section_analyzer", return_value=SectionAnalyzer(generator)):
        response = await client.post("/analyze", json=payload)

    assert response.status_code == 200
    report_data = response.json()["reportData"]
    assert sorted(report_data) == [f"secao{i}" for i in range(1, 9)]
    for section in report_data.values():
        assert isinstance(section["identificacao"], dict)
        assert isinstance(section["avaliacao"], dict)
    prompts = {call["section_id"]: call["prompt"] for call in generator.calls}
    assert "apresentador em estúdio" in prompts[4]


@pytest.mark.asyncio
async def test_analyze_fails_whole_request_when_a_section_fails(client, fake_generator_factory):
    generator = fake_generator_factory(fail_sections={7}, error=UpstreamFailure("boom", details="rate limited"))
    with patch("routers.analyze._get_section_analyzer", return_value=SectionAnalyzer(generator)):
        response = await client.post("/analyze", json={"simulatedVideoData": {"transcription": "texto"}})

    assert response.status_code == 500
    body = response.json()
    assert "reportData" not in body
    assert body["details"] == "rate limited"


@pytest.mark.asyncio
async def test_analyze_missing_api_key_is_generic_500(client):
    with patch("config.settings.OPENAI_API_KEY", ""):
        response = await client.post("/analyze", json={"simulatedVideoData": {"transcription": "texto"}})

    assert response.status_code == 500
    assert response.json() == {"error": ConfigError.public_message}


@pytest.mark.asyncio
async def test_sections_catalog(client):
    response = await client.get("/sections")
    assert response.status_code == 200
    entries = response.json()
    assert [entry["key"] for entry in entries] == [f"secao{i}" for i in range(1, 9)]
    assert entries[0]["title"] == "Conteúdo Verbal"
    assert "tipoDiscursivoPredominante" in entries[0]["fields"]["identificacao"]
