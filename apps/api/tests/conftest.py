import threading
from typing import Any, Dict, Iterable, List, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from analysis.sections import LIST, TEXT, SECTION_SPECS, Choice, SectionSpec
from database import Base, get_db
from ingestion.youtube import CaptionTrack
from main import app
from routers import rate_limit


SAMPLE_SRT = (
    "1\n00:00:01,000 --> 00:00:02,000\nOlá pessoal\n\n"
    "2\n00:00:02,500 --> 00:00:03,000\n<i>bem-vindos</i> ao canal\n"
)


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


def _sample_value(kind: Any, section_id: int) -> Any:
    if isinstance(kind, Choice):
        return kind.values[0]
    if kind == LIST:
        return [f"item da seção {section_id}"]
    assert kind == TEXT
    return f"texto da seção {section_id}"


def valid_payload_for(spec: SectionSpec) -> Dict[str, Dict[str, Any]]:
    return {
        "identificacao": {name: _sample_value(kind, spec.section_id) for name, kind in spec.identificacao},
        "avaliacao": {name: _sample_value(kind, spec.section_id) for name, kind in spec.avaliacao},
    }


class FakeTextGenerator:
    """Answers every section with a schema-valid payload unless told to fail."""

    def __init__(self, fail_sections: Iterable[int] = (), error: Optional[Exception] = None, replies: Optional[Dict[int, Any]] = None):
        self.fail_sections = set(fail_sections)
        self.error = error or RuntimeError("generation backend exploded")
        self.replies = replies or {}
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def generate_json(self, prompt: str, schema: Dict[str, Any], schema_name: str) -> Any:
        section_id = int(schema_name.rsplit("_", 1)[-1])
        with self._lock:
            self.calls.append({"section_id": section_id, "prompt": prompt, "schema": schema})
        if section_id in self.fail_sections:
            raise self.error
        if section_id in self.replies:
            return self.replies[section_id]
        return valid_payload_for(SECTION_SPECS[section_id])


class FakeCaptionSource:
    def __init__(self, tracks: List[CaptionTrack], payloads: Optional[Dict[str, str]] = None,
                 list_error: Optional[Exception] = None, download_error: Optional[Exception] = None):
        self.tracks = tracks
        self.payloads = payloads or {}
        self.list_error = list_error
        self.download_error = download_error
        self.downloaded: List[str] = []

    def list_tracks(self, video_id: str) -> List[CaptionTrack]:
        if self.list_error:
            raise self.list_error
        return list(self.tracks)

    def download_track(self, track_id: str, fmt: str = "srt") -> str:
        if self.download_error:
            raise self.download_error
        self.downloaded.append(track_id)
        return self.payloads.get(track_id, SAMPLE_SRT)


@pytest.fixture
def fake_generator_factory():
    return FakeTextGenerator


@pytest.fixture
def fake_caption_source_factory():
    return FakeCaptionSource


@pytest.fixture
def section_payload():
    return valid_payload_for


@pytest_asyncio.fixture
async def api_client(tmp_path):
    db_path = tmp_path / "api.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client, session_maker

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()
