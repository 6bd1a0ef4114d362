import time
from datetime import datetime, timezone

import pytest

from analysis.models import AnalysisReport, SectionResult
from services.analysis import SectionAnalyzer, aggregate_report
from services.errors import InvalidSectionError, UpstreamFailure


TRANSCRIPT = "Hoje vamos falar sobre comunicação e semiótica no audiovisual."


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [True, False])
async def test_analyze_all_returns_eight_validated_sections(fake_generator_factory, concurrent):
    generator = fake_generator_factory()
    analyzer = SectionAnalyzer(generator, concurrent=concurrent, timeout_seconds=5)

    results = await analyzer.analyze_all(TRANSCRIPT, {"context": "palestra"})

    assert sorted(results) == list(range(1, 9))
    for result in results.values():
        assert isinstance(result, SectionResult)
        assert result.identificacao
        assert result.avaliacao
    assert sorted(call["section_id"] for call in generator.calls) == list(range(1, 9))
    assert all(TRANSCRIPT in call["prompt"] for call in generator.calls)


@pytest.mark.asyncio
async def test_sequential_mode_runs_in_section_order(fake_generator_factory):
    generator = fake_generator_factory()
    await SectionAnalyzer(generator, concurrent=False).analyze_all(TRANSCRIPT)
    assert [call["section_id"] for call in generator.calls] == list(range(1, 9))


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [True, False])
async def test_one_failing_section_fails_the_whole_run(fake_generator_factory, concurrent):
    generator = fake_generator_factory(fail_sections={5})
    analyzer = SectionAnalyzer(generator, concurrent=concurrent)

    with pytest.raises(UpstreamFailure) as excinfo:
        await analyzer.analyze_all(TRANSCRIPT)
    assert "generation backend exploded" in excinfo.value.details


@pytest.mark.asyncio
async def test_sequential_mode_stops_after_first_failure(fake_generator_factory):
    generator = fake_generator_factory(fail_sections={3})
    with pytest.raises(UpstreamFailure):
        await SectionAnalyzer(generator, concurrent=False).analyze_all(TRANSCRIPT)
    assert [call["section_id"] for call in generator.calls] == [1, 2, 3]


@pytest.mark.asyncio
async def test_malformed_section_reply_fails_the_run(fake_generator_factory):
    generator = fake_generator_factory(replies={2: {"identificacao": {"mock": "x"}}})
    with pytest.raises(UpstreamFailure):
        await SectionAnalyzer(generator).analyze_all(TRANSCRIPT)


@pytest.mark.asyncio
async def test_upstream_failure_from_generator_is_not_rewrapped(fake_generator_factory):
    original = UpstreamFailure("Invalid response from the text generation API.", details="Malformed JSON")
    generator = fake_generator_factory(fail_sections={1}, error=original)
    with pytest.raises(UpstreamFailure) as excinfo:
        await SectionAnalyzer(generator).analyze_section(1, TRANSCRIPT)
    assert excinfo.value is original


@pytest.mark.asyncio
async def test_slow_generation_times_out(fake_generator_factory):
    class SlowGenerator(fake_generator_factory):
        def generate_json(self, prompt, schema, schema_name):
            time.sleep(0.5)
            return super().generate_json(prompt, schema, schema_name)

    analyzer = SectionAnalyzer(SlowGenerator(), timeout_seconds=0.05)
    with pytest.raises(UpstreamFailure) as excinfo:
        await analyzer.analyze_section(1, TRANSCRIPT)
    assert "Timed out" in excinfo.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize("section_id", [0, 9])
async def test_analyze_section_rejects_unknown_section(fake_generator_factory, section_id):
    with pytest.raises(InvalidSectionError):
        await SectionAnalyzer(fake_generator_factory()).analyze_section(section_id, TRANSCRIPT)


@pytest.mark.asyncio
async def test_aggregate_report_wraps_results(fake_generator_factory):
    results = await SectionAnalyzer(fake_generator_factory()).analyze_all(TRANSCRIPT)
    before = datetime.now(timezone.utc)

    report = aggregate_report("https://youtu.be/dQw4w9WgXcQ", results, video_id="dQw4w9WgXcQ")

    assert isinstance(report, AnalysisReport)
    assert report.source_url == "https://youtu.be/dQw4w9WgXcQ"
    assert report.created_at >= before
    assert list(report.report_data()) == [f"secao{i}" for i in range(1, 9)]
    assert report.sections[3] == results[3]


def test_aggregate_report_requires_all_sections():
    partial = {1: SectionResult(identificacao={"a": "b"}, avaliacao={"c": ["d"]})}
    with pytest.raises(InvalidSectionError):
        aggregate_report("https://youtu.be/dQw4w9WgXcQ", partial)
