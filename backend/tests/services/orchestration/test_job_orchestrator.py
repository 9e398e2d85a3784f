"""
Tests for repairclip.services.orchestration.job_orchestrator

Runs the full pipeline over in-process storage, analyzer and stitcher with
frame and audio extraction patched out.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from repairclip.config import MatchSettings
from repairclip.core import AnalysisError, GENERIC_FAILURE_MESSAGE, MediaError, SingleFocusViolation
from repairclip.models.events import StorageObjectEvent
from repairclip.models.issues import AnalysisResult, Issue
from repairclip.models.status import JobStatus
from repairclip.services.orchestration import JobOrchestrator
from repairclip.services.orchestration.job_orchestrator import (
    FALLBACK_SUCCESS_MESSAGE,
    MATCHING_FAILURE_MESSAGE,
    SUCCESS_MESSAGE,
)

from fakes import FakeAnalyzer, FakeStitcher, FakeStorage, make_clip

MODULE = "repairclip.services.orchestration.job_orchestrator"
RAW = "raw/abc.mp4"

ROTOR_ISSUE = Issue(problem="Warped rotors", category="Brakes", keywords=["pulsation"])
ROTOR_CLIP = make_clip("rotors", "Warped rotors", ["pulsation", "brake vibration"], "Brakes")


@pytest.fixture
def media_tools():
    """Patch frame and audio extraction with stand-ins that write their outputs."""
    async def fake_frame(video, output, offset_ratio=0.5):
        output.write_bytes(b"jpeg")
        return output

    async def fake_audio(video, output):
        output.write_bytes(b"mp3")
        return output

    with patch(f"{MODULE}.extract_frame", AsyncMock(side_effect=fake_frame)) as frame, \
         patch(f"{MODULE}.extract_audio", AsyncMock(side_effect=fake_audio)) as audio:
        yield frame, audio


@pytest.fixture
def seeded_storage(fake_storage):
    fake_storage.put(RAW, b"raw")
    fake_storage.put("videos/intro.mp4", b"intro")
    fake_storage.put("videos/outro.mp4", b"outro")
    fake_storage.put("library/rotors.mp4", b"clip", bucket="library")
    return fake_storage


def _event(name=RAW):
    return StorageObjectEvent(name=name, bucket="uploads")


def _analysis(*issues, related=True):
    return AnalysisResult(issues=list(issues), issues_related=related)


@pytest.mark.asyncio
class TestIgnoredEvents:
    async def test_non_raw_object_is_ignored(self, make_services, fake_storage, media_tools):
        services = make_services()
        await JobOrchestrator(services).run_job(_event("processed/abc.mp4"))

        assert fake_storage.downloads == []
        assert services.jobs.get_by_raw_path("processed/abc.mp4") is None


@pytest.mark.asyncio
class TestSuccessfulRun:
    async def test_completed_job(self, make_services, seeded_storage, media_tools):
        stitcher = FakeStitcher()
        services = make_services(
            analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE), transcript="it shakes when braking"),
            clips=[ROTOR_CLIP],
            stitcher=stitcher,
        )

        await JobOrchestrator(services).run_job(_event())

        job = services.jobs.get_by_raw_path(RAW)
        assert job.status == JobStatus.COMPLETED.value
        assert job.message == SUCCESS_MESSAGE
        assert job.stitched_video_url == "processed/abc.mp4"
        assert job.thumbnail_url == "thumbnails/abc.jpg"
        assert job.transcription_text == "it shakes when braking"
        assert json.loads(job.detected_keywords) == [
            {"problem": "Warped rotors", "category": "Brakes", "keywords": ["pulsation"]}
        ]

        segments = [p.name for p in stitcher.calls[0]]
        assert segments == ["intro.mp4", "raw.mp4", "clip.mp4", "outro.mp4"]

        uploads = {u["name"]: u for u in seeded_storage.uploads}
        assert uploads["thumbnails/abc.jpg"]["content_type"] == "image/jpeg"
        assert uploads["processed/abc.mp4"]["content_type"] == "video/mp4"
        assert seeded_storage.objects[("uploads", "processed/abc.mp4")] == b"stitched"

        blueprint = services.matches.load_blueprint(job.id)
        assert [entry.location for entry in blueprint] == ["library/rotors.mp4"]

    async def test_non_mp4_upload_stored_as_mp4(self, make_services, fake_storage, media_tools):
        fake_storage.put("raw/clip.mov")
        fake_storage.put("library/rotors.mp4", bucket="library")
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP])

        await JobOrchestrator(services).run_job(_event("raw/clip.mov"))

        job = services.jobs.get_by_raw_path("raw/clip.mov")
        assert job.stitched_video_url == "processed/clip.mp4"
        assert {u["name"] for u in fake_storage.uploads} == {"thumbnails/clip.jpg", "processed/clip.mp4"}

    async def test_clip_fetched_from_library_bucket(self, make_services, seeded_storage, media_tools):
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP])
        await JobOrchestrator(services).run_job(_event())
        assert ("library", "library/rotors.mp4") in seeded_storage.downloads

    async def test_fallback_clip_message(self, make_services, seeded_storage, media_tools):
        seeded_storage.put("library/fallback/cooling-system.mp4", bucket="library")
        issue = Issue(problem="Coolant leak", category="Cooling System", keywords=["puddle"])
        services = make_services(analyzer=FakeAnalyzer(_analysis(issue)))

        await JobOrchestrator(services).run_job(_event())

        job = services.jobs.get_by_raw_path(RAW)
        assert job.status == JobStatus.COMPLETED.value
        assert job.message == FALLBACK_SUCCESS_MESSAGE

    async def test_missing_intro_and_outro_are_skipped(self, make_services, fake_storage, media_tools):
        fake_storage.put(RAW)
        fake_storage.put("library/rotors.mp4", bucket="library")
        stitcher = FakeStitcher()
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP],
                                 stitcher=stitcher)

        await JobOrchestrator(services).run_job(_event())

        assert [p.name for p in stitcher.calls[0]] == ["raw.mp4", "clip.mp4"]
        assert services.jobs.get_by_raw_path(RAW).status == JobStatus.COMPLETED.value

    async def test_silent_video_analyzed_with_empty_transcript(self, make_services, seeded_storage, media_tools):
        _, audio = media_tools
        audio.side_effect = MediaError("no audio stream", diagnostic="Output file does not contain any stream")
        analyzer = FakeAnalyzer(_analysis(ROTOR_ISSUE))
        services = make_services(analyzer=analyzer, clips=[ROTOR_CLIP])

        await JobOrchestrator(services).run_job(_event())

        assert analyzer.analyzed[0][0] == ""
        assert services.jobs.get_by_raw_path(RAW).status == JobStatus.COMPLETED.value

    async def test_workspace_removed(self, make_services, seeded_storage, media_tools, pipeline_settings):
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP])
        await JobOrchestrator(services).run_job(_event())
        assert list(pipeline_settings.workspace_root.iterdir()) == []

    async def test_redelivery_reprocesses_same_record(self, make_services, seeded_storage, media_tools):
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP])
        orchestrator = JobOrchestrator(services)

        await orchestrator.run_job(_event())
        first = services.jobs.get_by_raw_path(RAW)
        await orchestrator.run_job(_event())
        second = services.jobs.get_by_raw_path(RAW)

        assert first.id == second.id
        assert second.status == JobStatus.COMPLETED.value


@pytest.mark.asyncio
class TestFailures:
    async def _run(self, services):
        await JobOrchestrator(services).run_job(_event())
        return services.jobs.get_by_raw_path(RAW)

    async def test_no_issues(self, make_services, seeded_storage, media_tools):
        job = await self._run(make_services(analyzer=FakeAnalyzer(_analysis())))
        assert job.status == JobStatus.FAILED.value
        assert job.message == "no issues detected by AI"

    async def test_unrelated_issues(self, make_services, seeded_storage, media_tools):
        other = Issue(problem="Dead battery", category="Electrical", keywords=["no start"])
        job = await self._run(make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE, other, related=False))))
        assert job.status == JobStatus.FAILED.value
        assert job.message == "Please mention only one problem per video, or ensure all problems are related."

    async def test_single_focus_violation(self, make_services, seeded_storage, media_tools):
        misfire = Issue(problem="Misfire", category="Engine", keywords=["misfire"])
        clips = [ROTOR_CLIP, make_clip("misfire", "Engine misfire", ["misfire"], "Engine")]
        stitcher = FakeStitcher()
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE, misfire)), clips=clips,
                                 stitcher=stitcher)

        job = await self._run(services)

        assert job.status == JobStatus.FAILED.value
        assert job.message == "focus on one problem at a time"
        assert stitcher.calls == []
        assert services.matches.load_blueprint(job.id) == []

    async def test_no_content(self, make_services, seeded_storage, media_tools):
        issue = Issue(problem="Squeal", category=None, keywords=["squeal"])
        services = make_services(analyzer=FakeAnalyzer(_analysis(issue)),
                                 match_settings=MatchSettings(synthesize_fallback=False))
        job = await self._run(services)
        assert job.status == JobStatus.FAILED.value
        assert job.message == "no educational content found for detected issues"

    async def test_matcher_crash(self, make_services, seeded_storage, media_tools):
        matcher = MagicMock()
        matcher.match.side_effect = RuntimeError("catalog offline")
        job = await self._run(make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), matcher=matcher))
        assert job.status == JobStatus.FAILED.value
        assert job.message == MATCHING_FAILURE_MESSAGE

    async def test_matcher_single_focus_passes_through(self, make_services, seeded_storage, media_tools):
        matcher = MagicMock()
        matcher.match.side_effect = SingleFocusViolation(["a.mp4", "b.mp4"])
        job = await self._run(make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), matcher=matcher))
        assert job.message == "focus on one problem at a time"

    async def test_stitch_failure_is_generic(self, make_services, seeded_storage, media_tools):
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP],
                                 stitcher=FakeStitcher(fail=True))
        job = await self._run(services)
        assert job.status == JobStatus.FAILED.value
        assert job.message == GENERIC_FAILURE_MESSAGE
        assert "Conversion failed" not in job.message

    async def test_missing_raw_video(self, make_services, fake_storage, media_tools, pipeline_settings):
        job = await self._run(make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP]))
        assert job.status == JobStatus.FAILED.value
        assert job.message == GENERIC_FAILURE_MESSAGE
        assert list(pipeline_settings.workspace_root.iterdir()) == []

    async def test_analyzer_failure_is_generic(self, make_services, seeded_storage, media_tools):
        analyzer = FakeAnalyzer(error=AnalysisError("model unavailable"))
        job = await self._run(make_services(analyzer=analyzer))
        assert job.message == GENERIC_FAILURE_MESSAGE

    async def test_frame_failure_is_generic(self, make_services, seeded_storage, media_tools):
        frame, _ = media_tools
        frame.side_effect = MediaError("Frame extraction failed", diagnostic="moov atom not found")
        job = await self._run(make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP]))
        assert job.message == GENERIC_FAILURE_MESSAGE


class SlowIntroStorage(FakeStorage):
    """Intro download suspends long enough to outlive a failing raw download."""

    async def download(self, path_or_url, destination, bucket=None):
        if path_or_url.endswith("intro.mp4"):
            await asyncio.sleep(0.05)
        return await super().download(path_or_url, destination, bucket)


@pytest.mark.asyncio
class TestWorkspaceOnFailure:
    async def test_pending_downloads_cancelled_before_cleanup(self, make_services, media_tools, pipeline_settings):
        storage = SlowIntroStorage()
        storage.put("videos/intro.mp4", b"intro")
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP])
        services.storage = storage

        await JobOrchestrator(services).run_job(_event())
        await asyncio.sleep(0.1)

        assert services.jobs.get_by_raw_path(RAW).message == GENERIC_FAILURE_MESSAGE
        assert list(pipeline_settings.workspace_root.iterdir()) == []

    async def test_pending_audio_extraction_cancelled(self, make_services, seeded_storage, media_tools,
                                                      pipeline_settings):
        frame, audio = media_tools

        async def slow_audio(video, output):
            await asyncio.sleep(0.05)
            output.write_bytes(b"mp3")
            return output

        audio.side_effect = slow_audio
        frame.side_effect = MediaError("Frame extraction failed", diagnostic="moov atom not found")
        services = make_services(analyzer=FakeAnalyzer(_analysis(ROTOR_ISSUE)), clips=[ROTOR_CLIP])

        await JobOrchestrator(services).run_job(_event())
        await asyncio.sleep(0.1)

        assert list(pipeline_settings.workspace_root.iterdir()) == []
