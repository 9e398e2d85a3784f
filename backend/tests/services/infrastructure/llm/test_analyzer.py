"""
Tests for repairclip.services.infrastructure.llm.analyzer

GeminiAnalyzer with a mocked google-genai client.
"""

import json
from unittest.mock import MagicMock

import pytest
from google.genai import errors

from repairclip.core import AnalysisError
from repairclip.models.issues import IssueCategory
from repairclip.services.infrastructure.llm.analyzer import GeminiAnalyzer
from repairclip.services.infrastructure.llm.prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_request


def _client(text=None, side_effect=None):
    client = MagicMock()
    if side_effect is not None:
        client.models.generate_content.side_effect = side_effect
    else:
        client.models.generate_content.return_value = MagicMock(text=text)
    return client


def _api_error():
    return errors.APIError(500, {"error": {"code": 500, "message": "backend down", "status": "INTERNAL"}})


class TestConstruction:
    def test_requires_api_key_without_client(self, monkeypatch):
        monkeypatch.setattr("repairclip.services.infrastructure.llm.analyzer.GEMINI_API_KEY", None)
        with pytest.raises(ValueError):
            GeminiAnalyzer()


class TestPrompts:
    def test_categories_listed(self):
        for category in IssueCategory:
            assert category.value in ANALYSIS_SYSTEM_PROMPT

    def test_empty_transcript_marked(self):
        assert "no speech" in build_analysis_request("   ")


@pytest.mark.asyncio
class TestTranscribe:
    async def test_returns_stripped_text(self, tmp_path):
        audio = tmp_path / "audio.mp3"
        audio.write_bytes(b"ID3")
        analyzer = GeminiAnalyzer(client=_client(text="  my brakes grind  \n"), model="test-model")

        assert await analyzer.transcribe(audio) == "my brakes grind"
        kwargs = analyzer.client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "test-model"

    async def test_api_error_degrades_to_empty(self, tmp_path):
        audio = tmp_path / "audio.mp3"
        audio.write_bytes(b"ID3")
        analyzer = GeminiAnalyzer(client=_client(side_effect=_api_error()))
        assert await analyzer.transcribe(audio) == ""

    async def test_missing_audio_degrades_to_empty(self, tmp_path):
        analyzer = GeminiAnalyzer(client=_client(text="unused"))
        assert await analyzer.transcribe(tmp_path / "missing.mp3") == ""
        analyzer.client.models.generate_content.assert_not_called()


@pytest.mark.asyncio
class TestAnalyze:
    async def test_parses_issues(self, tmp_path):
        frame = tmp_path / "frame.jpg"
        frame.write_bytes(b"\xff\xd8")
        reply = json.dumps({
            "issues": [{"problem": "Warped Rotors", "category": "Brakes", "keywords": ["vibration", "pulsation"]}],
            "Issues_related": True,
        })
        analyzer = GeminiAnalyzer(client=_client(text=f"```json\n{reply}\n```"))

        result = await analyzer.analyze("the wheel shakes when braking", frame)
        assert result.issues[0].problem == "Warped Rotors"
        assert result.issues[0].category is IssueCategory.BRAKES
        assert result.issues_related is True

        contents = analyzer.client.models.generate_content.call_args.kwargs["contents"]
        assert len(contents) == 2  # frame + transcript

    async def test_without_frame(self):
        analyzer = GeminiAnalyzer(client=_client(text='{"issues": [], "Issues_related": true}'))
        result = await analyzer.analyze("hello", None)
        assert result.issues == []
        contents = analyzer.client.models.generate_content.call_args.kwargs["contents"]
        assert len(contents) == 1

    async def test_unrelated_flag(self):
        reply = {"issues": [{"problem": "Squeal", "category": "Brakes"},
                            {"problem": "Cracked window", "category": "Body"}],
                 "Issues_related": False}
        analyzer = GeminiAnalyzer(client=_client(text=json.dumps(reply)))
        assert (await analyzer.analyze("two things", None)).issues_related is False

    async def test_unusable_reply(self):
        analyzer = GeminiAnalyzer(client=_client(text="Sorry, I cannot help with that."))
        with pytest.raises(AnalysisError):
            await analyzer.analyze("hello", None)

    async def test_api_error(self):
        analyzer = GeminiAnalyzer(client=_client(side_effect=_api_error()))
        with pytest.raises(AnalysisError):
            await analyzer.analyze("hello", None)
