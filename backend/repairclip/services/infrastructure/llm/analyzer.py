"""
Transcription & vision analysis.

``GeminiAnalyzer`` sends the extracted audio to Gemini for transcription and
the transcript plus a still frame for diagnosis. The SDK is synchronous, so
calls run in worker threads.

Environment Variables:
    GEMINI_API_KEY: API key for the Gemini API
    GEMINI_MODEL: Model name (default: gemini-2.5-flash)
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from repairclip.config import GEMINI_API_KEY, GEMINI_MODEL
from repairclip.core import AnalysisError, LogTimer, get_logger
from repairclip.models.issues import AnalysisResult
from repairclip.services.infrastructure.parsing import parse_json_object
from .prompts import ANALYSIS_SYSTEM_PROMPT, TRANSCRIPTION_PROMPT, build_analysis_request

logger = get_logger(__name__, component="analyzer")

AUDIO_MIME_TYPES = {".mp3": "audio/mp3", ".wav": "audio/wav", ".flac": "audio/flac", ".m4a": "audio/aac"}


class Analyzer(ABC):
    """Turns a spoken description and a still frame into detected issues."""

    @abstractmethod
    async def transcribe(self, audio_path: Path) -> str:
        """Transcript of the audio; empty string if nothing usable was heard."""
        pass

    @abstractmethod
    async def analyze(self, transcription: str, frame_path: Optional[Path]) -> AnalysisResult:
        """
        Diagnose the described problems.

        Raises:
            AnalysisError: if the model cannot be reached or its answer is unusable
        """
        pass


class GeminiAnalyzer(Analyzer):
    """Gemini-backed analyzer (google-genai SDK)."""

    def __init__(self, api_key: Optional[str] = None, model: str = GEMINI_MODEL, client: Any = None):
        self.model = model
        if client is None:
            from google import genai

            api_key = api_key or GEMINI_API_KEY
            if not api_key:
                raise ValueError("GEMINI_API_KEY environment variable is required")
            client = genai.Client(api_key=api_key)
        self.client = client

    def _generate(self, contents: list, system_instruction: Optional[str] = None, json_output: bool = False) -> str:
        from google.genai import types

        config = types.GenerateContentConfig(
            temperature=0.0,
            system_instruction=system_instruction,
            response_mime_type="application/json" if json_output else None,
        )
        response = self.client.models.generate_content(model=self.model, contents=contents, config=config)
        return response.text or ""

    async def transcribe(self, audio_path: Path) -> str:
        from google.genai import errors, types

        mime_type = AUDIO_MIME_TYPES.get(audio_path.suffix.lower(), "audio/mp3")
        try:
            data = await asyncio.to_thread(audio_path.read_bytes)
            with LogTimer(logger, "transcription"):
                text = await asyncio.to_thread(
                    self._generate,
                    [types.Part.from_bytes(data=data, mime_type=mime_type), TRANSCRIPTION_PROMPT],
                )
        except (errors.APIError, OSError) as exc:
            # Diagnosis can still run on the still frame alone
            logger.warning("Transcription failed, continuing without transcript", extra={"error": str(exc)})
            return ""
        return text.strip()

    async def analyze(self, transcription: str, frame_path: Optional[Path]) -> AnalysisResult:
        from google.genai import errors, types

        contents: list = []
        try:
            if frame_path is not None and frame_path.exists():
                image = await asyncio.to_thread(frame_path.read_bytes)
                contents.append(types.Part.from_bytes(data=image, mime_type="image/jpeg"))
            contents.append(build_analysis_request(transcription))

            with LogTimer(logger, "issue analysis"):
                raw = await asyncio.to_thread(
                    self._generate, contents, ANALYSIS_SYSTEM_PROMPT, True,
                )
        except (errors.APIError, OSError) as exc:
            raise AnalysisError("Issue analysis request failed") from exc

        try:
            result = AnalysisResult.model_validate(parse_json_object(raw))
        except (ValueError, ValidationError) as exc:
            raise AnalysisError("Issue analysis returned an unusable response") from exc

        logger.info(
            "Issue analysis complete",
            extra={"issue_count": len(result.issues), "issues_related": result.issues_related},
        )
        return result
