"""LLM infrastructure - Gemini transcription and issue analysis."""

from .analyzer import Analyzer, GeminiAnalyzer

__all__ = ["Analyzer", "GeminiAnalyzer"]
