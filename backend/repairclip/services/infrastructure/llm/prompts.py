"""
Prompts for the transcription and diagnosis calls.
"""

from repairclip.models.issues import IssueCategory

CATEGORY_LIST = ", ".join(c.value for c in IssueCategory)

TRANSCRIPTION_PROMPT = (
    "Transcribe the speech in this audio verbatim. "
    "Return only the transcript text, without timestamps or speaker labels. "
    "If there is no intelligible speech, return an empty response."
)

ANALYSIS_SYSTEM_PROMPT = f"""
You are an automotive expert. You receive the transcript of a vehicle owner
describing a problem and a still frame from their video.

Identify the distinct mechanical problems. For EACH problem:
- "problem": a short name (e.g. "Warped Rotors")
- "category": exactly one of: {CATEGORY_LIST}
- "keywords": 3-5 search keywords specific to that problem

Set "Issues_related" to false when the problems are unrelated to each other
(for example a brake noise and a broken window), otherwise true.

Return JSON only:
{{
  "issues": [
    {{"problem": "Warped Rotors", "category": "Brakes", "keywords": ["vibration", "brake pulsation", "rotor"]}}
  ],
  "Issues_related": true
}}
If no mechanical problem is described or visible, return {{"issues": [], "Issues_related": true}}.
""".strip()


def build_analysis_request(transcription: str) -> str:
    transcript = transcription.strip() or "(no speech was transcribed)"
    return f"Transcript:\n{transcript}"
