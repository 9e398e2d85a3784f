"""
Services package - pipeline logic and its integrations

Pipeline:
    - pipeline/matching: Issue to educational clip resolution
    - pipeline/assembly: ffmpeg helpers and the stitch compiler

Infrastructure:
    - infrastructure/db: SQLAlchemy engine, sessions and tables
    - infrastructure/storage: Blob gateway and repositories
    - infrastructure/llm: Gemini transcription and analysis
    - infrastructure/parsing: JSON extraction from model output

Orchestration:
    - orchestration: Job and restitch runs over injected services
"""
