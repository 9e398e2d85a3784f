"""Infrastructure - storage, relational store, LLM clients and parsing."""
