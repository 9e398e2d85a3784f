"""Parsing utilities for model output."""

from .json_parser import strip_code_fences, extract_largest_balanced_json, parse_json_object

__all__ = ["strip_code_fences", "extract_largest_balanced_json", "parse_json_object"]
