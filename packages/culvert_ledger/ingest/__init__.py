"""Ingest helpers: turn extraction output into ``ScoreEntry`` batches."""

from .payload import decode_rows, extract_json_from_text, to_score_entries

__all__ = ["decode_rows", "extract_json_from_text", "to_score_entries"]
