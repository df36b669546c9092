"""Utility functions for Student Evaluator."""

from .jsonl import read_jsonl, stream_jsonl, write_jsonl

__all__ = [
    "read_jsonl",
    "stream_jsonl",
    "write_jsonl",
]
