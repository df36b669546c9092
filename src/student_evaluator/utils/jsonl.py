"""JSONL file handling utilities."""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def stream_jsonl(path: Path, skip_malformed: bool = True) -> Iterator[dict[str, Any]]:
    """Stream a JSONL file line by line.

    Args:
        path: Path to the JSONL file.
        skip_malformed: If True, skip malformed lines instead of raising.

    Yields:
        Parsed JSON objects one at a time.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        json.JSONDecodeError: If skip_malformed is False and a line is invalid.
    """
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                if skip_malformed:
                    logger.warning(f"Skipping malformed line {line_num} in {path}: {e}")
                else:
                    raise


def read_jsonl(path: Path, skip_malformed: bool = True) -> list[dict[str, Any]]:
    """Read a JSONL file and return the list of parsed objects."""
    return list(stream_jsonl(path, skip_malformed=skip_malformed))


def write_jsonl(
    path: Path,
    data: Iterable[dict[str, Any] | BaseModel],
    append: bool = False,
) -> int:
    """Write objects to a JSONL file, one per line.

    Args:
        path: Path to the output file.
        data: Dicts or pydantic models to write.
        append: If True, append to existing file instead of overwriting.

    Returns:
        Number of lines written.
    """
    mode = "a" if append else "w"
    count = 0
    with open(path, mode, encoding="utf-8") as f:
        for item in data:
            if isinstance(item, BaseModel):
                item = item.model_dump(mode="json")
            f.write(json.dumps(item, ensure_ascii=False) + "\n")
            count += 1
    return count
