"""
Key entry helpers for the control surfaces.
"""

import re

from vidscramble.errors import KeyParseError
from vidscramble.frame_transform import Direction
from vidscramble.permutation import INT64_MAX, INT64_MIN

_KEY_RE = re.compile(r'[+-]?[0-9]+')


def parse_key(text: str) -> int:
    """Parse operator text into a signed 64-bit key or raise KeyParseError."""
    if text is None:
        raise KeyParseError("Key is required.")
    cleaned = text.strip()
    if not _KEY_RE.fullmatch(cleaned):
        raise KeyParseError(f"Invalid key format: {text!r}. Please enter a valid number.")
    key = int(cleaned)
    if not INT64_MIN <= key <= INT64_MAX:
        raise KeyParseError(f"Key out of range: {cleaned}")
    return key


def status_line(key: int, direction: Direction, output_path: str) -> str:
    return f"Key: {key} | Mode: {direction.label} | Out: {output_path}"
