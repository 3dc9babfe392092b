"""
Frame Transform Module
- Relocates whole rows of a frame according to a permutation
- Forward moves row i to row P[i]; Inverse moves row P[i] back to row i
"""

from enum import Enum

import numpy as np

from vidscramble import permutation


class Direction(Enum):
    FORWARD = 'encrypt'
    INVERSE = 'decrypt'

    @classmethod
    def from_encrypt(cls, encrypt: bool) -> 'Direction':
        return cls.FORWARD if encrypt else cls.INVERSE

    @property
    def label(self) -> str:
        return 'Encryption' if self is Direction.FORWARD else 'Decryption'


def apply(frame: np.ndarray, perm, direction: Direction) -> np.ndarray:
    """
    Copy the rows of ``frame`` into a new buffer of the same shape.

    Args:
        frame:     (H, W) or (H, W, C) pixel buffer.
        perm:      Permutation of ``range(H)``.
        direction: Direction.FORWARD or Direction.INVERSE.

    Returns:
        A new array; ``frame`` itself is left untouched.
    """
    height = frame.shape[0]
    if len(perm) != height:
        raise ValueError(
            f"Permutation length {len(perm)} does not match frame height {height}")

    index = np.asarray(perm, dtype=np.intp)
    if direction is Direction.FORWARD:
        out = np.empty_like(frame)
        out[index] = frame
        return out
    if direction is Direction.INVERSE:
        return frame[index]
    raise ValueError(f"Unknown direction: {direction!r}")


def scramble_frame(frame: np.ndarray, key: int, direction: Direction) -> np.ndarray:
    """Regenerate the permutation for this frame's height and apply it."""
    return apply(frame, permutation.generate(key, frame.shape[0]), direction)
