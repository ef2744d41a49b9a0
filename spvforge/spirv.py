"""Encoding of SPIR-V word streams to and from their persisted byte form."""
import os
import tempfile
from pathlib import Path

import numpy as np

WORD_DTYPE = np.dtype('<u4')
WORD_SIZE = WORD_DTYPE.itemsize
ARTIFACT_SUFFIX = '.spv'


def artifact_path(source_path) -> Path:
    """Returns `<source_path>.spv`. The suffix is appended, never substituted."""
    source_path = Path(source_path)
    return source_path.with_name(source_path.name + ARTIFACT_SUFFIX)


def as_words(words) -> np.ndarray:
    """Coerces a sequence of 32-bit words into a little-endian word array."""
    return np.ascontiguousarray(words, dtype=WORD_DTYPE).reshape(-1)


def decode_words(data: bytes) -> np.ndarray:
    """
    Reinterprets a byte buffer as little-endian 32-bit words.

    Raises:
        ValueError: If the buffer length is not a multiple of the word size.
    """
    if len(data) % WORD_SIZE != 0:
        raise ValueError(
            f"SPIR-V buffer of {len(data)} bytes is not a multiple of {WORD_SIZE}."
        )
    return np.frombuffer(data, dtype=WORD_DTYPE).copy()


def encode_words(words) -> bytes:
    return as_words(words).tobytes()


def read_words(path) -> np.ndarray:
    with open(path, 'rb') as f:
        return decode_words(f.read())


def write_words(path, words):
    """
    Writes words to `path` atomically.

    The data goes to a temporary sibling first and is renamed over `path`, so
    a failed write never leaves a truncated artifact with a fresh mtime.
    """
    path = Path(path)
    fd, temp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(encode_words(words))
        os.replace(temp_name, path)
    except BaseException:
        os.unlink(temp_name)
        raise
