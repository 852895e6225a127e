"""
Raw complex sample files.

Samples are stored as interleaved single-precision (real, imag) pairs in
native byte order, 8 bytes per sample, with no header. This is the layout
numpy uses for complex64, so chunks are decoded with np.frombuffer and
written with ndarray.tofile.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Union

import numpy as np

from .errors import InputUnavailableError

logger = logging.getLogger("meteodetect.sample_io")

SAMPLE_DTYPE = np.complex64
SAMPLE_SIZE = np.dtype(SAMPLE_DTYPE).itemsize  # 8 bytes

PathLike = Union[str, Path]


class SampleReader:
    """
    Chunked reader for raw complex sample files.

    The file is opened on construction so a missing input is reported before
    any downstream processing is set up. A trailing partial sample (fewer
    than 8 bytes at end of file) is ignored.
    """

    DEFAULT_CHUNK_SIZE = 65536  # Samples per read

    def __init__(self, path: PathLike, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Open a sample file for reading.

        Args:
            path: Input file path
            chunk_size: Number of samples decoded per read

        Raises:
            InputUnavailableError: If the file cannot be opened
        """
        if chunk_size < 1:
            raise ValueError(f"Chunk size must be >= 1, got {chunk_size}")

        self.path = Path(path)
        self.chunk_size = chunk_size
        self.samples_read = 0

        try:
            self._file = open(self.path, "rb")
        except OSError as e:
            raise InputUnavailableError(f"cannot open `{self.path}': {e.strerror or e}") from e

    def chunks(self) -> Iterator[np.ndarray]:
        """Yield complex64 arrays of up to chunk_size samples, in file order."""
        while True:
            data = self._file.read(self.chunk_size * SAMPLE_SIZE)
            count = len(data) // SAMPLE_SIZE
            if count == 0:
                if data:
                    logger.debug(f"Ignoring {len(data)} trailing bytes in {self.path}")
                return
            if len(data) % SAMPLE_SIZE:
                logger.debug(f"Ignoring {len(data) % SAMPLE_SIZE} trailing bytes in {self.path}")
            self.samples_read += count
            yield np.frombuffer(data[:count * SAMPLE_SIZE], dtype=SAMPLE_DTYPE)

    def __iter__(self) -> Iterator[complex]:
        """Yield samples one at a time as Python complex values."""
        for chunk in self.chunks():
            yield from chunk.astype(np.complex128).tolist()

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class SampleWriter:
    """
    Buffered writer for raw complex sample files.

    Samples are collected in a small Python list and flushed as one complex64
    block, which keeps per-sample writes cheap. The file is truncated on open.
    """

    DEFAULT_BUFFER_SIZE = 4096  # Samples held before flushing

    def __init__(self, path: PathLike, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """
        Open a sample file for writing.

        Raises:
            OSError: If the file cannot be created
        """
        self.path = Path(path)
        self.buffer_size = max(1, buffer_size)
        self.samples_written = 0
        self._pending: List[complex] = []
        self._file = open(self.path, "wb")

    @property
    def closed(self) -> bool:
        return self._file is None

    def write(self, sample: complex):
        """Queue one sample for output."""
        if self._file is None:
            raise ValueError("write to closed SampleWriter")
        self._pending.append(sample)
        if len(self._pending) >= self.buffer_size:
            self.flush()

    def write_block(self, samples: np.ndarray):
        """Write an array of samples after any queued ones."""
        if self._file is None:
            raise ValueError("write to closed SampleWriter")
        self.flush()
        block = np.asarray(samples, dtype=SAMPLE_DTYPE)
        block.tofile(self._file)
        self.samples_written += len(block)

    def flush(self):
        if self._file is None or not self._pending:
            return
        np.array(self._pending, dtype=SAMPLE_DTYPE).tofile(self._file)
        self.samples_written += len(self._pending)
        self._pending = []
        self._file.flush()

    def close(self):
        """Flush queued samples and close the file. Safe to call twice."""
        if self._file is None:
            return
        try:
            self.flush()
        finally:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def read_samples(path: PathLike, count: Optional[int] = None) -> np.ndarray:
    """
    Load a whole sample file (or its first `count` samples) into memory.

    Raises:
        InputUnavailableError: If the file cannot be opened
    """
    with SampleReader(path) as reader:
        chunks = []
        total = 0
        for chunk in reader.chunks():
            chunks.append(chunk)
            total += len(chunk)
            if count is not None and total >= count:
                break
    if not chunks:
        return np.zeros(0, dtype=SAMPLE_DTYPE)
    samples = np.concatenate(chunks)
    return samples if count is None else samples[:count]


def write_samples(path: PathLike, samples: np.ndarray) -> int:
    """Write an array of samples to a new file. Returns the sample count."""
    with SampleWriter(path) as writer:
        writer.write_block(samples)
        return writer.samples_written
