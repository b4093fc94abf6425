"""
Binary Result Files

Each result vector is stored in its own file, native endianness,
fixed-width integers:

    u64            number of elements
    n x f32/f64    the elements

with no padding or trailing data.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np

from src.common.exceptions import OutputError

logger = logging.getLogger(__name__)

LENGTH_DTYPE = np.dtype(np.uint64)


def serialize_into(values, path: Union[str, Path]) -> None:
    """
    Write a vector to a file.

    Args:
        values: 1-D array of floats
        path: Destination file (created or truncated)

    Raises:
        OutputError: If the values aren't a 1-D float vector or the
                     file couldn't be written
    """
    values = np.ascontiguousarray(values)
    if values.ndim != 1 or not np.issubdtype(values.dtype, np.floating):
        raise OutputError(
            f"Expected a 1-D float vector, got shape {values.shape} of {values.dtype}"
        )

    path = Path(path)
    try:
        with open(path, 'wb') as f:
            f.write(np.array([values.size], dtype=LENGTH_DTYPE).tobytes())
            f.write(values.tobytes())
    except OSError as e:
        raise OutputError(f"Couldn't serialize the vector for file {path}") from e

    logger.debug(f"Wrote {values.size} values of {values.dtype} to {path}")


def deserialize_from(path: Union[str, Path], dtype=np.float64) -> np.ndarray:
    """
    Read a vector written by serialize_into().

    Args:
        path: Source file
        dtype: Floating point type of the stored elements

    Returns:
        1-D array of dtype

    Raises:
        OutputError: If the file couldn't be read or is inconsistent
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise OutputError(f"Couldn't read the vector from file {path}") from e

    header = LENGTH_DTYPE.itemsize
    if len(data) < header:
        raise OutputError(f"File {path} is too short to hold a vector")

    length = int(np.frombuffer(data[:header], dtype=LENGTH_DTYPE)[0])
    itemsize = np.dtype(dtype).itemsize
    if len(data) - header != length * itemsize:
        raise OutputError(
            f"File {path} declares {length} elements but holds "
            f"{(len(data) - header) / itemsize:g}"
        )

    return np.frombuffer(data[header:], dtype=dtype).copy()
