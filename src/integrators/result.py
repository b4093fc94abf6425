"""
Result Buffer for Fixed-Step Integrators

A dense column-oriented store of state vectors: one row per state
component, one column per iteration step (0..=n).

Invariants:
    - column 0 holds the initial state
    - column i holds the state after i steps of size h
    - columns are written in order during integration and never reordered
"""

from typing import Sequence

import numpy as np

from src.common.exceptions import DimensionMismatchError


class ResultBuffer:
    """
    Matrix of states produced by one integration run.

    Attributes:
        dimension: Number of state components (rows)
        steps: Number of integration steps (columns - 1)
        dtype: Floating point type of the stored values

    Example:
        result = ResultBuffer.prepare([1.0, 0.0], n=100)
        result.set_state(1, [0.99, -0.01])
        positions = result.row(0)
    """

    def __init__(self, dimension: int, steps: int, dtype=np.float64):
        """
        Allocate a zero-filled dimension x (steps + 1) matrix.

        Args:
            dimension: Number of state components
            steps: Number of integration steps; non-positive values
                   leave room for the initial column only
            dtype: Floating point type (np.float32 or np.float64)
        """
        self._data = np.zeros((dimension, max(steps, 0) + 1), dtype=dtype)

    @classmethod
    def prepare(
        cls,
        x: Sequence[float],
        n: int,
        dtype=None,
    ) -> 'ResultBuffer':
        """
        Prepare a buffer for n steps with the initial values in column 0.

        Args:
            x: Initial state vector
            n: Number of iterations
            dtype: Floating point type; inferred from x when omitted
                   (integer input is promoted to float64)

        Returns:
            New buffer
        """
        x = np.asarray(x)
        if dtype is None:
            dtype = x.dtype if np.issubdtype(x.dtype, np.floating) else np.float64
        result = cls(x.shape[0], n, dtype=dtype)
        result.set_state(0, x)
        return result

    @classmethod
    def from_array(cls, data) -> 'ResultBuffer':
        """
        Wrap a copy of an existing dimension x (steps + 1) matrix.

        Args:
            data: 2-D array of floats

        Returns:
            New buffer
        """
        data = np.array(data)
        if data.ndim != 2:
            raise ValueError(f"Expected a 2-D matrix, got shape {data.shape}")
        result = cls(data.shape[0], data.shape[1] - 1, dtype=data.dtype)
        result._data[:] = data
        return result

    @property
    def dimension(self) -> int:
        return self._data.shape[0]

    @property
    def steps(self) -> int:
        return self._data.shape[1] - 1

    @property
    def dtype(self):
        return self._data.dtype

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the whole matrix."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def _check_column(self, i: int) -> None:
        if not 0 <= i < len(self):
            raise IndexError(f"Column {i} is out of range [0, {len(self)})")

    def set_state(self, i: int, x: Sequence[float]) -> None:
        """
        Store a state vector as column i.

        Args:
            i: Column index
            x: State vector of length `dimension`

        Raises:
            DimensionMismatchError: If the length of x differs from `dimension`
            IndexError: If i is out of range
        """
        x = np.asarray(x)
        if x.ndim != 1 or x.shape[0] != self.dimension:
            raise DimensionMismatchError(self.dimension, x.size)
        self._check_column(i)
        self._data[:, i] = x

    def state(self, i: int) -> np.ndarray:
        """Return a copy of column i."""
        self._check_column(i)
        return self._data[:, i].copy()

    def initial_values(self) -> np.ndarray:
        """Return a copy of the initial state (column 0)."""
        return self.state(0)

    def final_state(self) -> np.ndarray:
        """Return a copy of the last column."""
        return self.state(self.steps)

    def row(self, i: int) -> np.ndarray:
        """
        Return the time series of one state component.

        Args:
            i: Row index (state component)

        Returns:
            Copy of row i, length steps + 1
        """
        if not 0 <= i < self.dimension:
            raise IndexError(f"Row {i} is out of range [0, {self.dimension})")
        return self._data[i, :].copy()

    def __len__(self) -> int:
        return self._data.shape[1]

    def __repr__(self) -> str:
        return (f"ResultBuffer(dimension={self.dimension}, "
                f"steps={self.steps}, dtype={self.dtype})")
