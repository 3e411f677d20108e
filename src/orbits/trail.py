"""
Orbit trails.

Fixed-capacity ring buffer of recent positions. Appends overwrite the
oldest point once full, so a trail never holds more than `capacity`
points and eviction is always oldest-first.
"""

import numpy as np


class TrailBuffer:
    """Bounded FIFO of 3D positions."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Trail capacity must be positive, got {capacity}")
        self._data = np.zeros((int(capacity), 3), dtype=np.float64)
        self._cursor = 0  # next write slot
        self._count = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return self._count

    def append(self, position) -> None:
        self._data[self._cursor] = position
        self._cursor = (self._cursor + 1) % self.capacity
        self._count = min(self._count + 1, self.capacity)

    def points(self) -> np.ndarray:
        """(len, 3) copy of the trail, oldest first."""
        if self._count < self.capacity:
            return self._data[:self._count].copy()
        return np.roll(self._data, -self._cursor, axis=0)

    def latest(self) -> np.ndarray:
        if self._count == 0:
            raise IndexError("Trail is empty")
        return self._data[(self._cursor - 1) % self.capacity].copy()

    def clear(self) -> None:
        self._cursor = 0
        self._count = 0

    def resize(self, capacity: int) -> None:
        """Change capacity, keeping the most recent points."""
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError(f"Trail capacity must be positive, got {capacity}")
        if capacity == self.capacity:
            return
        kept = self.points()[-capacity:]
        self._data = np.zeros((capacity, 3), dtype=np.float64)
        self._data[:len(kept)] = kept
        self._count = len(kept)
        self._cursor = self._count % capacity
