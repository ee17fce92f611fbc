from __future__ import annotations

import math
from typing import Dict, List, Sequence, Tuple

from pygame.math import Vector2


class SpatialGrid:
    """Uniform bucket grid over entity indices.

    Buckets hold indices into the sequence the grid was built from, so a
    grid is only valid for that sequence and must be rebuilt once positions
    change.
    """

    def __init__(self, cell_size: float) -> None:
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List[int]] = {}

    def clear(self) -> None:
        self._cells.clear()

    def insert(self, index: int, position: Vector2) -> None:
        key = self._cell_key(position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
        bucket.append(index)

    def rebuild(self, positions: Sequence[Vector2]) -> None:
        self._cells.clear()
        for index, position in enumerate(positions):
            self.insert(index, position)

    def query(self, position: Vector2, radius: float) -> List[int]:
        """Indices within ``radius`` of ``position``, in ascending order."""
        base_x, base_y = self._cell_key(position)
        cell_range = int(math.ceil(radius / self._cell_size))
        cells = self._cells
        found: List[int] = []
        for dx in range(-cell_range, cell_range + 1):
            for dy in range(-cell_range, cell_range + 1):
                bucket = cells.get((base_x + dx, base_y + dy))
                if bucket:
                    found.extend(bucket)
        found.sort()
        return found

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(math.floor(position.x / self._cell_size)), int(math.floor(position.y / self._cell_size)))
