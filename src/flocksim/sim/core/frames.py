from __future__ import annotations

from typing import Iterator, List, Optional

from ..types.frame import Frame


class FrameIndexError(IndexError):
    """Raised for frame lookups outside the run or ahead of the simulation."""


class FrameStore:
    """Append-only, pre-sized sequence of frames.

    A single writer appends frames in step order; readers on other threads
    only ever see fully built frames because ``_completed`` is bumped after
    the slot is filled.
    """

    def __init__(self, total_steps: int):
        if total_steps <= 0:
            raise ValueError(f"total_steps must be positive, got {total_steps}")
        self._frames: List[Optional[Frame]] = [None] * total_steps
        self._completed = 0

    def __len__(self) -> int:
        return self._completed

    def __iter__(self) -> Iterator[Frame]:
        for index in range(self._completed):
            yield self._frames[index]  # type: ignore[misc]

    @property
    def capacity(self) -> int:
        return len(self._frames)

    @property
    def completed(self) -> int:
        return self._completed

    def append(self, frame: Frame) -> None:
        index = self._completed
        if index >= len(self._frames):
            raise FrameIndexError(f"frame store is full ({len(self._frames)} frames)")
        if frame.step != index:
            raise FrameIndexError(f"expected frame for step {index}, got step {frame.step}")
        self._frames[index] = frame
        self._completed = index + 1

    def get(self, index: int) -> Frame:
        if not 0 <= index < len(self._frames):
            raise FrameIndexError(f"frame index {index} outside [0, {len(self._frames)})")
        if index >= self._completed:
            raise FrameIndexError(f"frame {index} has not been simulated yet")
        return self._frames[index]  # type: ignore[return-value]

    def latest(self) -> Optional[Frame]:
        if self._completed == 0:
            return None
        return self._frames[self._completed - 1]
