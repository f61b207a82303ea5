"""
Boundary between layout and whatever places blocks.

An Emitter receives absolute positions. paste() produces them by adding each
character's emission anchor and then each of its ink coordinates to a base
position, so text is built in the x/y plane upward from the base.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, NamedTuple

import numpy as np

from blocktext.alignment import Alignment
from blocktext.layout import BlockString, LayoutEngine

log = logging.getLogger(__name__)


class Placement(NamedTuple):
    position: tuple[int, int, int]
    block_kind: Any
    context: Any


class Emitter(ABC):
    """Places one block of block_kind at position on behalf of context."""

    @abstractmethod
    def place(self, position: tuple[int, int, int], block_kind: Any, context: Any) -> None:
        pass


class CollectingEmitter(Emitter):
    """Records placements instead of performing them."""

    def __init__(self):
        self.placements: list[Placement] = []

    def place(self, position: tuple[int, int, int], block_kind: Any, context: Any) -> None:
        self.placements.append(Placement(position, block_kind, context))

    def positions(self) -> list[tuple[int, int, int]]:
        return [p.position for p in self.placements]

    def as_array(self) -> np.ndarray:
        if not self.placements:
            return np.empty((0, 3), dtype=int)
        return np.array(self.positions(), dtype=int)

    def __len__(self):
        return len(self.placements)


def paste(block_string: BlockString, emitter: Emitter, engine: LayoutEngine,
          base: tuple[int, int, int] = (0, 0, 0), block_kind: Any = None,
          context: Any = None, alignment: Alignment | None = None) -> int:
    """Sends every ink pixel of block_string to emitter, offset from base.

    Returns:
        The number of placements made.
    """
    bx, by, bz = base
    count = 0
    for emission in engine.iter_emissions(block_string, alignment):
        glyph = block_string.glyphs[emission.character]
        for x, y in glyph.offset(emission.x, emission.y):
            emitter.place((bx + x, by + y, bz), block_kind, context)
            count += 1
    log.debug(f"Pasted {block_string.text!r} as {count} blocks at {base}")
    return count


def block_positions(block_string: BlockString, engine: LayoutEngine,
                    alignment: Alignment | None = None) -> np.ndarray:
    """All ink coordinates of the laid out string as an (N, 2) int array."""
    points = []
    for emission in engine.iter_emissions(block_string, alignment):
        points.extend(block_string.glyphs[emission.character].offset(emission.x, emission.y))
    if not points:
        return np.empty((0, 2), dtype=int)
    return np.array(points, dtype=int)


def preview(positions: np.ndarray, ink: str = '#', blank: str = '.') -> str:
    """Text picture of (x, y) positions, highest row first."""
    positions = np.asarray(positions, dtype=int)
    if positions.size == 0:
        return ''
    xy = positions[:, :2]
    (min_x, min_y), (max_x, max_y) = xy.min(axis=0), xy.max(axis=0)
    grid = np.full((max_y - min_y + 1, max_x - min_x + 1), blank)
    grid[max_y - xy[:, 1], xy[:, 0] - min_x] = ink
    return '\n'.join(''.join(row) for row in grid)
