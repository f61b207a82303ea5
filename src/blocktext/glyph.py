"""
Rasterizes single characters into sets of ink coordinates.

A character is drawn onto a bitmap exactly as wide as its advance and as high
as the font's max ascent. Every pixel that is not fully transparent becomes a
coordinate, with y flipped so row 0 is the bottom of the glyph, the direction
blocks are built in.
"""

import logging

import numpy as np
from datatrees import datatree, dtfield
from frozendict import frozendict

from blocktext.backend import GlyphBackend, PillowGlyphBackend
from blocktext.cache import Cache
from blocktext.errors import MeasurementFailureError
from blocktext.fonts import FontHandle

log = logging.getLogger(__name__)


@datatree(frozen=True)
class Glyph:
    """Ink coordinates and size of one character in one font at one size."""

    character: str
    width: int = dtfield(doc='Advance width in bitmap pixels.')
    height: int = dtfield(doc='Max ascent of the font in bitmap pixels.')
    coords: frozenset = dtfield(
        default=frozenset(), doc='(x, y) ink pixels, origin at the bottom left.')

    def offset(self, dx: int, dy: int) -> list[tuple[int, int]]:
        """Ink coordinates shifted by (dx, dy), bottom row first."""
        return [(x + dx, y + dy) for x, y in sorted(self.coords, key=lambda c: (c[1], c[0]))]

    def as_array(self) -> np.ndarray:
        """Coordinates as an (N, 2) int array sorted by row then column."""
        if not self.coords:
            return np.empty((0, 2), dtype=int)
        return np.array(self.offset(0, 0), dtype=int)


# Line break sentinel, takes no space and has no ink.
NEWLINE = Glyph(character='\n', width=0, height=0, coords=frozenset())


class GlyphRasterizer:
    """Creates Glyphs through a GlyphBackend and caches them per font face.

    The cache key is (font.identity, character) so the same character at the
    same size in the same font data is only ever drawn once.
    """

    def __init__(self, backend: GlyphBackend | None = None,
                 cache: Cache | None = None):
        self.backend = backend if backend is not None else PillowGlyphBackend()
        self.cache = cache if cache is not None else Cache(name='glyph cache')
        self.render_count = 0

    def rasterize(self, character: str, font: FontHandle) -> Glyph:
        if character == '\n':
            return NEWLINE
        if len(character) != 1:
            raise ValueError(f"Expected a single character, got {character!r}")
        return self.cache.get_or_insert(
            (font.identity, character), lambda: self._rasterize(character, font))

    def _rasterize(self, character: str, font: FontHandle) -> Glyph:
        width, height = self.backend.measure(character, font)
        self.render_count += 1
        if width <= 0 or height <= 0:
            return Glyph(character=character, width=max(width, 0), height=max(height, 0))

        mask = np.asarray(self.backend.render(character, font, width, height), dtype=bool)
        if mask.shape != (height, width):
            raise MeasurementFailureError(
                f"Backend drew {character!r} as {mask.shape}, expected {(height, width)}")
        rows, cols = np.nonzero(mask)
        coords = frozenset(zip(cols.tolist(), (height - 1 - rows).tolist()))
        log.debug(f"Rasterized {character!r} {width}x{height} with {len(coords)} ink pixels")
        return Glyph(character=character, width=width, height=height, coords=coords)

    def glyphs_for(self, text: str, font: FontHandle) -> frozendict:
        """Glyphs for each distinct character of text, each rasterized once."""
        glyphs = {}
        for character in text:
            if character in glyphs:
                continue
            try:
                glyphs[character] = self.rasterize(character, font)
            except MeasurementFailureError as e:
                log.error(f"Skipping {character!r} | {e}")
                glyphs[character] = Glyph(character=character, width=0, height=0)
        return frozendict(glyphs)
