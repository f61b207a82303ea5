"""
Multi-line layout of rasterized glyphs.

A BlockString holds the text, its font and the glyph of every distinct
character it uses. The LayoutEngine builds BlockStrings and turns them into
emission anchors: the relative (x, y) of each character's bottom left corner.
Lines are stacked from the top down, each line taking a band as tall as its
tallest glyph, and each line is shifted horizontally according to the
alignment.
"""

import logging
from functools import cached_property
from typing import Iterator, NamedTuple

from datatrees import datatree, dtfield
from frozendict import frozendict

from blocktext.alignment import Alignment
from blocktext.errors import OutOfRangeError
from blocktext.fonts import FontHandle
from blocktext.glyph import Glyph, GlyphRasterizer

log = logging.getLogger(__name__)


class Emission(NamedTuple):
    """Anchor of one character relative to the string's bottom left."""
    character: str
    x: int
    y: int


@datatree(frozen=True)
class BlockString:
    """Text laid out in blocks. Metrics are in glyph bitmap pixels."""

    text: str
    font: FontHandle = dtfield(repr=False)
    glyphs: frozendict = dtfield(repr=False, doc='Glyph of each distinct character.')
    alignment: Alignment = Alignment.LEFT

    @cached_property
    def lines(self) -> tuple[str, ...]:
        return tuple(self.text.split('\n'))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @cached_property
    def _line_widths(self) -> tuple[int, ...]:
        return tuple(
            sum(self.glyphs[c].width for c in line if c != '\n') for line in self.lines)

    @cached_property
    def _line_heights(self) -> tuple[int, ...]:
        return tuple(
            max((self.glyphs[c].height for c in line if c != '\n'), default=0)
            for line in self.lines)

    def _check_line(self, line: int):
        if not 0 <= line < self.line_count:
            raise OutOfRangeError(
                f"Line {line} out of range for {self.line_count} line(s)")

    @property
    def width(self) -> int:
        """Width of the widest line."""
        return max(self._line_widths)

    @property
    def height(self) -> int:
        """Height of the tallest glyph in the whole text."""
        return max(self._line_heights)

    @property
    def stacked_height(self) -> int:
        """Total height of all lines stacked, each at its own height."""
        return sum(self._line_heights)

    def line_width(self, line: int) -> int:
        self._check_line(line)
        return self._line_widths[line]

    def line_height(self, line: int) -> int:
        self._check_line(line)
        return self._line_heights[line]

    def line_glyphs(self, line: int) -> list[Glyph]:
        self._check_line(line)
        return [self.glyphs[c] for c in self.lines[line]]

    def as_glyphs(self) -> list[Glyph]:
        """Glyph for every character of the text, newlines included."""
        return [self.glyphs[c] for c in self.text]

    def with_alignment(self, alignment: Alignment) -> 'BlockString':
        return BlockString(
            text=self.text, font=self.font, glyphs=self.glyphs, alignment=alignment)


class LayoutEngine:
    """Builds BlockStrings and computes per-character emission anchors."""

    def __init__(self, rasterizer: GlyphRasterizer | None = None):
        self.rasterizer = rasterizer if rasterizer is not None else GlyphRasterizer()

    def build_string(self, text: str, font: FontHandle,
                     alignment: Alignment = Alignment.LEFT) -> BlockString:
        if font is None:
            raise ValueError("A font is required to build a BlockString")
        return BlockString(
            text=text,
            font=font,
            glyphs=self.rasterizer.glyphs_for(text, font),
            alignment=alignment,
        )

    def build_string_for(self, text: str, resolver, font_name: str | None = None,
                         size: float | None = None,
                         alignment: Alignment | None = None) -> BlockString | None:
        """Builds a BlockString with a font from resolver.

        Falls back to the resolver's default font and the configured default
        alignment. Returns None if the resolver has no usable font.
        """
        font = resolver.resolve_or_default(font_name, size)
        if font is None:
            log.warning(f"No font available for '{font_name}'.")
            return None
        if alignment is None:
            alignment = resolver.config.alignment()
        return self.build_string(text, font, alignment)

    @staticmethod
    def line_offset(block_string: BlockString, line: int,
                    alignment: Alignment | None = None) -> int:
        """Horizontal start of line for the alignment (the string's own if None)."""
        if alignment is None:
            alignment = block_string.alignment
        return alignment.line_offset(block_string.width, block_string.line_width(line))

    def iter_emissions(self, block_string: BlockString,
                       alignment: Alignment | None = None) -> Iterator[Emission]:
        y = block_string.stacked_height
        for line_no, line in enumerate(block_string.lines):
            y -= block_string.line_height(line_no)
            x = self.line_offset(block_string, line_no, alignment)
            for character in line:
                yield Emission(character, x, y)
                x += block_string.glyphs[character].width

    def emit(self, block_string: BlockString,
             alignment: Alignment | None = None) -> list[Emission]:
        """Anchors of every character, top line first, left to right."""
        return list(self.iter_emissions(block_string, alignment))
