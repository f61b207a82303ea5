"""
Text measurement and drawing capability used by the glyph rasterizer.

The rasterizer only needs two things from a rendering library: the advance
width and max ascent of a character, and an ink mask of that character drawn
onto a bitmap of a given size. PillowGlyphBackend provides both through
Pillow's FreeType bindings.
"""

import logging
from abc import ABC, abstractmethod

import numpy as np
from PIL import Image, ImageDraw

from blocktext.errors import MeasurementFailureError
from blocktext.fonts import FontHandle

log = logging.getLogger(__name__)


class GlyphBackend(ABC):
    """Measures and draws single characters."""

    @abstractmethod
    def measure(self, character: str, font: FontHandle) -> tuple[int, int]:
        """Returns (advance width, max ascent) in pixels."""

    @abstractmethod
    def render(self, character: str, font: FontHandle, width: int, height: int) -> np.ndarray:
        """Draws character with its baseline at y == height.

        Returns a bool array of shape (height, width), row 0 at the top, True
        wherever the bitmap is not fully transparent.
        """


class PillowGlyphBackend(GlyphBackend):
    """Draws with Pillow onto a transparent RGBA image."""

    INK = (0, 0, 0, 255)
    TRANSPARENT = (0, 0, 0, 0)

    def measure(self, character: str, font: FontHandle) -> tuple[int, int]:
        try:
            return font.advance(character), font.ascent
        except (OSError, ValueError, TypeError) as e:
            raise MeasurementFailureError(
                f"Unable to measure {character!r} in {font.display_name}: {e}") from e

    def render(self, character: str, font: FontHandle, width: int, height: int) -> np.ndarray:
        try:
            image = Image.new('RGBA', (width, height), self.TRANSPARENT)
            draw = ImageDraw.Draw(image)
            draw.text((0, height), character, font=font.pil_font, fill=self.INK, anchor='ls')
        except (OSError, ValueError, TypeError) as e:
            raise MeasurementFailureError(
                f"Unable to draw {character!r} in {font.display_name}: {e}") from e
        pixels = np.asarray(image)
        image.close()
        return np.any(pixels != 0, axis=2)
