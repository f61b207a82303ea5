import numpy as np
import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

from blocktext.backend import GlyphBackend

UPEM = 1000
ASCENT = 800
DESCENT = -200
ADVANCE = 500


def rect(pen: TTGlyphPen, x0: int, y0: int, x1: int, y1: int) -> None:
    pen.moveTo((x0, y0))
    pen.lineTo((x1, y0))
    pen.lineTo((x1, y1))
    pen.lineTo((x0, y1))
    pen.closePath()


def rect_glyph(x0: int, y0: int, x1: int, y1: int):
    pen = TTGlyphPen(None)
    rect(pen, x0, y0, x1, y1)
    return pen.glyph()


def build_block_font(path, family='Block Test', style='Regular', chars='ABC'):
    """Writes a TrueType font whose glyphs for chars are solid ascent high blocks."""
    names = {c: f'uni{ord(c):04X}' for c in chars}
    glyph_order = ['.notdef', 'space'] + list(names.values())

    fb = FontBuilder(UPEM, isTTF=True)
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap({0x0020: 'space', **{ord(c): n for c, n in names.items()}})

    glyphs = {
        '.notdef': rect_glyph(50, 0, 450, 700),
        'space': TTGlyphPen(None).glyph(),
    }
    for name in names.values():
        glyphs[name] = rect_glyph(0, 0, ADVANCE, ASCENT)
    fb.setupGlyf(glyphs)
    fb.setupHorizontalMetrics({name: (ADVANCE, 0) for name in glyph_order})
    fb.setupHorizontalHeader(ascent=ASCENT, descent=DESCENT)
    fb.setupOS2(
        sTypoAscender=ASCENT,
        sTypoDescender=DESCENT,
        usWinAscent=ASCENT,
        usWinDescent=-DESCENT,
    )
    fb.setupNameTable({
        'familyName': family,
        'styleName': style,
        'fullName': f'{family} {style}',
        'uniqueFontIdentifier': f'{family} {style}',
        'psName': f"{family.replace(' ', '')}-{style}",
        'version': 'Version 1.0',
    })
    fb.setupPost()
    fb.setupMaxp()
    fb.save(str(path))
    return path


@pytest.fixture
def font_dir(tmp_path):
    return tmp_path / 'fonts'


@pytest.fixture
def external_dir(tmp_path):
    path = tmp_path / 'external'
    path.mkdir()
    return path


@pytest.fixture
def make_font():
    """Returns a factory writing a block font: make_font(path, family='Block Test')."""
    def factory(path, family='Block Test', style='Regular', chars='ABC'):
        path.parent.mkdir(parents=True, exist_ok=True)
        return build_block_font(path, family=family, style=style, chars=chars)
    return factory


class FakeFont:
    """Just enough of a FontHandle for the rasterizer and layout engine."""

    def __init__(self, name='fake', size=16):
        self.display_name = name
        self.size = size

    @property
    def identity(self):
        return (self.display_name, self.size)


class MonoBackend(GlyphBackend):
    """Every character is a solid block, except blanks which have no ink.

    Widths default to `width` and can be overridden per character.
    """

    def __init__(self, width=2, height=3, widths=None, blanks=' '):
        self.width = width
        self.height = height
        self.widths = widths or {}
        self.blanks = blanks
        self.renders = []

    def measure(self, character, font):
        return self.widths.get(character, self.width), self.height

    def render(self, character, font, width, height):
        self.renders.append(character)
        if character in self.blanks:
            return np.zeros((height, width), dtype=bool)
        return np.ones((height, width), dtype=bool)


@pytest.fixture
def fake_font():
    return FakeFont()


@pytest.fixture
def mono_backend():
    return MonoBackend()
