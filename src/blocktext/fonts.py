"""
Loaded font handles and the in-memory font store.

A FontHandle owns the raw bytes of one font face plus a Pillow FreeType face
at one point size. Re-scaling builds a new face from the in-memory bytes so
the font file is only ever read once.
"""

import hashlib
import io
import logging
import threading
from pathlib import Path

import fontTools.ttLib
from PIL import ImageFont

from blocktext.cache import Cache

log = logging.getLogger(__name__)

REFERENCE_SIZE = 16
FONT_EXTENSIONS = ('.ttf', '.otf')


def font_key(name: str) -> str:
    """Canonical, case and whitespace insensitive identity for a font name."""
    return '_'.join(name.split()).casefold()


def file_name_without_type(path: 'Path | str') -> str:
    name = Path(path).name
    return name[:name.rindex('.')] if '.' in name else name


def _read_names(font_bytes: bytes) -> tuple[str | None, str | None]:
    """Returns (full name, family name) from the font's name table."""
    ft_font = fontTools.ttLib.TTFont(io.BytesIO(font_bytes), lazy=True)
    try:
        if 'name' not in ft_font:
            return None, None
        name_table = ft_font['name']
        return name_table.getDebugName(4), name_table.getDebugName(1)
    finally:
        ft_font.close()


def _point_size(size: float) -> int:
    return max(1, int(round(size)))


class FontHandle:
    """A loaded font face at a specific point size.

    Handles compare equal when they hold the same font data under the same
    display name at the same size, regardless of which file they came from.
    """

    def __init__(self, key: str, display_name: str, family_name: str,
                 font_bytes: bytes, size: int, digest: str,
                 source: Path | None = None, variants: Cache | None = None):
        self.key = key
        self.display_name = display_name
        self.family_name = family_name
        self.size = size
        self.digest = digest
        self.source = source
        self._font_bytes = font_bytes
        self.pil_font = ImageFont.truetype(io.BytesIO(font_bytes), size=size)
        self._variants = variants if variants is not None else Cache(name=f'{key} sizes')
        self._variants.insert(size, self)

    @classmethod
    def from_bytes(cls, key: str, font_bytes: bytes, size: float = REFERENCE_SIZE,
                   source: Path | None = None) -> 'FontHandle':
        """Parses font_bytes and creates a handle at size.

        Parse errors from fontTools or Pillow propagate unchanged.
        """
        full_name, family_name = _read_names(font_bytes)
        handle = cls(
            key=key,
            display_name=full_name or family_name or key,
            family_name=family_name or full_name or key,
            font_bytes=font_bytes,
            size=_point_size(size),
            digest=hashlib.sha1(font_bytes).hexdigest(),
            source=source,
        )
        if not full_name:
            pil_family = handle.pil_font.getname()[0]
            if pil_family:
                handle.display_name = pil_family
        return handle

    @classmethod
    def from_file(cls, path: 'Path | str', key: str | None = None,
                  size: float = REFERENCE_SIZE) -> 'FontHandle':
        path = Path(path)
        return cls.from_bytes(
            key if key is not None else file_name_without_type(path),
            path.read_bytes(),
            size=size,
            source=path.absolute(),
        )

    def at_size(self, size: float | None) -> 'FontHandle':
        """This face re-scaled to size. Variants are memoized per size."""
        if size is None:
            return self
        size = _point_size(size)
        return self._variants.get_or_insert(size, lambda: FontHandle(
            key=self.key,
            display_name=self.display_name,
            family_name=self.family_name,
            font_bytes=self._font_bytes,
            size=size,
            digest=self.digest,
            source=self.source,
            variants=self._variants,
        ))

    @property
    def identity(self) -> tuple[str, int]:
        """Identifies the rendered face: same data at the same size."""
        return (self.digest, self.size)

    @property
    def ascent(self) -> int:
        return self.pil_font.getmetrics()[0]

    def advance(self, character: str) -> int:
        return int(round(self.pil_font.getlength(character)))

    def __eq__(self, other):
        if not isinstance(other, FontHandle):
            return NotImplemented
        return (self.display_name, self.digest, self.size) == (
            other.display_name, other.digest, other.size)

    def __hash__(self):
        return hash((self.display_name, self.digest, self.size))

    def __repr__(self):
        return f'FontHandle({self.display_name!r}, key={self.key!r}, size={self.size})'


class FontStore:
    """Loaded fonts keyed by font_key() of their file derived name."""

    def __init__(self, max_entries: int | None = None):
        self._cache: Cache[str, FontHandle] = Cache(max_entries, name='font store')
        self._insert_lock = threading.Lock()

    def get(self, name: str) -> FontHandle | None:
        return self._cache.get(font_key(name))

    def insert(self, name: str, handle: FontHandle) -> FontHandle:
        """Stores handle under name unless an equal handle is already stored.

        A different handle already under name is replaced. Returns the
        handle that ends up in the store.
        """
        with self._insert_lock:
            for existing in self._cache.values():
                if existing == handle:
                    log.debug(f"{handle!r} already stored as {existing.key!r}")
                    return existing
            key = font_key(name)
            replaced = self._cache.get(key)
            if replaced is not None:
                log.info(f"Replacing {replaced!r} with {handle!r}")
            return self._cache.put(key, handle)

    def contains_value(self, handle: FontHandle) -> bool:
        return handle in self._cache.values()

    def handles(self) -> list[FontHandle]:
        return self._cache.values()

    def keys(self) -> list[str]:
        return self._cache.keys()

    def find_by_display_name(self, name: str) -> FontHandle | None:
        key = font_key(name)
        for handle in self._cache.values():
            if font_key(handle.display_name) == key or font_key(handle.family_name) == key:
                return handle
        return None

    def __contains__(self, name: str) -> bool:
        return font_key(name) in self._cache

    def __len__(self) -> int:
        return len(self._cache)
