"""
Proxy records: small text files in the font directory that point at a font
file kept somewhere else.

File layout:

    line 1  absolute path of the real font file
    line 2  (blank)                         \\
    line 3  [ERROR]                          |  only present after a
    line 4  Failed to load font.             |  failed load
    line 5  exception class name             |
    line 6  exception message               /

A proxy for "Arial.ttf" is named "Arial.ttfproxy". While the error block is
present the file name carries the "[ERROR] " prefix, and only then.
"""

import logging
from pathlib import Path

from datatrees import datatree, dtfield

from blocktext.fonts import FONT_EXTENSIONS

log = logging.getLogger(__name__)

PROXY_SUFFIX = 'proxy'
PROXY_EXTENSIONS = tuple(ext + PROXY_SUFFIX for ext in FONT_EXTENSIONS)
ERROR_MARKER = '[ERROR]'
ERROR_PREFIX = ERROR_MARKER + ' '
ERROR_NOTE = 'Failed to load font.'


def is_font_file_name(name: str) -> bool:
    return name.lower().endswith(FONT_EXTENSIONS)


def is_proxy_file_name(name: str) -> bool:
    return name.lower().endswith(PROXY_EXTENSIONS)


def is_error_marked(name: str) -> bool:
    return name.startswith(ERROR_PREFIX)


def strip_error_marker(name: str) -> str:
    return name[len(ERROR_PREFIX):] if is_error_marked(name) else name


def proxy_name_for(font_path: 'Path | str') -> str:
    return Path(font_path).name + PROXY_SUFFIX


@datatree(frozen=True)
class ProxyError:
    """Why the last load through a proxy failed."""

    class_name: str
    message: str
    note: str = ERROR_NOTE

    @classmethod
    def from_exception(cls, e: BaseException) -> 'ProxyError':
        exc_type = type(e)
        module = exc_type.__module__
        class_name = (exc_type.__qualname__ if module == 'builtins'
                      else f'{module}.{exc_type.__qualname__}')
        return cls(class_name=class_name, message=' '.join(str(e).split()))


@datatree(frozen=True)
class ProxyRecord:
    """In-memory form of a proxy file."""

    path: Path = dtfield(doc='Location of the proxy file itself.')
    target: Path = dtfield(doc='Font file the proxy points at.')
    error: ProxyError | None = dtfield(default=None, doc='Last load failure, if any.')

    @classmethod
    def read(cls, path: 'Path | str') -> 'ProxyRecord':
        """Reads a proxy file. OSError propagates, an empty file is a ValueError."""
        path = Path(path)
        lines = path.read_text(encoding='utf-8').splitlines()
        if not lines or not lines[0].strip():
            raise ValueError(f"Proxy file '{path.name}' does not name a font file")
        error = None
        if len(lines) >= 3 and lines[2].strip() == ERROR_MARKER:
            # Padded so a truncated error block still reads.
            fields = (lines[3:6] + ['', '', ''])[:3]
            error = ProxyError(class_name=fields[1], message=fields[2], note=fields[0])
        return cls(path=path, target=Path(lines[0].strip()), error=error)

    @classmethod
    def for_font(cls, font_dir: 'Path | str', font_path: 'Path | str') -> 'ProxyRecord':
        font_path = Path(font_path).absolute()
        return cls(path=Path(font_dir) / proxy_name_for(font_path), target=font_path)

    @property
    def is_marked(self) -> bool:
        return is_error_marked(self.path.name)

    @property
    def plain_name(self) -> str:
        return strip_error_marker(self.path.name)

    def lines(self) -> list[str]:
        lines = [str(self.target)]
        if self.error is not None:
            lines.extend(
                ('', ERROR_MARKER, self.error.note, self.error.class_name, self.error.message))
        return lines

    def with_error(self, error: ProxyError | None) -> 'ProxyRecord':
        return ProxyRecord(path=self.path, target=self.target, error=error)

    def write(self) -> 'ProxyRecord':
        """Writes the record, renaming the file so the marker follows the error block.

        Returns the record at its (possibly new) location.
        """
        name = self.plain_name
        if self.error is not None:
            name = ERROR_PREFIX + name
        new_path = self.path.with_name(name)
        new_path.write_text('\n'.join(self.lines()), encoding='utf-8')
        if new_path != self.path and self.path.exists():
            log.debug(f"Renamed proxy '{self.path.name}' to '{new_path.name}'")
            self.path.unlink()
        return ProxyRecord(path=new_path, target=self.target, error=self.error)
